# Chat core
# Channel addressing, message routing and stream projection

"""
Chat Core - addressing and routing for broadcast + direct messaging.

Key responsibilities:
- Channel addressing (sorted-pair direct ids, fixed broadcast id)
- Message router (validation, channel resolution, append)
- Message stream projector (per-viewer channel views over the log)
- Access policy (moderator reads layered on top of addressing)
"""
