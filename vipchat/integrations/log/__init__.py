# Message log collaborators
from vipchat.integrations.log.base import MessageLog
from vipchat.integrations.log.memory import InMemoryMessageLog

__all__ = ["MessageLog", "InMemoryMessageLog"]
