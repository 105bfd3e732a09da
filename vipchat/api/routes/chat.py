"""
Chat API Routes

Endpoints (mounted under /api/chat):
1. POST /messages                 - Send to the community or to a peer
2. GET  /channels/community       - Broadcast channel view
3. GET  /channels/direct/{peer}   - Direct channel with a peer
4. GET  /channels/{channel_id}    - Any channel the caller may read
5. GET  /conversations            - Caller's inbox (?all=true for moderators)
6. WS   /stream                   - Live views pushed on every log change

The caller's identity comes from headers set by the auth gateway
(see Settings.participant_header). No header means signed out.
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    Request,
    WebSocket,
    WebSocketDisconnect,
)
from pydantic import BaseModel, ConfigDict, Field

from vipchat.config import get_settings
from vipchat.core.addressing import BROADCAST
from vipchat.core.errors import (
    AccessDeniedError,
    ChatError,
    ChatInputError,
    DeliveryFailedError,
    UnauthenticatedError,
)
from vipchat.models.message import ChannelView, ConversationSummary, SendReceipt, StreamViews
from vipchat.models.participant import ParticipantProfile, Role
from vipchat.services.chat_service import ChatService, get_chat_service

logger = logging.getLogger(__name__)
router = APIRouter()


# Request models


class SendMessageRequest(BaseModel):
    """Request model for the send endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    to: Optional[str] = Field(
        None, description="Peer participant id; omit to post to the community"
    )
    text: str = Field("", description="Message body")
    attachment_url: Optional[str] = Field(
        None, alias="attachmentUrl", description="Optional attachment URI"
    )


# Helpers


def _profile_from_values(
    participant_id: Optional[str],
    name: Optional[str] = None,
    avatar: Optional[str] = None,
    role: Optional[str] = None,
) -> Optional[ParticipantProfile]:
    if not participant_id:
        return None
    try:
        parsed_role = Role(role.lower()) if role else Role.MEMBER
    except ValueError:
        parsed_role = Role.MEMBER
    return ParticipantProfile(
        id=participant_id, display_name=name, avatar_url=avatar, role=parsed_role
    )


def current_participant(request: Request) -> Optional[ParticipantProfile]:
    """Dependency: caller profile from the identity headers, None if absent."""
    settings = get_settings()
    headers = request.headers
    return _profile_from_values(
        headers.get(settings.participant_header),
        headers.get(settings.participant_name_header),
        headers.get(settings.participant_avatar_header),
        headers.get(settings.participant_role_header),
    )


def _http_error(error: ChatError) -> HTTPException:
    """Map a chat error to an HTTP error with a {kind, message} detail."""
    if isinstance(error, UnauthenticatedError):
        status_code = 401
    elif isinstance(error, AccessDeniedError):
        status_code = 403
    elif isinstance(error, ChatInputError):
        status_code = 400
    elif isinstance(error, DeliveryFailedError):
        status_code = 503
    else:
        status_code = 500
    return HTTPException(status_code=status_code, detail=error.to_detail())


# API Endpoints


@router.post("/messages", response_model=SendReceipt, status_code=201)
async def send_message(
    request: SendMessageRequest,
    participant: Optional[ParticipantProfile] = Depends(current_participant),
    service: ChatService = Depends(get_chat_service),
):
    """
    Send a message as the calling participant.

    Example request body:
    ```json
    {"to": "u2", "text": "hi"}
    ```
    """
    destination = request.to if request.to else BROADCAST
    try:
        return await service.send(
            participant, destination, request.text, request.attachment_url
        )
    except ChatError as e:
        raise _http_error(e)


@router.get("/channels/community", response_model=ChannelView)
async def community_channel(
    participant: Optional[ParticipantProfile] = Depends(current_participant),
    service: ChatService = Depends(get_chat_service),
):
    """Broadcast channel as seen by the caller (readable while signed out)."""
    return service.community_view(participant)


@router.get("/channels/direct/{peer_id}", response_model=ChannelView)
async def direct_channel(
    peer_id: str,
    participant: Optional[ParticipantProfile] = Depends(current_participant),
    service: ChatService = Depends(get_chat_service),
):
    """Direct channel between the caller and ``peer_id``."""
    try:
        return service.direct_view(participant, peer_id)
    except ChatError as e:
        raise _http_error(e)


@router.get("/channels/{channel_id}", response_model=ChannelView)
async def any_channel(
    channel_id: str,
    participant: Optional[ParticipantProfile] = Depends(current_participant),
    service: ChatService = Depends(get_chat_service),
):
    """Channel by id; direct channels need membership or moderator rights."""
    try:
        return service.channel_view(participant, channel_id)
    except ChatError as e:
        raise _http_error(e)


@router.get("/conversations", response_model=List[ConversationSummary])
async def conversations(
    include_all: bool = Query(
        False, alias="all", description="Every conversation (moderators only)"
    ),
    participant: Optional[ParticipantProfile] = Depends(current_participant),
    service: ChatService = Depends(get_chat_service),
):
    """Caller's direct conversations, most recent first."""
    try:
        return service.conversations(participant, include_all=include_all)
    except ChatError as e:
        raise _http_error(e)


async def _pump_views(websocket: WebSocket, updates: "asyncio.Queue[StreamViews]") -> None:
    """Send queued views until the client disconnects (WebSocketDisconnect)."""
    receiver = asyncio.create_task(websocket.receive_text())
    getter = None
    try:
        while True:
            getter = asyncio.create_task(updates.get())
            done, _ = await asyncio.wait(
                {getter, receiver}, return_when=asyncio.FIRST_COMPLETED
            )
            if receiver in done:
                receiver.result()  # raises WebSocketDisconnect on close
                receiver = asyncio.create_task(websocket.receive_text())
            # Both may finish in the same tick; a dequeued view is always sent
            if getter in done:
                views = getter.result()
                await websocket.send_json(views.model_dump(mode="json", by_alias=True))
            else:
                getter.cancel()
    finally:
        receiver.cancel()
        if getter is not None:
            getter.cancel()


@router.websocket("/stream")
async def stream(
    websocket: WebSocket,
    participant_id: Optional[str] = Query(None),
    peer_id: Optional[str] = Query(None),
    service: ChatService = Depends(get_chat_service),
):
    """
    Push StreamViews JSON on every log change until the client disconnects.

    Browsers cannot set custom headers on websockets, so the identity is
    taken from the ``participant_id`` query parameter.
    """
    await websocket.accept()
    participant = _profile_from_values(participant_id)
    loop = asyncio.get_running_loop()
    updates: "asyncio.Queue[StreamViews]" = asyncio.Queue()

    def on_update(views: StreamViews) -> None:
        # The log may notify from another thread
        loop.call_soon_threadsafe(updates.put_nowait, views)

    try:
        projector = service.open_stream(participant, peer_id=peer_id, on_update=on_update)
    except ChatError as e:
        await websocket.send_json({"error": e.to_detail()})
        await websocket.close(code=1008)
        return

    logger.info(f"Stream opened for {participant_id} (peer={peer_id})")
    try:
        await _pump_views(websocket, updates)
    except WebSocketDisconnect:
        logger.info(f"Stream closed by client {participant_id}")
    finally:
        projector.stop()
