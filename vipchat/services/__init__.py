# Chat services
from vipchat.services.chat_service import ChatService, get_chat_service
from vipchat.services.chat_session import ChatSession

__all__ = ["ChatService", "ChatSession", "get_chat_service"]
