# Python client for the chat HTTP API
from vipchat.client.api_client import ChatApiClient

__all__ = ["ChatApiClient"]
