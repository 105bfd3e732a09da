from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Lojista VIP Chat"
    debug: bool = False

    # Access policy
    # JSON list in the environment, e.g. MODERATOR_IDS='["u-admin"]'
    moderator_ids: List[str] = []

    # HTTP identity headers (set by the auth gateway in front of the API)
    participant_header: str = "X-Participant-Id"
    participant_name_header: str = "X-Participant-Name"
    participant_avatar_header: str = "X-Participant-Avatar"
    participant_role_header: str = "X-Participant-Role"

    # Python API client
    api_base_url: str = "http://127.0.0.1:8000/api/chat"
    api_timeout: int = 10  # Seconds

    model_config = ConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
