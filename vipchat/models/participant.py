"""
Participant Model

Identity data handed to the chat core by the identity collaborator.
Only ``id`` takes part in addressing; the rest is display and policy data.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    """Participant role assigned by the identity provider."""

    MEMBER = "member"
    ADMIN = "admin"


class ParticipantProfile(BaseModel):
    """A signed-in participant."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    display_name: Optional[str] = Field(None, alias="displayName")
    avatar_url: Optional[str] = Field(None, alias="avatarUrl")
    role: Role = Role.MEMBER

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN
