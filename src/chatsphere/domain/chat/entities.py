"""Chat domain entities: users, identities, groups and channel keys."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

DEFAULT_CHANNEL_TYPE = "messaging"
GROUP_CHANNEL_PREFIX = "group-"


class AuthenticatedUser(BaseModel):
    """User record owned by the authentication collaborator."""

    id: str = Field(..., min_length=1)
    full_name: str = Field(..., min_length=1, max_length=100)
    profile_pic: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_serializer("created_at")
    def serialize_created_at(self, value: datetime) -> str:
        return value.isoformat()


class Identity(BaseModel):
    """Transport-facing representation of a user."""

    model_config = ConfigDict(frozen=True)

    local_user_id: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1)
    avatar_ref: Optional[str] = None

    def to_transport_user(self) -> dict:
        """Shape expected by the transport's user directory."""
        user = {"id": self.local_user_id, "name": self.display_name}
        if self.avatar_ref:
            user["image"] = self.avatar_ref
        return user


class AccessToken(BaseModel):
    """Short-lived transport token bound to one identity."""

    model_config = ConfigDict(frozen=True)

    token: str
    user_id: str
    expires_at: datetime

    @field_serializer("expires_at")
    def serialize_expires_at(self, value: datetime) -> str:
        return value.isoformat()


class GroupRecord(BaseModel):
    """Stored group record. `stream_channel_id` is allocated once at creation."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    group_pic: Optional[str] = None
    member_ids: list[str] = Field(default_factory=list)
    stream_channel_id: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_serializer("created_at")
    def serialize_created_at(self, value: datetime) -> str:
        return value.isoformat()


def allocate_group_channel_id() -> str:
    """New opaque channel id for a group. Called once, at group creation."""
    return f"{GROUP_CHANNEL_PREFIX}{uuid.uuid4().hex}"


@dataclass(frozen=True)
class ChannelKey:
    """Deterministic identifier used to look up or create a channel."""

    channel_id: str
    channel_type: str = DEFAULT_CHANNEL_TYPE

    @property
    def cid(self) -> str:
        return f"{self.channel_type}:{self.channel_id}"

    def __str__(self) -> str:
        return self.cid
