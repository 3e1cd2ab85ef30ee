"""Data Transfer Objects for the chat application layer."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ...domain.chat.entities import AccessToken, Identity
from ..shared.serializers import DatetimeSerializerMixin


class ChatTokenResponseDTO(DatetimeSerializerMixin, BaseModel):
    """DTO for `GET /chat/token`: the token and the identity it is bound to."""

    token: str
    user_id: str
    display_name: str
    avatar_ref: Optional[str] = None
    expires_at: datetime

    @classmethod
    def from_access_token(
        cls, access_token: AccessToken, identity: Identity
    ) -> "ChatTokenResponseDTO":
        return cls(
            token=access_token.token,
            user_id=access_token.user_id,
            display_name=identity.display_name,
            avatar_ref=identity.avatar_ref,
            expires_at=access_token.expires_at,
        )

    def to_identity(self) -> Identity:
        return Identity(
            local_user_id=self.user_id,
            display_name=self.display_name,
            avatar_ref=self.avatar_ref,
        )
