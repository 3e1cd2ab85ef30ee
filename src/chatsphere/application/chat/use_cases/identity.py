"""Identity resolution and transport access tokens."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

import jwt

from ....crypto.tokens import decode_token, encode_token
from ....domain.chat.entities import AccessToken, AuthenticatedUser, Identity
from ....domain.errors import (
    ChatSphereError,
    CredentialsUnavailable,
    Unauthenticated,
)
from ....domain.shared import UserDirectoryProtocol

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_TTL = timedelta(hours=1)


class IdentityResolver:
    """Turns authenticated users into transport identities and tokens."""

    def __init__(
        self,
        api_key: Optional[str],
        api_secret: Optional[str],
        *,
        token_ttl: timedelta = DEFAULT_TOKEN_TTL,
        user_directory: Optional[UserDirectoryProtocol] = None,
    ) -> None:
        self.api_key = api_key
        self.api_secret = api_secret
        self.token_ttl = token_ttl
        self.user_directory = user_directory

    def resolve(self, user: Optional[AuthenticatedUser]) -> Identity:
        """Project an authenticated user into its transport identity."""
        if user is None or not user.id.strip():
            raise Unauthenticated("User not authenticated")
        return Identity(
            local_user_id=user.id,
            display_name=user.full_name,
            avatar_ref=user.profile_pic or None,
        )

    def _require_credentials(self) -> str:
        if not self.api_key or not self.api_secret:
            raise CredentialsUnavailable("Transport credentials not configured")
        return self.api_secret

    def issue_access_token(
        self, identity: Identity, *, now: Optional[datetime] = None
    ) -> AccessToken:
        """Issue a short-lived token scoped to one identity."""
        secret = self._require_credentials()
        token, expires_at = encode_token(
            secret,
            {"user_id": identity.local_user_id},
            ttl=self.token_ttl,
            now=now,
        )
        assert expires_at is not None
        logger.info("Issued transport token for user %s", identity.local_user_id)
        return AccessToken(
            token=token, user_id=identity.local_user_id, expires_at=expires_at
        )

    def validate_access_token(
        self, token: str, identity: Optional[Identity] = None
    ) -> dict[str, Any]:
        """Return the token claims, or raise Unauthenticated.

        When an identity is given the token must be bound to it.
        """
        secret = self._require_credentials()
        try:
            claims = decode_token(secret, token)
        except jwt.PyJWTError as e:
            raise Unauthenticated(f"Invalid access token: {e}") from e
        user_id = claims.get("user_id")
        if not user_id:
            raise Unauthenticated("Access token is not bound to a user")
        if identity is not None and user_id != identity.local_user_id:
            raise Unauthenticated("Access token belongs to another identity")
        return claims

    async def publish_identity(self, identity: Identity) -> bool:
        """Upsert the identity into the transport's user directory.

        Returns False when no directory is configured or the upsert failed;
        the identity's token stays valid either way.
        """
        if self.user_directory is None:
            return False
        try:
            await self.user_directory.upsert_users([identity])
        except ChatSphereError as e:
            logger.warning(
                "Could not publish identity %s to transport: %s",
                identity.local_user_id,
                e,
            )
            return False
        return True
