"""HS256 JSON Web Tokens for transport access and authenticated sessions."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt

ALGORITHM = "HS256"


def encode_token(
    secret: str,
    claims: dict[str, Any],
    *,
    ttl: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> tuple[str, Optional[datetime]]:
    """Sign claims and return (token, expires_at)."""
    issued_at = now or datetime.now(timezone.utc)
    payload = dict(claims)
    payload["iat"] = int(issued_at.timestamp())
    expires_at = None
    if ttl is not None:
        expires_at = issued_at + ttl
        payload["exp"] = int(expires_at.timestamp())
    return jwt.encode(payload, secret, algorithm=ALGORITHM), expires_at


def decode_token(secret: str, token: str) -> dict[str, Any]:
    """Verify signature and expiry. Raises jwt.PyJWTError on any failure."""
    return jwt.decode(token, secret, algorithms=[ALGORITHM])
