"""Authenticated caller resolution from the session token."""

from __future__ import annotations

from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request, status

from ..crypto.tokens import decode_token
from ..domain.chat.entities import AuthenticatedUser
from ..domain.chat.repositories import UserRepository
from ..envs.server_env import Settings, get_settings
from .dependencies import get_user_repository

SESSION_COOKIE = "jwt"
SESSION_USER_CLAIM = "userId"


def _session_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(SESSION_COOKIE)


async def get_current_user(
    request: Request,
    settings: Settings = Depends(get_settings),
    user_repository: UserRepository = Depends(get_user_repository),
) -> AuthenticatedUser:
    """Resolve the caller from a bearer token or the `jwt` cookie, else 401."""
    token = _session_token(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized - No token provided",
        )
    try:
        claims = decode_token(settings.secret, token)
    except jwt.PyJWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized - Invalid token",
        )
    user_id = claims.get(SESSION_USER_CLAIM)
    user = await user_repository.get_by_id(str(user_id)) if user_id else None
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized - User not found",
        )
    return user
