"""User repository implementation over a storage abstraction."""

from __future__ import annotations

from typing import Optional

from ...domain.chat.entities import AuthenticatedUser
from ...domain.chat.repositories import UserRepository
from ..storage import KeyValueStore


class UserRepositoryImpl(UserRepository):
    """User repository using a KeyValueStore."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def get_by_id(self, user_id: str) -> Optional[AuthenticatedUser]:
        data = await self.store.get(f"user:{user_id}")
        if not data:
            return None
        return AuthenticatedUser.model_validate_json(data)

    async def save(self, user: AuthenticatedUser) -> AuthenticatedUser:
        await self.store.set(f"user:{user.id}", user.model_dump_json())
        return user
