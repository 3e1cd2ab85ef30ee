"""Chat domain repository interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from .entities import AuthenticatedUser, GroupRecord


class UserRepository(ABC):
    """Read access to the authentication collaborator's user records."""

    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[AuthenticatedUser]:
        pass

    @abstractmethod
    async def save(self, user: AuthenticatedUser) -> AuthenticatedUser:
        pass


class GroupRepository(ABC):
    """Access to stored group records."""

    @abstractmethod
    async def get_by_id(self, group_id: str) -> Optional[GroupRecord]:
        pass

    @abstractmethod
    async def save(self, group: GroupRecord) -> GroupRecord:
        pass
