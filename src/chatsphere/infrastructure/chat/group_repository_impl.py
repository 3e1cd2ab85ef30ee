"""Group repository implementation over a storage abstraction."""

from __future__ import annotations

from typing import Optional

from ...domain.chat.entities import GroupRecord, allocate_group_channel_id
from ...domain.chat.repositories import GroupRepository
from ..storage import KeyValueStore


class GroupRepositoryImpl(GroupRepository):
    """Group repository using a KeyValueStore."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def get_by_id(self, group_id: str) -> Optional[GroupRecord]:
        data = await self.store.get(f"group:{group_id}")
        if not data:
            return None
        return GroupRecord.model_validate_json(data)

    async def save(self, group: GroupRecord) -> GroupRecord:
        # The channel id is allocated on first save and then kept as stored
        if group.stream_channel_id is None:
            existing = await self.get_by_id(group.id)
            group.stream_channel_id = (
                existing.stream_channel_id
                if existing and existing.stream_channel_id
                else allocate_group_channel_id()
            )
        await self.store.set(f"group:{group.id}", group.model_dump_json())
        return group
