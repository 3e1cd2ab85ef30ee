"""Channel key derivation and create-or-attach of transport channels."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from ....domain.chat.entities import DEFAULT_CHANNEL_TYPE, ChannelKey, GroupRecord
from ....domain.errors import InvalidInput
from ....domain.shared import ChannelProtocol, TransportClientProtocol
from ...shared.retry import DEFAULT_ATTEMPTS, RETRY_BACKOFF_START, retry_transient

logger = logging.getLogger(__name__)

DIRECT_KEY_SEPARATOR = "-"


def _normalize_members(participant_ids: Iterable[str]) -> list[str]:
    members: set[str] = set()
    for participant_id in participant_ids:
        if not isinstance(participant_id, str) or not participant_id.strip():
            raise InvalidInput("Participant ids must be non-empty strings")
        members.add(participant_id)
    return sorted(members)


def derive_key(
    participant_ids: Iterable[str], channel_type: str = DEFAULT_CHANNEL_TYPE
) -> ChannelKey:
    """Derive the direct-chat key: distinct ids sorted ascending, joined by '-'.

    Both participants compute the same key regardless of argument order.
    """
    members = _normalize_members(participant_ids)
    if len(members) < 2:
        raise InvalidInput("A direct channel needs at least two distinct participants")
    for member in members:
        if DIRECT_KEY_SEPARATOR in member:
            raise InvalidInput(
                f"Participant id {member!r} contains the key separator "
                f"{DIRECT_KEY_SEPARATOR!r}"
            )
    return ChannelKey(
        channel_id=DIRECT_KEY_SEPARATOR.join(members), channel_type=channel_type
    )


def group_key(
    group: GroupRecord, channel_type: str = DEFAULT_CHANNEL_TYPE
) -> ChannelKey:
    """Group chats use the channel id persisted when the group was created."""
    if not group.stream_channel_id:
        raise InvalidInput(f"Group {group.id} has no channel id")
    return ChannelKey(channel_id=group.stream_channel_id, channel_type=channel_type)


class ChannelResolver:
    """Ensures channels exist and are watched, once per key and member set.

    One resolver belongs to one session; its handles are never shared.
    """

    def __init__(
        self,
        *,
        attempts: int = DEFAULT_ATTEMPTS,
        backoff_start: float = RETRY_BACKOFF_START,
    ) -> None:
        self.attempts = attempts
        self.backoff_start = backoff_start
        self._handles: dict[tuple[ChannelKey, frozenset[str]], ChannelProtocol] = {}

    derive_key = staticmethod(derive_key)
    group_key = staticmethod(group_key)

    async def ensure_channel(
        self,
        client: TransportClientProtocol,
        key: ChannelKey,
        member_ids: Iterable[str],
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> ChannelProtocol:
        """Create the channel if absent, otherwise attach to it, then watch it.

        A second call with the same key and member set returns the same
        handle without touching the transport.
        """
        members = _normalize_members(member_ids)
        if not members:
            raise InvalidInput("A channel needs members")
        cache_key = (key, frozenset(members))
        cached = self._handles.get(cache_key)
        if cached is not None:
            return cached

        data: dict[str, Any] = {"members": members}
        for field, value in (metadata or {}).items():
            if value is not None:
                data[field] = value

        handle = client.channel(key.channel_type, key.channel_id, data)
        await retry_transient(
            handle.watch,
            attempts=self.attempts,
            backoff_start=self.backoff_start,
            description=f"watch {key.cid}",
        )
        logger.info("Watching channel %s with %d members", key.cid, len(members))
        self._handles[cache_key] = handle
        return handle

    def forget(self) -> None:
        """Drop every handle; called on session teardown."""
        self._handles.clear()
