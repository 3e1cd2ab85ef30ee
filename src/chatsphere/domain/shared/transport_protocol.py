"""Protocol interfaces for real-time transport implementations.

The transport is an external collaborator. Services depend on these
protocols so that an HTTP-backed client and an in-memory double are
interchangeable, and so that each session owns its own client instance
instead of sharing a process-wide singleton.
"""

from __future__ import annotations

from typing import (
    Any,
    AsyncIterator,
    Optional,
    Protocol,
    Sequence,
    TYPE_CHECKING,
)

if TYPE_CHECKING:
    from ..chat.entities import Identity


class ChannelProtocol(Protocol):
    """A channel object obtained from a transport client."""

    @property
    def channel_type(self) -> str: ...

    @property
    def channel_id(self) -> str: ...

    @property
    def cid(self) -> str: ...

    @property
    def data(self) -> dict[str, Any]:
        """Channel custom data (name, image) as known after `watch`."""
        ...

    @property
    def members(self) -> list[dict[str, Any]]:
        """Channel members as known after `watch`.

        Each member is a mapping with at least `user_id` and a `user`
        mapping carrying `id`, `name` and optionally `image`.
        """
        ...

    async def watch(self) -> dict[str, Any]:
        """Create the channel if absent, attach to it and start watching.

        Returns:
            The channel state returned by the transport.
        """
        ...

    async def send_message(self, message: dict[str, Any]) -> dict[str, Any]:
        """Append a message to the channel.

        Args:
            message: Message body, e.g. `{"text": ..., "type": ...}`

        Returns:
            The stored message as echoed by the transport
        """
        ...

    def messages(self) -> AsyncIterator[dict[str, Any]]:
        """Inbound message stream for this channel."""
        ...


class TransportClientProtocol(Protocol):
    """Connection to the real-time transport on behalf of one identity."""

    @property
    def user_id(self) -> Optional[str]:
        """Id of the identity currently bound to this client, if any."""
        ...

    async def connect_user(self, identity: "Identity", token: str) -> None:
        """Bind an identity to this client using its access token."""
        ...

    async def disconnect_user(self) -> None:
        """Release the identity binding. Safe to call when not connected."""
        ...

    def channel(
        self,
        channel_type: str,
        channel_id: str,
        data: Optional[dict[str, Any]] = None,
    ) -> ChannelProtocol:
        """Return a (not yet watched) channel object."""
        ...


class UserDirectoryProtocol(Protocol):
    """Server-side access to the transport's user directory."""

    async def upsert_users(self, identities: Sequence["Identity"]) -> None: ...
