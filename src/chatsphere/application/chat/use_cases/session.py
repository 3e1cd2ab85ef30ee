"""Chat session establishment, reconnect and teardown."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Literal, Optional, Type, Union

from ....domain.chat.entities import ChannelKey, GroupRecord, Identity
from ....domain.errors import (
    ChatSphereError,
    ConnectionFailed,
    InvalidInput,
    NotConnected,
    TransportUnavailable,
    Unauthenticated,
)
from ....domain.shared import ChannelProtocol, TransportClientProtocol
from ...shared.retry import DEFAULT_ATTEMPTS, RETRY_BACKOFF_START, retry_transient
from .channel import ChannelResolver

logger = logging.getLogger(__name__)

SessionState = Literal["idle", "connecting", "connected", "disconnected"]

CONNECT_FAILED_MESSAGE = "Could not connect to chat. Please try again."


@dataclass(frozen=True)
class DirectTarget:
    """One-to-one chat with another user."""

    peer_id: str


@dataclass(frozen=True)
class GroupTarget:
    """Group chat backed by a stored group record."""

    group: GroupRecord


ChatTarget = Union[DirectTarget, GroupTarget]


@dataclass(frozen=True)
class Peer:
    user_id: str
    name: Optional[str] = None
    image: Optional[str] = None


@dataclass(frozen=True)
class ChatSession:
    """A ready (client handle, channel handle) pair for one identity."""

    identity: Identity
    client: TransportClientProtocol
    channel: ChannelProtocol
    key: ChannelKey
    target: ChatTarget
    title: str
    image: Optional[str] = None
    peer: Optional[Peer] = None

    @property
    def is_group(self) -> bool:
        return isinstance(self.target, GroupTarget)


class SessionEstablisher:
    """Owns one transport client and at most one watched channel.

    States: idle -> connecting -> connected -> disconnected. A failed
    connection is never retried automatically; `retry()` is the explicit
    user action that starts again from idle.
    """

    def __init__(
        self,
        transport: TransportClientProtocol,
        channel_resolver: Optional[ChannelResolver] = None,
        *,
        attempts: int = DEFAULT_ATTEMPTS,
        backoff_start: float = RETRY_BACKOFF_START,
    ) -> None:
        self.transport = transport
        self.channel_resolver = channel_resolver or ChannelResolver(
            attempts=attempts, backoff_start=backoff_start
        )
        self.attempts = attempts
        self.backoff_start = backoff_start
        self._state: SessionState = "idle"
        self._session: Optional[ChatSession] = None
        self._last_request: Optional[tuple[Identity, str, ChatTarget]] = None
        self.last_error: Optional[BaseException] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Optional[ChatSession]:
        return self._session

    def require_session(self) -> ChatSession:
        if self._state != "connected" or self._session is None:
            raise NotConnected("Chat session is not connected")
        return self._session

    async def connect(
        self,
        identity: Optional[Identity],
        token: Optional[str],
        target: Optional[ChatTarget],
    ) -> ChatSession:
        """Connect `identity` and watch the channel for `target`.

        Idempotent: connecting again with the same identity and target
        while connected returns the existing session.
        """
        if identity is None:
            raise Unauthenticated("No authenticated identity")
        if not token:
            raise Unauthenticated("No access token")
        if target is None:
            raise InvalidInput("No chat target")
        if self._state == "connecting":
            raise ConnectionFailed("A connection attempt is already in progress")
        if (
            self._state == "connected"
            and self._session is not None
            and self._session.identity == identity
            and self._session.target == target
        ):
            return self._session

        self._last_request = (identity, token, target)
        self._state = "connecting"
        self.last_error = None
        try:
            session = await self._establish(identity, token, target)
        except ChatSphereError as e:
            logger.warning(
                "Could not connect %s to chat: %s", identity.local_user_id, e
            )
            await self._fail(e)
            raise ConnectionFailed(CONNECT_FAILED_MESSAGE) from e
        except BaseException as e:
            await self._fail(e)
            raise

        self._session = session
        self._state = "connected"
        logger.info(
            "Connected %s to channel %s", identity.local_user_id, session.key.cid
        )
        return session

    async def retry(self) -> ChatSession:
        """Explicit user-triggered reconnect using the last connect request."""
        if self._state != "disconnected" or self._last_request is None:
            raise ConnectionFailed("There is no failed or closed session to retry")
        self._state = "idle"
        identity, token, target = self._last_request
        return await self.connect(identity, token, target)

    async def disconnect(self) -> None:
        """Tear the session down and release the transport connection."""
        if self._state == "idle" and self.transport.user_id is None:
            return
        await self._release()
        self._state = "disconnected"

    async def send_call_invite(self, origin: str) -> str:
        """Post a video-call link into the channel and return the link."""
        session = self.require_session()
        path = "group-call" if session.is_group else "call"
        call_url = f"{origin.rstrip('/')}/{path}/{session.key.channel_id}"
        if session.is_group:
            text = f"🎥 Group video call started! Join here: {call_url}"
        else:
            text = f"🎥 I've started a video call. Join me here: {call_url}"
        await retry_transient(
            lambda: session.channel.send_message({"text": text}),
            attempts=self.attempts,
            backoff_start=self.backoff_start,
            description=f"send call invite to {session.key.cid}",
        )
        return call_url

    async def _establish(
        self, identity: Identity, token: str, target: ChatTarget
    ) -> ChatSession:
        # 1) A stale identity on this client would clash on the transport
        if self.transport.user_id is not None:
            logger.info("Disconnecting stale identity %s", self.transport.user_id)
            await self._release()

        # 2) Bind the identity
        await retry_transient(
            lambda: self.transport.connect_user(identity, token),
            attempts=self.attempts,
            backoff_start=self.backoff_start,
            description=f"connect {identity.local_user_id}",
        )

        # 3) Resolve the channel key
        metadata: dict[str, Any] = {}
        if isinstance(target, GroupTarget):
            group = target.group
            if identity.local_user_id not in group.member_ids:
                raise InvalidInput(f"User is not a member of group {group.id}")
            key = self.channel_resolver.group_key(group)
            member_ids = list(group.member_ids)
            metadata = {"name": group.name, "image": group.group_pic}
        else:
            member_ids = [identity.local_user_id, target.peer_id]
            key = self.channel_resolver.derive_key(member_ids)

        # 4) Create-or-attach and watch
        channel = await self.channel_resolver.ensure_channel(
            self.transport, key, member_ids, metadata
        )

        # 5) Header info
        if isinstance(target, GroupTarget):
            return ChatSession(
                identity=identity,
                client=self.transport,
                channel=channel,
                key=key,
                target=target,
                title=target.group.name,
                image=target.group.group_pic,
            )
        peer = self._find_peer(channel, identity, target.peer_id)
        return ChatSession(
            identity=identity,
            client=self.transport,
            channel=channel,
            key=key,
            target=target,
            title=peer.name or peer.user_id,
            image=peer.image,
            peer=peer,
        )

    @staticmethod
    def _find_peer(
        channel: ChannelProtocol, identity: Identity, peer_id: str
    ) -> Peer:
        for member in channel.members:
            user = member.get("user") or {}
            member_id = member.get("user_id") or user.get("id")
            if member_id and member_id != identity.local_user_id:
                return Peer(
                    user_id=member_id, name=user.get("name"), image=user.get("image")
                )
        return Peer(user_id=peer_id)

    async def _release(self) -> None:
        try:
            await self.transport.disconnect_user()
        except TransportUnavailable as e:
            logger.warning("Transport disconnect failed, dropping binding: %s", e)
        self.channel_resolver.forget()
        self._session = None

    async def _fail(self, error: BaseException) -> None:
        self.last_error = error
        await self._release()
        self._state = "disconnected"

    async def __aenter__(self) -> "SessionEstablisher":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.disconnect()
