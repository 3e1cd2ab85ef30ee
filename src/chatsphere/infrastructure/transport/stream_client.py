"""HTTP client for a Stream-style chat transport.

Only the narrow surface chatsphere needs: bind a user, create-or-watch a
channel, post messages, poll new messages, and (server side) upsert users.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, AsyncIterator, Optional, Sequence

import httpx

from ...crypto.tokens import encode_token
from ...domain.chat.entities import Identity
from ...domain.errors import InvalidInput, TransportUnavailable, Unauthenticated
from ..http.http_client import AsyncHttpClient

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 2.0
MESSAGE_PAGE_SIZE = 50


@asynccontextmanager
async def _transport_errors(description: str) -> AsyncGenerator[None, None]:
    """Translate httpx failures into transport errors."""
    try:
        yield
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        if status in (401, 403):
            raise Unauthenticated(f"Transport rejected {description}") from e
        if status == 429 or status >= 500:
            raise TransportUnavailable(
                f"Transport unavailable during {description}: HTTP {status}"
            ) from e
        raise InvalidInput(f"Transport refused {description}: HTTP {status}") from e
    except httpx.RequestError as e:
        raise TransportUnavailable(f"Could not reach transport for {description}: {e}") from e


def _auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": token, "Stream-Auth-Type": "jwt"}


class StreamChannel:
    """Channel handle bound to the client that created it."""

    def __init__(
        self,
        client: "StreamTransportClient",
        channel_type: str,
        channel_id: str,
        data: Optional[dict[str, Any]] = None,
    ) -> None:
        self._client = client
        self._channel_type = channel_type
        self._channel_id = channel_id
        self._requested_data = dict(data or {})
        self._data: dict[str, Any] = {}
        self._members: list[dict[str, Any]] = []
        self._initial_messages: list[dict[str, Any]] = []

    @property
    def channel_type(self) -> str:
        return self._channel_type

    @property
    def channel_id(self) -> str:
        return self._channel_id

    @property
    def cid(self) -> str:
        return f"{self._channel_type}:{self._channel_id}"

    @property
    def data(self) -> dict[str, Any]:
        return self._data

    @property
    def members(self) -> list[dict[str, Any]]:
        return self._members

    def _path(self, suffix: str) -> str:
        return f"/channels/{self._channel_type}/{self._channel_id}/{suffix}"

    async def watch(self) -> dict[str, Any]:
        body = {"data": self._requested_data, "state": True, "watch": True}
        async with _transport_errors(f"watch {self.cid}"):
            resp = await self._client.http().post(self._path("query"), json=body)
        state = resp.json()
        self._data = state.get("channel") or {}
        self._members = state.get("members") or []
        self._initial_messages = state.get("messages") or []
        return state

    async def send_message(self, message: dict[str, Any]) -> dict[str, Any]:
        async with _transport_errors(f"send message to {self.cid}"):
            resp = await self._client.http().post(
                self._path("message"), json={"message": message}
            )
        return resp.json().get("message") or {}

    async def _fetch_after(self, last_id: Optional[str]) -> list[dict[str, Any]]:
        page: dict[str, Any] = {"limit": MESSAGE_PAGE_SIZE}
        if last_id:
            page["id_gt"] = last_id
        async with _transport_errors(f"poll {self.cid}"):
            resp = await self._client.http().post(
                self._path("query"), json={"state": True, "messages": page}
            )
        return resp.json().get("messages") or []

    async def messages(self) -> AsyncIterator[dict[str, Any]]:
        """Yield the watched history, then poll for newer messages until cancelled."""
        last_id: Optional[str] = None
        for message in self._initial_messages:
            last_id = message.get("id", last_id)
            yield message
        while True:
            await asyncio.sleep(self._client.poll_interval)
            try:
                batch = await self._fetch_after(last_id)
            except TransportUnavailable as e:
                logger.info("Polling %s failed, will retry: %s", self.cid, e)
                continue
            for message in batch:
                last_id = message.get("id", last_id)
                yield message


class StreamTransportClient:
    """Client-side connection to the transport for one identity at a time."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        *,
        timeout: float = 10.0,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._transport = transport
        self._http: Optional[AsyncHttpClient] = None
        self._user_id: Optional[str] = None

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    def http(self) -> AsyncHttpClient:
        if self._http is None:
            raise Unauthenticated("No user is connected to the transport")
        return self._http

    async def connect_user(self, identity: Identity, token: str) -> None:
        if self._user_id is not None:
            raise InvalidInput(
                f"Transport client already bound to {self._user_id}; disconnect first"
            )
        http = AsyncHttpClient(
            self.base_url,
            timeout=self.timeout,
            headers=_auth_headers(token),
            transport=self._transport,
        )
        user = identity.to_transport_user()
        try:
            async with _transport_errors(f"connect {identity.local_user_id}"):
                await http.post(
                    "/users",
                    json={"users": {identity.local_user_id: user}},
                    params={"api_key": self.api_key},
                )
        except BaseException:
            await http.aclose()
            raise
        self._http = http
        self._user_id = identity.local_user_id
        logger.info("Transport connected as %s", identity.local_user_id)

    async def disconnect_user(self) -> None:
        http, self._http = self._http, None
        user_id, self._user_id = self._user_id, None
        if http is not None:
            await http.aclose()
            logger.info("Transport disconnected %s", user_id)

    def channel(
        self,
        channel_type: str,
        channel_id: str,
        data: Optional[dict[str, Any]] = None,
    ) -> StreamChannel:
        return StreamChannel(self, channel_type, channel_id, data)


class StreamUserDirectory:
    """Server-side user directory access, authenticated with a server token."""

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.api_secret = api_secret
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

    async def upsert_users(self, identities: Sequence[Identity]) -> None:
        if not identities:
            return
        server_token, _ = encode_token(self.api_secret, {"server": True})
        users = {i.local_user_id: i.to_transport_user() for i in identities}
        async with AsyncHttpClient(
            self.base_url,
            timeout=self.timeout,
            headers=_auth_headers(server_token),
            transport=self._transport,
        ) as http:
            async with _transport_errors("upsert users"):
                await http.post(
                    "/users", json={"users": users}, params={"api_key": self.api_key}
                )
        logger.info("Upserted %d user(s) to the transport directory", len(users))
