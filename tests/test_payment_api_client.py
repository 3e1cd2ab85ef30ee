"""Tests for AsyncPaymentApiClient against a mocked HTTP transport."""

from __future__ import annotations

import json

import httpx
import pytest

from chatsphere.application.payment.dtos import VerifyPaymentRequestDTO
from chatsphere.domain.errors import (
    GatewayUnavailable,
    InvalidInput,
    Unauthenticated,
    VerificationFailed,
)
from chatsphere.infrastructure.api_client.payment_api_client import (
    AsyncPaymentApiClient,
)

VERIFY_REQUEST = VerifyPaymentRequestDTO(
    gateway_order_id="order_N1", gateway_payment_id="pay_P1", signature="ab12"
)


def _client(handler) -> AsyncPaymentApiClient:
    return AsyncPaymentApiClient(
        "https://api.test/api", "session-token", transport=httpx.MockTransport(handler)
    )


@pytest.mark.asyncio
async def test_create_order() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json={
                "success": True,
                "order": {"id": "order_N1", "amount": 50000, "currency": "INR"},
            },
        )

    async with _client(handler) as client:
        response = await client.create_order(500.0)

    assert response.order.id == "order_N1"
    [request] = requests
    assert str(request.url) == "https://api.test/api/payment/create-order"
    assert request.headers["Authorization"] == "Bearer session-token"
    assert json.loads(request.content) == {"amount": 500.0}


@pytest.mark.asyncio
async def test_verify_payment() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json={"success": True, "order_id": "order_N1", "payment_id": "pay_P1"},
        )

    async with _client(handler) as client:
        response = await client.verify_payment(VERIFY_REQUEST)

    assert response.success
    assert json.loads(requests[0].content) == {
        "gateway_order_id": "order_N1",
        "gateway_payment_id": "pay_P1",
        "signature": "ab12",
    }


@pytest.mark.asyncio
async def test_get_chat_token() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/chat/token"
        return httpx.Response(
            200,
            json={
                "token": "transport-token",
                "user_id": "alice",
                "display_name": "Alice Sharma",
                "expires_at": "2026-01-15T07:30:00+00:00",
            },
        )

    async with _client(handler) as client:
        response = await client.get_chat_token()

    assert response.token == "transport-token"
    assert response.user_id == "alice"
    assert response.to_identity().display_name == "Alice Sharma"


@pytest.mark.asyncio
async def test_get_group() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/chat/groups/g1"
        return httpx.Response(
            200,
            json={
                "id": "g1",
                "name": "Goa Trip",
                "member_ids": ["alice", "bob"],
                "stream_channel_id": "group-abc",
                "created_at": "2026-01-15T07:30:00+00:00",
            },
        )

    async with _client(handler) as client:
        group = await client.get_group("g1")

    assert group.stream_channel_id == "group-abc"
    assert group.member_ids == ["alice", "bob"]


@pytest.mark.asyncio
async def test_get_group_not_member() -> None:
    response = httpx.Response(403, json={"detail": "Not a member of this group"})
    async with _client(lambda request: response) as client:
        with pytest.raises(InvalidInput, match="Not a member"):
            await client.get_group("g1")


@pytest.mark.asyncio
async def test_rejected_order_carries_server_detail() -> None:
    response = httpx.Response(400, json={"detail": "Amount must be greater than zero"})
    async with _client(lambda request: response) as client:
        with pytest.raises(InvalidInput, match="Amount must be greater than zero"):
            await client.create_order(-5.0)


@pytest.mark.asyncio
async def test_rejected_verification_is_terminal() -> None:
    response = httpx.Response(400, json={"detail": "Invalid payment signature"})
    async with _client(lambda request: response) as client:
        with pytest.raises(VerificationFailed, match="Invalid payment signature"):
            await client.verify_payment(VERIFY_REQUEST)


@pytest.mark.asyncio
async def test_expired_session() -> None:
    response = httpx.Response(401, json={"detail": "Unauthorized - Invalid token"})
    async with _client(lambda request: response) as client:
        with pytest.raises(Unauthenticated):
            await client.get_chat_token()


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [500, 502])
async def test_server_errors_are_transient(status_code: int) -> None:
    response = httpx.Response(status_code, json={"detail": "Payment gateway unavailable"})
    async with _client(lambda request: response) as client:
        with pytest.raises(GatewayUnavailable):
            await client.verify_payment(VERIFY_REQUEST)


@pytest.mark.asyncio
async def test_unreachable_server() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    async with _client(handler) as client:
        with pytest.raises(GatewayUnavailable):
            await client.create_order(500.0)
