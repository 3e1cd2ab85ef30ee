from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional, Type
from types import TracebackType

import httpx

from ...application.chat.dtos import ChatTokenResponseDTO
from ...application.payment.dtos import (
    CreateOrderRequestDTO,
    CreateOrderResponseDTO,
    VerifyPaymentRequestDTO,
    VerifyPaymentResponseDTO,
)
from ...domain.chat.entities import GroupRecord
from ...domain.errors import (
    GatewayUnavailable,
    InvalidInput,
    Unauthenticated,
    VerificationFailed,
)
from ..http.http_client import AsyncHttpClient

logger = logging.getLogger(__name__)


def _detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and body.get("detail"):
        return str(body["detail"])
    return response.text


@asynccontextmanager
async def _api_errors(
    description: str, client_error: Type[Exception] = InvalidInput
) -> AsyncGenerator[None, None]:
    try:
        yield
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        if status == 401:
            raise Unauthenticated(_detail(e.response)) from e
        if 400 <= status < 500:
            raise client_error(_detail(e.response)) from e
        raise GatewayUnavailable(f"{description} failed: HTTP {status}") from e
    except httpx.RequestError as e:
        raise GatewayUnavailable(f"Could not reach payment API for {description}: {e}") from e


class AsyncPaymentApiClient:
    """Asynchronous client for the chatsphere server's payment and chat API.

    Authenticates with the caller's session token as a bearer token.
    """

    def __init__(
        self,
        base_url: str,
        session_token: str,
        timeout: float = 10.0,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._http = AsyncHttpClient(
            base_url,
            timeout=timeout,
            headers={"Authorization": f"Bearer {session_token}"},
            transport=transport,
        )

    async def create_order(self, amount: float) -> CreateOrderResponseDTO:
        dto = CreateOrderRequestDTO(amount=amount)
        async with _api_errors("order creation"):
            resp = await self._http.post("/payment/create-order", json=dto.model_dump())
        return CreateOrderResponseDTO.model_validate(resp.json())

    async def verify_payment(
        self, dto: VerifyPaymentRequestDTO
    ) -> VerifyPaymentResponseDTO:
        async with _api_errors("payment verification", VerificationFailed):
            resp = await self._http.post("/payment/verify", json=dto.model_dump())
        return VerifyPaymentResponseDTO.model_validate(resp.json())

    async def get_chat_token(self) -> ChatTokenResponseDTO:
        async with _api_errors("chat token"):
            resp = await self._http.get("/chat/token")
        return ChatTokenResponseDTO.model_validate(resp.json())

    async def get_group(self, group_id: str) -> GroupRecord:
        async with _api_errors("group lookup"):
            resp = await self._http.get(f"/chat/groups/{group_id}")
        return GroupRecord.model_validate(resp.json())

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "AsyncPaymentApiClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
