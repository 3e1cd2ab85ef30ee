from __future__ import annotations

import logging
from typing import Optional, Type
from types import TracebackType

import httpx

from ...application.payment.dtos import GatewayOrderDTO
from ...domain.errors import ConfigurationError, GatewayUnavailable
from ..http.http_client import AsyncHttpClient

logger = logging.getLogger(__name__)


class AsyncRazorpayClient:
    """Asynchronous client for the Razorpay-style orders API.

    Authenticates with the key id and secret as HTTP basic auth.
    """

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com",
        timeout: float = 10.0,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._http = AsyncHttpClient(
            base_url, timeout=timeout, auth=(key_id, key_secret), transport=transport
        )

    async def create_order(
        self,
        amount_minor: int,
        currency: str,
        *,
        receipt: Optional[str] = None,
        notes: Optional[dict[str, str]] = None,
    ) -> GatewayOrderDTO:
        body: dict = {"amount": amount_minor, "currency": currency}
        if receipt:
            body["receipt"] = receipt
        if notes:
            body["notes"] = notes
        try:
            resp = await self._http.post("/v1/orders", json=body)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 401:
                raise ConfigurationError("Payment gateway rejected the credentials") from e
            logger.warning(
                "Gateway order creation failed: HTTP %d %s",
                e.response.status_code,
                e.response.text,
            )
            raise GatewayUnavailable(
                f"Gateway order creation failed: HTTP {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise GatewayUnavailable(f"Could not reach payment gateway: {e}") from e
        return GatewayOrderDTO.model_validate(resp.json())

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "AsyncRazorpayClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
