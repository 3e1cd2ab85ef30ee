"""Protocol interfaces for the payment gateway and the payment API.

`PaymentGatewayProtocol` is what the server talks to (order creation).
`CheckoutProtocol` is the payer-facing checkout step on the client side.
`PaymentApiProtocol` is the client's view of the chatsphere server, which is
the trusted party performing signature verification.
"""

from __future__ import annotations

from typing import Optional, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from ..payment.entities import GatewayCheckoutResult, PaymentOrder
    from ...application.chat.dtos import ChatTokenResponseDTO
    from ...application.payment.dtos import (
        CreateOrderResponseDTO,
        GatewayOrderDTO,
        VerifyPaymentRequestDTO,
        VerifyPaymentResponseDTO,
    )


class PaymentGatewayProtocol(Protocol):
    """Server-side gateway operations."""

    async def create_order(
        self,
        amount_minor: int,
        currency: str,
        *,
        receipt: Optional[str] = None,
        notes: Optional[dict[str, str]] = None,
    ) -> "GatewayOrderDTO":
        """Create an order on the gateway.

        Args:
            amount_minor: Amount in minor units (paise, cents)
            currency: ISO 4217 currency code
            receipt: Merchant-side reference for the order
            notes: Free-form key/value pairs stored with the order

        Returns:
            The gateway order (id, amount, currency)
        """
        ...


class CheckoutProtocol(Protocol):
    """Payer-facing checkout step. Opaque and possibly abandoned."""

    async def open(self, order: "PaymentOrder") -> Optional["GatewayCheckoutResult"]:
        """Run the checkout for an order.

        Returns:
            The gateway's result, or None when the payer dismissed the checkout
        """
        ...


class PaymentApiProtocol(Protocol):
    """Client view of the chatsphere server."""

    async def create_order(self, amount: float) -> "CreateOrderResponseDTO": ...

    async def verify_payment(
        self, dto: "VerifyPaymentRequestDTO"
    ) -> "VerifyPaymentResponseDTO": ...

    async def get_chat_token(self) -> "ChatTokenResponseDTO": ...
