"""Server-side payment use cases: gateway orders and signature verification."""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from cryptography.exceptions import InvalidSignature

from ....crypto.signatures import verify_payment_signature
from ....domain.chat.entities import AuthenticatedUser
from ....domain.errors import ConfigurationError, VerificationFailed
from ....domain.payment.entities import PaymentOrder
from ....domain.payment.order_repository import PaymentOrderRepository
from ....domain.shared import PaymentGatewayProtocol
from ..dtos import (
    CreateOrderRequestDTO,
    CreateOrderResponseDTO,
    VerifyPaymentRequestDTO,
    VerifyPaymentResponseDTO,
)
from ..validators import to_minor_units, validate_amount, validate_currency

logger = logging.getLogger(__name__)


class PaymentService:
    """The trusted party: creates gateway orders and checks checkout signatures."""

    def __init__(
        self,
        gateway: Optional[PaymentGatewayProtocol],
        order_repository: PaymentOrderRepository,
        key_secret: Optional[str],
        *,
        currency: str = "INR",
    ):
        self.gateway = gateway
        self.order_repository = order_repository
        self.key_secret = key_secret
        self.currency = currency

    def _require_key_secret(self) -> str:
        if not self.key_secret:
            raise ConfigurationError("Payment gateway credentials not configured")
        return self.key_secret

    async def create_order(
        self, dto: CreateOrderRequestDTO, owner: AuthenticatedUser
    ) -> CreateOrderResponseDTO:
        """Create a gateway order for the caller and remember who owns it."""
        # 1) Validate before touching the gateway
        amount_minor = to_minor_units(validate_amount(dto.amount))
        currency = validate_currency(self.currency)
        self._require_key_secret()
        if self.gateway is None:
            raise ConfigurationError("Payment gateway is not configured")

        # 2) Create the order on the gateway
        gateway_order = await self.gateway.create_order(
            amount_minor,
            currency,
            receipt=f"receipt_{uuid.uuid4().hex[:12]}",
            notes={"user_id": owner.id},
        )

        # 3) Store it as created
        order = PaymentOrder(
            order_id=gateway_order.id,
            amount=gateway_order.amount,
            currency=gateway_order.currency,
            owner_id=owner.id,
        )
        await self.order_repository.save(order)
        logger.info(
            "Created gateway order %s (%d %s) for user %s",
            order.order_id,
            order.amount,
            order.currency,
            owner.id,
        )
        return CreateOrderResponseDTO(success=True, order=gateway_order)

    async def verify_payment(
        self, dto: VerifyPaymentRequestDTO, owner: AuthenticatedUser
    ) -> VerifyPaymentResponseDTO:
        """Check the gateway signature for an order the caller owns.

        A repeat of an already verified payment is answered again; any other
        request for a terminal order is rejected without touching it.
        """
        key_secret = self._require_key_secret()

        order = await self.order_repository.get_by_order_id(dto.gateway_order_id)
        if order is None or order.owner_id != owner.id:
            raise VerificationFailed("Unknown payment order")

        signature_valid = self._signature_valid(key_secret, dto)

        if order.status == "verified":
            if signature_valid and order.payment_id == dto.gateway_payment_id:
                return self._verified_response(order.order_id, dto.gateway_payment_id)
            raise VerificationFailed("Payment order is already verified")
        if order.status == "failed":
            raise VerificationFailed("Payment order has already failed")

        if not signature_valid:
            order.mark_failed("Invalid payment signature")
            await self.order_repository.save(order)
            logger.warning(
                "Rejected payment %s for order %s: invalid signature",
                dto.gateway_payment_id,
                order.order_id,
            )
            raise VerificationFailed("Invalid payment signature")

        try:
            order.start_verification(dto.gateway_payment_id)
            order.mark_verified()
        except ValueError as e:
            raise VerificationFailed(str(e)) from e
        await self.order_repository.save(order)
        logger.info(
            "Verified payment %s for order %s", dto.gateway_payment_id, order.order_id
        )
        return self._verified_response(order.order_id, dto.gateway_payment_id)

    @staticmethod
    def _signature_valid(key_secret: str, dto: VerifyPaymentRequestDTO) -> bool:
        try:
            return verify_payment_signature(
                key_secret,
                dto.gateway_order_id,
                dto.gateway_payment_id,
                dto.signature,
            )
        except InvalidSignature:
            return False

    @staticmethod
    def _verified_response(order_id: str, payment_id: str) -> VerifyPaymentResponseDTO:
        return VerifyPaymentResponseDTO(
            success=True,
            order_id=order_id,
            payment_id=payment_id,
            message="Payment verified successfully",
        )
