"""Client-side payment round trip: order, checkout, verification."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from ....domain.errors import (
    GatewayUnavailable,
    PaymentDismissed,
    PaymentInProgress,
    VerificationFailed,
)
from ....domain.payment.entities import (
    GatewayCheckoutResult,
    PaymentOrder,
    PaymentOutcome,
)
from ....domain.shared import CheckoutProtocol, PaymentApiProtocol
from ..dtos import PaymentRequestDTO, VerifyPaymentRequestDTO
from ..validators import (
    to_minor_units,
    validate_amount,
    validate_currency,
    validate_recipient,
)

logger = logging.getLogger(__name__)


class PaymentOrchestrator:
    """Drives one payment at a time from order creation to a verified outcome.

    The orchestrator never trusts the checkout's own report of success: only
    the server's signature verification produces a PaymentOutcome.
    """

    def __init__(
        self,
        payment_api: PaymentApiProtocol,
        checkout: CheckoutProtocol,
        *,
        checkout_timeout: Optional[float] = None,
    ) -> None:
        self.payment_api = payment_api
        self.checkout = checkout
        self.checkout_timeout = checkout_timeout
        self.current_order: Optional[PaymentOrder] = None
        # Checkout result of `current_order` while its verification is unresolved
        self.pending_result: Optional[GatewayCheckoutResult] = None
        self._processing = False
        self._checkout_task: Optional[asyncio.Future[Any]] = None
        self._dismiss_requested = False
        self._verifications: set[asyncio.Task[PaymentOutcome]] = set()

    @property
    def is_processing(self) -> bool:
        return self._processing

    async def create_order(
        self,
        amount: Any,
        currency: str = "INR",
        recipient_name: Optional[str] = None,
        recipient_handle: Optional[str] = None,
    ) -> PaymentOrder:
        """Validate locally, then create the order through the payment API.

        Never retried: a resubmission is an explicit user action.
        """
        major = validate_amount(amount)
        amount_minor = to_minor_units(major)
        currency = validate_currency(currency)
        name, handle = validate_recipient(recipient_name, recipient_handle)

        response = await self.payment_api.create_order(float(major))
        if not response.success:
            raise GatewayUnavailable("Failed to create payment order")
        gateway_order = response.order
        if gateway_order.amount != amount_minor or gateway_order.currency != currency:
            raise GatewayUnavailable(
                "Gateway order does not match the requested amount"
            )

        order = PaymentOrder(
            order_id=gateway_order.id,
            amount=gateway_order.amount,
            currency=gateway_order.currency,
            recipient_name=name,
            recipient_handle=handle,
        )
        logger.info("Created payment order %s for %s", order.order_id, name)
        return order

    async def await_gateway_result(self, order: PaymentOrder) -> GatewayCheckoutResult:
        """Hand the order to the checkout and wait for the payer.

        Dismissal, timeout or cancellation fails the order.
        """
        if order.status != "created":
            raise ValueError(f"Order {order.order_id} is {order.status}, not created")

        self._dismiss_requested = False
        checkout = asyncio.ensure_future(self.checkout.open(order))
        self._checkout_task = checkout
        try:
            if self.checkout_timeout is not None:
                result = await asyncio.wait_for(checkout, self.checkout_timeout)
            else:
                result = await checkout
        except asyncio.TimeoutError:
            order.mark_failed("Checkout timed out")
            raise PaymentDismissed("Payment timed out")
        except asyncio.CancelledError:
            order.mark_failed("Checkout dismissed")
            if self._dismiss_requested:
                raise PaymentDismissed("Payment cancelled")
            raise
        finally:
            self._checkout_task = None

        if result is None:
            order.mark_failed("Checkout dismissed")
            raise PaymentDismissed("Payment cancelled")
        if result.gateway_order_id != order.order_id:
            order.mark_failed("Checkout returned a different order")
            raise VerificationFailed("Checkout result does not belong to this order")
        return result

    def dismiss(self) -> bool:
        """Abandon a checkout that is still open. Returns False if none is."""
        task = self._checkout_task
        if task is None or task.done():
            return False
        self._dismiss_requested = True
        task.cancel()
        return True

    async def verify(
        self,
        order: PaymentOrder,
        result: GatewayCheckoutResult,
        sender_name: str,
    ) -> PaymentOutcome:
        """Have the server check the gateway signature for this exact order.

        Once started, verification runs to completion even if the caller is
        cancelled.
        """
        order.start_verification(result.gateway_payment_id)
        self.pending_result = result
        task = asyncio.ensure_future(self._verify_with_server(order, result, sender_name))
        self._verifications.add(task)
        task.add_done_callback(self._verifications.discard)
        return await asyncio.shield(task)

    async def _verify_with_server(
        self,
        order: PaymentOrder,
        result: GatewayCheckoutResult,
        sender_name: str,
    ) -> PaymentOutcome:
        request = VerifyPaymentRequestDTO(
            gateway_order_id=order.order_id,
            gateway_payment_id=result.gateway_payment_id,
            signature=result.signature,
        )
        try:
            response = await self.payment_api.verify_payment(request)
        except VerificationFailed as e:
            order.mark_failed(str(e))
            self.pending_result = None
            raise
        # Transport-level failures leave the order verifying and keep
        # `pending_result` for resubmit_verification().

        if (
            not response.success
            or response.order_id != order.order_id
            or response.payment_id != result.gateway_payment_id
        ):
            order.mark_failed("Payment verification failed")
            self.pending_result = None
            raise VerificationFailed("Payment verification failed")

        order.mark_verified()
        self.pending_result = None
        logger.info(
            "Payment %s verified for order %s", result.gateway_payment_id, order.order_id
        )
        assert order.recipient_name is not None and order.recipient_handle is not None
        return PaymentOutcome(
            order_id=order.order_id,
            payment_id=result.gateway_payment_id,
            signature_verified=True,
            amount=order.major_amount,
            currency=order.currency,
            recipient_name=order.recipient_name,
            recipient_handle=order.recipient_handle,
            sender_name=sender_name,
        )

    async def pay(self, request: PaymentRequestDTO, sender_name: str) -> PaymentOutcome:
        """Run the whole round trip while holding the processing flag."""
        if self._processing:
            raise PaymentInProgress("A payment is already being processed")
        if self.awaiting_resubmission:
            raise PaymentInProgress(
                "A completed payment is still awaiting verification"
            )
        self._processing = True
        self.current_order = None
        self.pending_result = None
        try:
            order = await self.create_order(
                request.amount,
                request.currency,
                request.recipient_name,
                request.recipient_handle,
            )
            self.current_order = order
            result = await self.await_gateway_result(order)
            return await self.verify(order, result, sender_name)
        finally:
            self._processing = False

    @property
    def awaiting_resubmission(self) -> bool:
        """True while the current order was paid but could not be verified."""
        return (
            self.current_order is not None
            and self.current_order.status == "verifying"
            and self.pending_result is not None
            and not self._verifications
        )

    async def resubmit_verification(self, sender_name: str) -> PaymentOutcome:
        """Verify the kept checkout result of the current order again."""
        if self._processing:
            raise PaymentInProgress("A payment is already being processed")
        if not self.awaiting_resubmission:
            raise ValueError("There is no payment awaiting verification")
        order = self.current_order
        result = self.pending_result
        assert order is not None and result is not None
        logger.info("Resubmitting verification of order %s", order.order_id)
        self._processing = True
        try:
            return await self.verify(order, result, sender_name)
        finally:
            self._processing = False
