"""Confirmation records for verified payments and their delivery to the channel."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import timedelta, timezone
from typing import Optional

from ....domain.errors import ChatSphereError, DeliveryDegraded, VerificationFailed
from ....domain.payment.entities import (
    CONFIRMATION_TYPE_BY_DIRECTION,
    AttachmentField,
    ConfirmationRecord,
    Direction,
    PaymentAttachment,
    PaymentDetails,
    PaymentOutcome,
)
from ....domain.shared import ChannelProtocol
from ...chat.use_cases.classifier import format_amount
from ...shared.retry import DEFAULT_ATTEMPTS, RETRY_BACKOFF_START, retry_transient

logger = logging.getLogger(__name__)

DEFAULT_NOTIFICATION_DELAY = 1.0

DISPLAY_TIMEZONE = timezone(timedelta(hours=5, minutes=30), "IST")


def _display_time(outcome: PaymentOutcome) -> str:
    return outcome.timestamp.astimezone(DISPLAY_TIMEZONE).strftime("%d %b %Y, %I:%M %p")


def _confirmation_text(outcome: PaymentOutcome, direction: Direction) -> str:
    amount = format_amount(outcome.amount, outcome.currency)
    if direction == "sent":
        return (
            "💰 Payment Sent Successfully! ✅\n\n"
            f"💵 Amount: {amount}\n"
            f"👤 To: {outcome.recipient_name}\n"
            f"🏦 UPI: {outcome.recipient_handle}\n"
            f"🆔 Transaction ID: {outcome.payment_id}\n"
            f"📅 Time: {_display_time(outcome)}"
        )
    return (
        "🔔 Payment Received! ✅\n\n"
        f"💵 {amount} from {outcome.sender_name}\n"
        f"🆔 TXN: {outcome.payment_id}"
    )


def _payment_attachment(outcome: PaymentOutcome) -> PaymentAttachment:
    return PaymentAttachment(
        title="💰 Payment Confirmation",
        color="#10B981",
        fields=[
            AttachmentField(
                title="Amount", value=format_amount(outcome.amount, outcome.currency)
            ),
            AttachmentField(title="Recipient", value=outcome.recipient_name),
            AttachmentField(title="UPI ID", value=outcome.recipient_handle),
            AttachmentField(title="Transaction ID", value=outcome.payment_id),
        ],
        footer=f"Sent via ChatSphere • {_display_time(outcome)}",
        footer_icon="✅",
    )


def build_confirmation_record(
    outcome: PaymentOutcome, direction: Direction
) -> ConfirmationRecord:
    """Build the sender-facing ("sent") or recipient-facing ("received") record.

    Both directions carry the same denormalized copy of the outcome.
    """
    if not outcome.signature_verified:
        raise VerificationFailed("Refusing to confirm an unverified payment")
    details = PaymentDetails(
        amount=outcome.amount,
        currency=outcome.currency,
        recipient_name=outcome.recipient_name,
        recipient_upi=outcome.recipient_handle,
        transaction_id=outcome.payment_id,
        order_id=outcome.order_id,
        sender_name=outcome.sender_name,
        timestamp=outcome.timestamp.isoformat(),
        status="completed",
        type=direction,
    )
    return ConfirmationRecord(
        type=CONFIRMATION_TYPE_BY_DIRECTION[direction],
        text=_confirmation_text(outcome, direction),
        payment_details=details,
        attachments=[_payment_attachment(outcome)] if direction == "sent" else None,
    )


@dataclass(frozen=True)
class EmissionResult:
    outcome: PaymentOutcome
    sender_record_sent: bool
    recipient_record_sent: bool

    @property
    def delivered(self) -> bool:
        return self.sender_record_sent and self.recipient_record_sent

    def raise_for_delivery(self) -> None:
        """Raise DeliveryDegraded if either record is missing from the channel."""
        if self.delivered:
            return
        missing = []
        if not self.sender_record_sent:
            missing.append("sender confirmation")
        if not self.recipient_record_sent:
            missing.append("recipient notification")
        raise DeliveryDegraded(
            f"Payment {self.outcome.payment_id} succeeded but the "
            f"{' and '.join(missing)} could not be posted",
            outcome=self.outcome,
            sender_record_sent=self.sender_record_sent,
            recipient_record_sent=self.recipient_record_sent,
        )


class ConfirmationDelivery:
    """Handle on an emission: the sender record is done, the recipient one may not be."""

    def __init__(
        self,
        outcome: PaymentOutcome,
        sender_record_sent: bool,
        recipient_task: "asyncio.Task[bool]",
    ) -> None:
        self.outcome = outcome
        self.sender_record_sent = sender_record_sent
        self.recipient_task = recipient_task

    @property
    def recipient_pending(self) -> bool:
        return not self.recipient_task.done()

    def cancel(self) -> bool:
        """Cancel the pending recipient notification."""
        return self.recipient_task.cancel()

    async def wait(self) -> EmissionResult:
        """Wait for the recipient notification and report what was delivered."""
        await asyncio.wait({self.recipient_task})
        recipient_sent = (
            not self.recipient_task.cancelled() and self.recipient_task.result()
        )
        return EmissionResult(
            outcome=self.outcome,
            sender_record_sent=self.sender_record_sent,
            recipient_record_sent=recipient_sent,
        )


class ConfirmationEmitter:
    """Posts the two confirmation records of a verified payment into a channel.

    The sender record is sent first; the recipient record is scheduled after
    `notification_delay` seconds as a separate task. Send failures degrade the
    delivery, they never fail the payment.
    """

    def __init__(
        self,
        *,
        notification_delay: float = DEFAULT_NOTIFICATION_DELAY,
        attempts: int = DEFAULT_ATTEMPTS,
        backoff_start: float = RETRY_BACKOFF_START,
    ) -> None:
        if notification_delay < 0:
            raise ValueError("notification_delay must not be negative")
        self.notification_delay = notification_delay
        self.attempts = attempts
        self.backoff_start = backoff_start

    async def emit(
        self, channel: ChannelProtocol, outcome: PaymentOutcome
    ) -> ConfirmationDelivery:
        sender_record = build_confirmation_record(outcome, "sent")
        recipient_record = build_confirmation_record(outcome, "received")

        sender_sent = await self._send(channel, sender_record)
        recipient_task = asyncio.ensure_future(
            self._send_later(channel, recipient_record)
        )
        return ConfirmationDelivery(outcome, sender_sent, recipient_task)

    async def _send_later(
        self, channel: ChannelProtocol, record: ConfirmationRecord
    ) -> bool:
        if self.notification_delay:
            await asyncio.sleep(self.notification_delay)
        return await self._send(channel, record)

    async def _send(
        self, channel: ChannelProtocol, record: ConfirmationRecord
    ) -> bool:
        order_id: Optional[str] = record.payment_details.order_id
        try:
            await retry_transient(
                lambda: channel.send_message(record.to_message()),
                attempts=self.attempts,
                backoff_start=self.backoff_start,
                description=f"send {record.type} for order {order_id}",
            )
        except ChatSphereError as e:
            logger.warning(
                "Could not post %s for order %s to %s: %s",
                record.type,
                order_id,
                channel.cid,
                e,
            )
            return False
        logger.info("Posted %s for order %s", record.type, order_id)
        return True
