"""Inbound message classification and payment card rendering."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterable, Awaitable, Callable, Mapping, Optional

from pydantic import ValidationError

from ....domain.payment.entities import (
    CONFIRMATION_TYPE_BY_DIRECTION,
    PAYMENT_CONFIRMATION,
    PAYMENT_NOTIFICATION,
    PaymentDetails,
)

logger = logging.getLogger(__name__)

PAYMENT_TYPE_PREFIX = "payment_"

CURRENCY_SYMBOLS = {"INR": "₹"}


class RenderAs(str, Enum):
    PLAIN_TEXT = "plain_text"
    PAYMENT_CONFIRMATION = "payment_confirmation"
    PAYMENT_NOTIFICATION = "payment_notification"
    SUPPRESSED = "suppressed"


_RENDER_BY_TYPE = {
    PAYMENT_CONFIRMATION: RenderAs.PAYMENT_CONFIRMATION,
    PAYMENT_NOTIFICATION: RenderAs.PAYMENT_NOTIFICATION,
}


def _parse_payment_details(message: Mapping[str, Any]) -> Optional[PaymentDetails]:
    raw = message.get("payment_details")
    if not isinstance(raw, Mapping):
        return None
    try:
        details = PaymentDetails.model_validate(dict(raw))
    except ValidationError:
        return None
    if CONFIRMATION_TYPE_BY_DIRECTION[details.type] != message.get("type"):
        return None
    return details


def classify(message: Any) -> RenderAs:
    """Decide how a message renders. Never raises.

    Payment-typed messages missing required payment fields are suppressed so
    that a malformed historical message cannot break the channel view.
    """
    if not isinstance(message, Mapping):
        return RenderAs.SUPPRESSED
    message_type = message.get("type")
    if not isinstance(message_type, str) or not message_type.startswith(
        PAYMENT_TYPE_PREFIX
    ):
        return RenderAs.PLAIN_TEXT
    render_as = _RENDER_BY_TYPE.get(message_type)
    if render_as is None or _parse_payment_details(message) is None:
        return RenderAs.SUPPRESSED
    return render_as


def format_amount(amount: float, currency: str) -> str:
    symbol = CURRENCY_SYMBOLS.get(currency)
    return f"{symbol}{amount}" if symbol else f"{amount} {currency}"


@dataclass(frozen=True)
class PaymentCard:
    """View model for a payment message."""

    title: str
    amount: str
    counterpart_label: str
    counterpart_name: Optional[str]
    handle: Optional[str]
    transaction_id: str
    timestamp: Optional[str]
    received: bool


def payment_card(message: Mapping[str, Any]) -> Optional[PaymentCard]:
    """Build the card for a payment message, or None if it is not renderable."""
    if classify(message) not in (
        RenderAs.PAYMENT_CONFIRMATION,
        RenderAs.PAYMENT_NOTIFICATION,
    ):
        return None
    details = _parse_payment_details(message)
    assert details is not None
    received = details.type == "received"
    return PaymentCard(
        title="Money Received" if received else "Payment Sent",
        amount=format_amount(details.amount, details.currency),
        counterpart_label="From" if received else "To",
        counterpart_name=details.sender_name if received else details.recipient_name,
        handle=None if received else details.recipient_upi,
        transaction_id=details.transaction_id,
        timestamp=details.timestamp,
        received=received,
    )


MessageHandler = Callable[[Mapping[str, Any], RenderAs], Awaitable[None]]


async def dispatch(
    messages: AsyncIterable[Mapping[str, Any]], handler: MessageHandler
) -> int:
    """Classify each inbound message and hand it to `handler`.

    Returns the number of messages handled once the stream ends.
    """
    handled = 0
    async for message in messages:
        render_as = classify(message)
        if render_as is RenderAs.SUPPRESSED and isinstance(message, Mapping):
            logger.debug("Suppressed malformed message %s", message.get("id"))
        await handler(message, render_as)
        handled += 1
    return handled
