"""Unit tests for inbound message classification."""

from __future__ import annotations

from typing import Any, AsyncIterator, Mapping

import pytest

from chatsphere.application.chat.use_cases.classifier import (
    RenderAs,
    classify,
    dispatch,
    format_amount,
    payment_card,
)


def _details(**overrides: Any) -> dict[str, Any]:
    details = {
        "amount": 500,
        "currency": "INR",
        "recipient_name": "Bob Rao",
        "recipient_upi": "bob@upi",
        "transaction_id": "pay_123",
        "order_id": "order_123",
        "sender_name": "Alice Sharma",
        "timestamp": "2024-05-01T10:00:00+00:00",
        "status": "completed",
        "type": "sent",
    }
    details.update(overrides)
    return details


def _confirmation() -> dict[str, Any]:
    return {"type": "payment_confirmation", "text": "sent", "payment_details": _details()}


def _notification() -> dict[str, Any]:
    return {
        "type": "payment_notification",
        "text": "received",
        "payment_details": _details(type="received"),
    }


class TestClassify:
    @pytest.mark.parametrize(
        "message",
        [
            {"text": "hello"},
            {"type": "regular", "text": "hi"},
            {"type": None, "text": "hi"},
            {"type": 7, "text": "hi"},
        ],
    )
    def test_plain_text(self, message) -> None:
        assert classify(message) is RenderAs.PLAIN_TEXT

    def test_payment_confirmation(self) -> None:
        assert classify(_confirmation()) is RenderAs.PAYMENT_CONFIRMATION

    def test_payment_notification(self) -> None:
        assert classify(_notification()) is RenderAs.PAYMENT_NOTIFICATION

    @pytest.mark.parametrize("missing", ["amount", "transaction_id", "sender_name", "type"])
    def test_missing_required_details_suppressed(self, missing) -> None:
        message = _confirmation()
        del message["payment_details"][missing]
        assert classify(message) is RenderAs.SUPPRESSED

    def test_missing_details_suppressed(self) -> None:
        assert classify({"type": "payment_confirmation", "text": "x"}) is RenderAs.SUPPRESSED

    def test_direction_contradicting_type_suppressed(self) -> None:
        message = _confirmation()
        message["payment_details"]["type"] = "received"
        assert classify(message) is RenderAs.SUPPRESSED

    def test_unknown_payment_type_suppressed(self) -> None:
        message = _confirmation()
        message["type"] = "payment_refund"
        assert classify(message) is RenderAs.SUPPRESSED

    @pytest.mark.parametrize("message", [None, "text", 42, ["type"]])
    def test_non_mapping_suppressed(self, message) -> None:
        assert classify(message) is RenderAs.SUPPRESSED


class TestPaymentCard:
    def test_sent_card_shows_recipient_and_handle(self) -> None:
        card = payment_card(_confirmation())
        assert card is not None
        assert card.title == "Payment Sent"
        assert card.amount == "₹500"
        assert card.counterpart_label == "To"
        assert card.counterpart_name == "Bob Rao"
        assert card.handle == "bob@upi"
        assert card.transaction_id == "pay_123"
        assert card.received is False

    def test_received_card_shows_sender_without_handle(self) -> None:
        card = payment_card(_notification())
        assert card is not None
        assert card.title == "Money Received"
        assert card.counterpart_label == "From"
        assert card.counterpart_name == "Alice Sharma"
        assert card.handle is None
        assert card.received is True

    def test_plain_text_has_no_card(self) -> None:
        assert payment_card({"text": "hello"}) is None


def test_format_amount() -> None:
    assert format_amount(500, "INR") == "₹500"
    assert format_amount(12.5, "USD") == "12.5 USD"


async def _stream(messages: list[Any]) -> AsyncIterator[Any]:
    for message in messages:
        yield message


@pytest.mark.asyncio
async def test_dispatch_routes_every_message() -> None:
    seen: list[tuple[Any, RenderAs]] = []

    async def handler(message: Mapping[str, Any], render_as: RenderAs) -> None:
        seen.append((message, render_as))

    malformed = {"type": "payment_confirmation", "payment_details": {}}
    count = await dispatch(
        _stream([{"text": "hi"}, _confirmation(), malformed, _notification()]),
        handler,
    )

    assert count == 4
    assert [render_as for _, render_as in seen] == [
        RenderAs.PLAIN_TEXT,
        RenderAs.PAYMENT_CONFIRMATION,
        RenderAs.SUPPRESSED,
        RenderAs.PAYMENT_NOTIFICATION,
    ]
