"""Story: Alice enters a negative amount."""

from __future__ import annotations

from typing import Callable

import pytest

from chatsphere.domain.chat.entities import AuthenticatedUser
from chatsphere.domain.errors import InvalidInput
from tests.fixtures import FakeGateway, InMemoryTransportServer
from tests.use_cases.helpers import ChatParticipant


@pytest.mark.asyncio
async def test_sender_enters_negative_amount_no_order_created(
    participant_factory: Callable[..., ChatParticipant],
    transport_server: InMemoryTransportServer,
    gateway: FakeGateway,
    alice: AuthenticatedUser,
) -> None:
    """
    Story: Invalid amounts are rejected before any network call.
    """
    # Given: Alice has her chat with Bob open
    sender = participant_factory(alice)
    await sender.open_chat("bob")

    # When: She tries to pay -5
    with pytest.raises(InvalidInput):
        await sender.pay(-5, "Bob Rao", "bob@upi")

    # Then: No order exists anywhere and the chat is untouched
    assert sender.payment_api.create_order_calls == 0
    assert gateway.create_calls == 0
    assert sender.checkout.opened == []
    assert transport_server.messages_in("alice-bob") == []
    assert not sender.orchestrator.is_processing
