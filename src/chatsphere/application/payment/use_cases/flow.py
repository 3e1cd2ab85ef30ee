"""Send money inside the connected chat."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ....domain.payment.entities import PaymentOrder, PaymentOutcome
from ...chat.use_cases.session import ChatSession, SessionEstablisher
from ..dtos import PaymentRequestDTO
from .confirmation import ConfirmationDelivery, ConfirmationEmitter
from .orchestrator import PaymentOrchestrator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentReceipt:
    order: PaymentOrder
    outcome: PaymentOutcome
    delivery: ConfirmationDelivery


class ChatPaymentFlow:
    """Pay the peer of a connected session and confirm it in that session's channel."""

    def __init__(
        self,
        sessions: SessionEstablisher,
        orchestrator: PaymentOrchestrator,
        emitter: ConfirmationEmitter,
    ) -> None:
        self.sessions = sessions
        self.orchestrator = orchestrator
        self.emitter = emitter

    async def send_payment(self, request: PaymentRequestDTO) -> PaymentReceipt:
        session = self.sessions.require_session()
        outcome = await self.orchestrator.pay(
            request, sender_name=session.identity.display_name
        )
        return await self._confirm(session, outcome)

    async def resume_payment(self) -> PaymentReceipt:
        """Verify and confirm a payment whose verification could not complete.

        Reuses the checkout result the orchestrator kept; no new order is made.
        """
        session = self.sessions.require_session()
        outcome = await self.orchestrator.resubmit_verification(
            sender_name=session.identity.display_name
        )
        return await self._confirm(session, outcome)

    async def _confirm(
        self, session: ChatSession, outcome: PaymentOutcome
    ) -> PaymentReceipt:
        order = self.orchestrator.current_order
        assert order is not None
        delivery = await self.emitter.emit(session.channel, outcome)
        if not delivery.sender_record_sent:
            logger.warning(
                "Payment %s verified but not confirmed in %s",
                outcome.payment_id,
                session.key.cid,
            )
        return PaymentReceipt(order=order, outcome=outcome, delivery=delivery)
