"""Pytest fixtures for use case tests."""

from __future__ import annotations

from typing import AsyncGenerator, Callable

import pytest

from chatsphere.application.chat.use_cases.identity import IdentityResolver
from chatsphere.application.chat.use_cases.session import SessionEstablisher
from chatsphere.application.payment.use_cases.confirmation import ConfirmationEmitter
from chatsphere.application.payment.use_cases.orchestrator import PaymentOrchestrator
from chatsphere.application.payment.use_cases.payment import PaymentService
from chatsphere.domain.chat.entities import AuthenticatedUser
from tests.fixtures.credentials import TRANSPORT_API_KEY, TRANSPORT_API_SECRET
from tests.fixtures import (
    FakeCheckout,
    FakeGateway,
    InMemoryPaymentOrderRepository,
    InMemoryTransportServer,
    InMemoryUserDirectory,
)
from tests.use_cases.helpers import ChatParticipant, UseCasePaymentApi


# ============================================================================
# Transport Fixtures
# ============================================================================


@pytest.fixture
def transport_server() -> InMemoryTransportServer:
    return InMemoryTransportServer()


@pytest.fixture
def identity_resolver(transport_server: InMemoryTransportServer) -> IdentityResolver:
    return IdentityResolver(
        TRANSPORT_API_KEY,
        TRANSPORT_API_SECRET,
        user_directory=InMemoryUserDirectory(transport_server),
    )


@pytest.fixture
def session_factory(
    transport_server: InMemoryTransportServer,
) -> Callable[[], SessionEstablisher]:
    """Each call gives a new session with its own transport client."""

    def factory() -> SessionEstablisher:
        return SessionEstablisher(transport_server.client(), backoff_start=0)

    return factory


@pytest.fixture
async def session(
    session_factory: Callable[[], SessionEstablisher],
) -> AsyncGenerator[SessionEstablisher, None]:
    establisher = session_factory()
    yield establisher
    await establisher.disconnect()


# ============================================================================
# Payment Fixtures
# ============================================================================


@pytest.fixture
async def order_repository() -> AsyncGenerator[InMemoryPaymentOrderRepository, None]:
    repo = InMemoryPaymentOrderRepository()
    yield repo
    repo.clear()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def checkout(gateway_key_secret: str) -> FakeCheckout:
    return FakeCheckout(gateway_key_secret)


@pytest.fixture
def payment_service(
    gateway: FakeGateway,
    order_repository: InMemoryPaymentOrderRepository,
    gateway_key_secret: str,
) -> PaymentService:
    return PaymentService(
        gateway=gateway,
        order_repository=order_repository,
        key_secret=gateway_key_secret,
    )


@pytest.fixture
def payment_api(
    payment_service: PaymentService,
    alice: AuthenticatedUser,
    identity_resolver: IdentityResolver,
) -> UseCasePaymentApi:
    return UseCasePaymentApi(payment_service, alice, identity_resolver)


@pytest.fixture
def orchestrator(
    payment_api: UseCasePaymentApi, checkout: FakeCheckout
) -> PaymentOrchestrator:
    return PaymentOrchestrator(payment_api, checkout)


@pytest.fixture
def emitter() -> ConfirmationEmitter:
    return ConfirmationEmitter(notification_delay=0, backoff_start=0)


# ============================================================================
# Participant Fixtures
# ============================================================================


@pytest.fixture
async def participant_factory(
    transport_server: InMemoryTransportServer,
    identity_resolver: IdentityResolver,
    payment_service: PaymentService,
    gateway_key_secret: str,
) -> AsyncGenerator[Callable[..., ChatParticipant], None]:
    """Build chat participants whose transport only accepts tokens we issued."""
    transport_server.token_validator = (
        lambda token, identity: identity_resolver.validate_access_token(token, identity)
    )
    created: list[ChatParticipant] = []

    def factory(
        user: AuthenticatedUser, checkout_mode: str = "complete", **kwargs
    ) -> ChatParticipant:
        participant = ChatParticipant(
            user,
            identity_resolver=identity_resolver,
            transport_server=transport_server,
            payment_service=payment_service,
            checkout=FakeCheckout(gateway_key_secret, checkout_mode),
            **kwargs,
        )
        created.append(participant)
        return participant

    yield factory
    for participant in created:
        await participant.close()
