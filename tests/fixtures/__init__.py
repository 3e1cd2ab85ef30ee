"""Test fixtures for in-memory implementations."""

from .fake_gateway import FakeCheckout, FakeGateway
from .in_memory_repositories import (
    InMemoryGroupRepository,
    InMemoryPaymentOrderRepository,
    InMemoryUserRepository,
)
from .in_memory_storage import InMemoryKeyValueStore
from .in_memory_transport import (
    InMemoryChannel,
    InMemoryTransportClient,
    InMemoryTransportServer,
    InMemoryUserDirectory,
)

__all__ = [
    "FakeCheckout",
    "FakeGateway",
    "InMemoryChannel",
    "InMemoryGroupRepository",
    "InMemoryKeyValueStore",
    "InMemoryPaymentOrderRepository",
    "InMemoryTransportClient",
    "InMemoryTransportServer",
    "InMemoryUserDirectory",
    "InMemoryUserRepository",
]
