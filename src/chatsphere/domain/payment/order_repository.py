"""Payment order domain repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from .entities import PaymentOrder


class PaymentOrderRepository(ABC):
    """Abstract repository interface for PaymentOrder entities."""

    @abstractmethod
    async def save(self, order: PaymentOrder) -> PaymentOrder:
        """Create or overwrite an order."""
        pass

    @abstractmethod
    async def get_by_order_id(self, order_id: str) -> Optional[PaymentOrder]:
        """Get an order by its gateway order id."""
        pass
