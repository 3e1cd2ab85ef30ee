"""Payment order repository implementation over a storage abstraction."""

from __future__ import annotations

from typing import Optional

from ...domain.payment.entities import PaymentOrder
from ...domain.payment.order_repository import PaymentOrderRepository
from ..storage import KeyValueStore


class PaymentOrderRepositoryImpl(PaymentOrderRepository):
    """PaymentOrder repository using a KeyValueStore."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def save(self, order: PaymentOrder) -> PaymentOrder:
        await self.store.set(f"payment_order:{order.order_id}", order.model_dump_json())
        return order

    async def get_by_order_id(self, order_id: str) -> Optional[PaymentOrder]:
        data = await self.store.get(f"payment_order:{order_id}")
        if not data:
            return None
        return PaymentOrder.model_validate_json(data)
