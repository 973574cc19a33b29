# src/sf_order/infrastructure/persistence.py
"""OrderRepository — order records on the key-value store.

The record keeps the storefront's historical shape: an ``items`` list holding a
single ``{product, quantity}`` entry with the full product snapshot embedded.
"""
import logging
from typing import Any

from src.sf_catalog.infrastructure.persistence import product_to_record, record_to_product
from src.sf_common.enums import OrderStatus
from src.sf_order.domain.models import Order, OrderLine, ShippingDetails
from src.sf_store.domain.repository import (
    KeyValueStoreProtocol,
    SnapshotCallback,
    TransactionFn,
    Unsubscribe,
)

logger = logging.getLogger(__name__)

COLLECTION = "orders"

# Display labels written by earlier storefront versions
_LEGACY_STATUS = {
    "Pending": OrderStatus.PENDING,
    "Lunas": OrderStatus.PAID,
    "Sedang Diantar": OrderStatus.SHIPPED,
    "Diterima": OrderStatus.COMPLETED,
    "Ditolak": OrderStatus.REJECTED,
    "Confirmed": OrderStatus.CONFIRMED,
    "Dibatalkan": OrderStatus.CANCELLED,
}


def parse_status(raw: str | None) -> OrderStatus:
    """Stored status string to OrderStatus.

    A missing status reads as PENDING. An unrecognised one is logged and read
    as REJECTED, which the sweeper and revenue totals both ignore.
    """
    if not raw:
        return OrderStatus.PENDING
    if raw in _LEGACY_STATUS:
        return _LEGACY_STATUS[raw]
    try:
        return OrderStatus(raw)
    except ValueError:
        logger.warning(
            "Unknown order status %r; reading it as %s", raw, OrderStatus.REJECTED.value
        )
        return OrderStatus.REJECTED


# ---------------------------------------------------------------------------
# Record mappers
# ---------------------------------------------------------------------------


def record_to_order(order_id: str, record: dict[str, Any]) -> Order:
    """Convert a stored record to an Order domain object."""
    item = (record.get("items") or [{}])[0]
    product_record = item.get("product") or {}
    shipping = record.get("shippingDetails")
    return Order(
        id=order_id,
        user_id=record.get("userId", ""),
        username=record.get("username", ""),
        line=OrderLine(
            product=record_to_product(product_record.get("id", ""), product_record),
            quantity=item.get("quantity") or 0,
        ),
        total_price=record.get("totalPrice") or 0,
        status=parse_status(record.get("status")),
        timestamp=record.get("timestamp") or 0,
        payment_proof=record.get("paymentProof") or None,
        shipping_details=(
            ShippingDetails(
                name=shipping.get("name", ""),
                address=shipping.get("address", ""),
                phone=shipping.get("phone", ""),
            )
            if shipping
            else None
        ),
        hidden_for_user=bool(record.get("hiddenForUser")),
    )


def order_to_record(order: Order) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": order.id,
        "userId": order.user_id,
        "username": order.username,
        "items": [{"product": product_to_record(order.product), "quantity": order.quantity}],
        "totalPrice": order.total_price,
        "status": order.status.value,
        "timestamp": order.timestamp,
        "hiddenForUser": order.hidden_for_user,
    }
    if order.payment_proof:
        record["paymentProof"] = order.payment_proof
    if order.shipping_details is not None:
        record["shippingDetails"] = {
            "name": order.shipping_details.name,
            "address": order.shipping_details.address,
            "phone": order.shipping_details.phone,
        }
    return record


def snapshot_to_orders(snapshot: dict[str, Any]) -> list[Order]:
    """Orders newest first."""
    orders = [record_to_order(key, record) for key, record in snapshot.items()]
    orders.sort(key=lambda o: o.timestamp, reverse=True)
    return orders


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    def __init__(self, store: KeyValueStoreProtocol) -> None:
        self._store = store

    def new_id(self) -> str:
        return self._store.push_key(COLLECTION)

    async def save(self, order: Order) -> None:
        await self._store.set(f"{COLLECTION}/{order.id}", order_to_record(order))

    async def get_by_id(self, order_id: str) -> Order | None:
        record = await self._store.get(f"{COLLECTION}/{order_id}")
        return record_to_order(order_id, record) if record else None

    async def list_all(self) -> list[Order]:
        return snapshot_to_orders(await self._store.children(COLLECTION))

    async def update_fields(self, order_id: str, fields: dict[str, Any]) -> None:
        await self._store.update(f"{COLLECTION}/{order_id}", fields)

    async def transact(self, order_id: str, fn: TransactionFn) -> tuple[bool, Any]:
        return await self._store.transaction(f"{COLLECTION}/{order_id}", fn)

    async def delete(self, order_id: str) -> None:
        await self._store.remove(f"{COLLECTION}/{order_id}")

    async def delete_many(self, order_ids: list[str]) -> None:
        if order_ids:
            await self._store.update(COLLECTION, {order_id: None for order_id in order_ids})

    async def subscribe(self, callback: SnapshotCallback) -> Unsubscribe:
        return await self._store.subscribe(COLLECTION, callback)
