# src/sf_order/application/service.py
"""OrderStore — aggregate root over orders, their products and buyer messages.

Owns the wiring of PricingEngine, StockLedger, VoucherGenerator,
NotificationDispatcher, OrderLifecycle and ExpirySweeper against one injected
key-value store. Every multi-step operation is a sequence of independent store
calls; the only atomic steps are the per-record conditional updates.
"""
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from config.settings import settings
from src.sf_catalog.domain.models import Product
from src.sf_catalog.domain.pricing import price
from src.sf_catalog.domain.stock_ledger import StockLedger
from src.sf_catalog.infrastructure.persistence import ProductRepository, snapshot_to_products
from src.sf_common.datetime_utils import MS_PER_MINUTE, now_ms
from src.sf_common.enums import OrderStatus
from src.sf_common.errors import ForbiddenError, OrderNotFoundError, PaymentProofLockedError
from src.sf_messaging.domain.dispatcher import NotificationDispatcher, visible_to
from src.sf_messaging.domain.models import Message
from src.sf_messaging.domain.voucher import VoucherGenerator
from src.sf_messaging.infrastructure.persistence import MessageRepository, snapshot_to_messages
from src.sf_order.domain.expiry import DEFAULT_TIMEOUT_MS, ExpirySweeper
from src.sf_order.domain.lifecycle import OrderLifecycle, TransitionResult
from src.sf_order.domain.models import Order, OrderLine, ShippingDetails
from src.sf_order.infrastructure.persistence import (
    OrderRepository,
    record_to_order,
    snapshot_to_orders,
)
from src.sf_store.application.service import get_store
from src.sf_store.domain.repository import KeyValueStoreProtocol, Snapshot, Unsubscribe

logger = logging.getLogger(__name__)

OrdersCallback = Callable[[list[Order]], Awaitable[None]]
ProductsCallback = Callable[[list[Product]], Awaitable[None]]
MessagesCallback = Callable[[list[Message]], Awaitable[None]]


def user_view(orders: list[Order], user_id: str) -> list[Order]:
    """A customer's own orders, minus the ones they hid."""
    return [o for o in orders if o.visible_to_user(user_id)]


class OrderStore:
    def __init__(
        self,
        store: KeyValueStoreProtocol,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        clock: Callable[[], int] = now_ms,
        vouchers: VoucherGenerator | None = None,
    ) -> None:
        self._clock = clock
        self._orders = OrderRepository(store)
        self._products = ProductRepository(store)
        self._messages = MessageRepository(store)
        self.dispatcher = NotificationDispatcher(self._messages, clock=clock)
        self.lifecycle = OrderLifecycle(
            self._orders,
            StockLedger(self._products),
            vouchers or VoucherGenerator(),
            self.dispatcher,
        )
        self.sweeper = ExpirySweeper(self._orders, self.lifecycle, timeout_ms, clock=clock)

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def create_order(
        self,
        user_id: str,
        username: str,
        product: Product,
        quantity: int,
        shipping: ShippingDetails | None = None,
    ) -> str:
        """Persist a PENDING order priced from `product` as it is right now.

        Live stock is not consulted here; it is only deducted on payment.
        """
        if quantity <= 0:
            raise ValueError(f"quantity must be positive, got {quantity}")
        order = Order(
            id=self._orders.new_id(),
            user_id=user_id,
            username=username,
            line=OrderLine(product=product, quantity=quantity),
            total_price=price(product, quantity),
            status=OrderStatus.PENDING,
            timestamp=self._clock(),
            shipping_details=shipping,
        )
        await self._orders.save(order)
        logger.info(
            "Order %s created: user=%s product=%s qty=%d total=%s",
            order.id,
            user_id,
            product.id,
            quantity,
            order.total_price,
        )
        return order.id

    async def get_order(self, order_id: str) -> Order:
        order = await self._orders.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def get_user_order(self, order_id: str, user_id: str) -> Order:
        order = await self.get_order(order_id)
        if order.user_id != user_id:
            raise ForbiddenError(f"Order {order_id} belongs to another user")
        return order

    async def list_orders(self, user_id: str | None = None) -> list[Order]:
        """All orders newest first (admin), or one customer's visible orders."""
        orders = await self._orders.list_all()
        self.sweeper.observe(orders)
        return orders if user_id is None else user_view(orders, user_id)

    async def subscribe_orders(self, callback: OrdersCallback) -> Unsubscribe:
        async def on_snapshot(snapshot: Snapshot) -> None:
            orders = snapshot_to_orders(snapshot)
            self.sweeper.observe(orders)
            await callback(orders)

        return await self._orders.subscribe(on_snapshot)

    async def transition_order(self, order_id: str, status: OrderStatus | str) -> TransitionResult:
        return await self.lifecycle.transition(order_id, status)

    async def cancel_order_by_user(self, order_id: str, user_id: str) -> Order:
        return await self.lifecycle.cancel_by_user(order_id, user_id)

    async def confirm_order_received(self, order_id: str, user_id: str) -> TransitionResult:
        return await self.lifecycle.confirm_received(order_id, user_id)

    async def attach_payment_proof(self, order_id: str, user_id: str, proof: str) -> Order:
        """Attach the buyer's payment proof; after this the buyer cannot change the order."""

        def attach(record: Any) -> dict[str, Any] | None:
            if record is None:
                return None
            order = record_to_order(order_id, record)
            if order.user_id != user_id:
                raise ForbiddenError(f"Order {order_id} belongs to another user")
            if not order.is_pending or order.payment_proof:
                raise PaymentProofLockedError(order_id)
            return {**record, "paymentProof": proof}

        committed, record = await self._orders.transact(order_id, attach)
        if not committed:
            raise OrderNotFoundError(order_id)
        logger.info("Payment proof attached to order %s", order_id)
        return record_to_order(order_id, record)

    async def hide_order_for_user(self, order_id: str, user_id: str | None = None) -> None:
        """Tombstone the order in the customer's view; admins still see it."""
        order = await self.get_order(order_id)
        if user_id is not None and order.user_id != user_id:
            raise ForbiddenError(f"Order {order_id} belongs to another user")
        await self._orders.update_fields(order_id, {"hiddenForUser": True})

    async def hard_delete_order(self, order_id: str) -> None:
        await self.get_order(order_id)
        await self._orders.delete(order_id)
        logger.info("Order %s deleted", order_id)

    async def hard_delete_orders_by_user(self, user_id: str) -> int:
        order_ids = [o.id for o in await self._orders.list_all() if o.user_id == user_id]
        await self._orders.delete_many(order_ids)
        logger.info("Deleted %d orders of user %s", len(order_ids), user_id)
        return len(order_ids)

    # ------------------------------------------------------------------
    # Products feed
    # ------------------------------------------------------------------

    async def subscribe_products(self, callback: ProductsCallback) -> Unsubscribe:
        async def on_snapshot(snapshot: Snapshot) -> None:
            await callback(snapshot_to_products(snapshot))

        return await self._products.subscribe(on_snapshot)

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def send_message(self, target: str, title: str, content: str) -> Message:
        return await self.dispatcher.send(target, title, content)

    async def mark_message_read(self, message_id: str, user_id: str | None = None) -> Message:
        return await self.dispatcher.mark_read(message_id, user_id)

    async def delete_message(self, message_id: str) -> None:
        await self.dispatcher.delete(message_id)

    async def list_messages(self, user_id: str | None = None) -> list[Message]:
        messages = await self._messages.list_all()
        return messages if user_id is None else visible_to(messages, user_id)

    async def subscribe_messages(self, callback: MessagesCallback) -> Unsubscribe:
        async def on_snapshot(snapshot: Snapshot) -> None:
            await callback(snapshot_to_messages(snapshot))

        return await self._messages.subscribe(on_snapshot)


_order_store: OrderStore | None = None


async def get_order_store() -> OrderStore:
    global _order_store  # noqa: PLW0603
    if _order_store is None:
        _order_store = OrderStore(
            await get_store(),
            timeout_ms=settings.ORDER_PAYMENT_TIMEOUT_MINUTES * MS_PER_MINUTE,
        )
    return _order_store


def reset_order_store() -> None:
    global _order_store  # noqa: PLW0603
    _order_store = None
