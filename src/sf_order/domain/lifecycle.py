"""OrderLifecycle — order status state machine and its side effects.

    PENDING ──► PAID ──► SHIPPED ──► COMPLETED        (physical)
       │          └────────────────► COMPLETED        (digital, automatic)
       ├──► CANCELLED ──► PAID  (late payment accepted by admin)
       └──► REJECTED  ──► PAID

Entering PAID or COMPLETED from PENDING, CANCELLED or REJECTED settles the
order, exactly once:
  1. stock deduction through StockLedger, when the product still exists
  2. digital products skip shipping: the target becomes COMPLETED
  3. products with an auto-message rule get vouchers delivered to the buyer

The status change is claimed with a conditional update on the order record
before any side effect runs, so concurrent or repeated PAID requests see the
order already settled and do nothing. A failed deduction releases the claim;
a failed delivery leaves stock and status committed.

Moves outside the graph above are inert: nothing is written and the result
reports the unchanged status. A settled order therefore never returns to an
unsettled state. CONFIRMED, a legacy value, cannot be targeted at all.

A product deleted after the order was placed is not an obstacle to payment:
the order carries its own product snapshot, so the deduction is skipped with a
warning and the status and vouchers still go through.
"""
import logging
from dataclasses import dataclass
from typing import Any

from src.sf_catalog.domain.stock_ledger import Deduction, StockLedger
from src.sf_common.enums import OrderStatus
from src.sf_common.errors import (
    ForbiddenError,
    InvalidTransitionError,
    OrderNotCancellableError,
    OrderNotFoundError,
    PaymentProofLockedError,
    ProductNotFoundError,
)
from src.sf_messaging.domain.dispatcher import NotificationDispatcher
from src.sf_messaging.domain.voucher import VoucherGenerator, compose_message
from src.sf_order.domain.models import Order
from src.sf_order.infrastructure.persistence import OrderRepository, parse_status, record_to_order

logger = logging.getLogger(__name__)

SETTLING_TARGETS = frozenset({OrderStatus.PAID, OrderStatus.COMPLETED})
UNSETTLED_SOURCES = frozenset({OrderStatus.PENDING, OrderStatus.CANCELLED, OrderStatus.REJECTED})
TERMINAL_STATES = frozenset({OrderStatus.CANCELLED, OrderStatus.REJECTED, OrderStatus.COMPLETED})

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset(
        {OrderStatus.PAID, OrderStatus.CANCELLED, OrderStatus.REJECTED, OrderStatus.COMPLETED}
    ),
    OrderStatus.PAID: frozenset({OrderStatus.SHIPPED, OrderStatus.COMPLETED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.CANCELLED: frozenset({OrderStatus.PAID, OrderStatus.COMPLETED}),
    OrderStatus.REJECTED: frozenset({OrderStatus.PAID, OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CONFIRMED: frozenset(),
}


def allowed(previous: OrderStatus, target: OrderStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(previous, frozenset())


def settles(previous: OrderStatus, target: OrderStatus) -> bool:
    """True when moving previous -> target must deduct stock and deliver vouchers."""
    return target in SETTLING_TARGETS and previous in UNSETTLED_SOURCES


def resolve_target(order: Order, target: OrderStatus) -> OrderStatus:
    """Digital products never rest in PAID: paying one completes it."""
    if target == OrderStatus.PAID and order.product.is_digital:
        return OrderStatus.COMPLETED
    return target


@dataclass
class TransitionResult:
    order_id: str
    previous: OrderStatus
    status: OrderStatus
    settled: bool = False
    deduction: Deduction | None = None
    voucher_message_id: str | None = None

    @property
    def changed(self) -> bool:
        return self.previous != self.status


class OrderLifecycle:
    def __init__(
        self,
        orders: OrderRepository,
        ledger: StockLedger,
        vouchers: VoucherGenerator,
        dispatcher: NotificationDispatcher,
    ) -> None:
        self._orders = orders
        self._ledger = ledger
        self._vouchers = vouchers
        self._dispatcher = dispatcher

    async def transition(self, order_id: str, target: OrderStatus | str) -> TransitionResult:
        target = OrderStatus(target)
        if target == OrderStatus.CONFIRMED:
            raise InvalidTransitionError(order_id, target.value)

        seen: dict[str, Any] = {}

        def claim(record: Any) -> dict[str, Any] | None:
            if record is None:
                return None
            order = record_to_order(order_id, record)
            final = resolve_target(order, target)
            seen.update(order=order, final=final)
            if order.status == final or not allowed(order.status, final):
                return None
            return {**record, "status": final.value}

        committed, _ = await self._orders.transact(order_id, claim)
        if "order" not in seen:
            raise OrderNotFoundError(order_id)

        order: Order = seen["order"]
        final: OrderStatus = seen["final"]
        result = TransitionResult(order_id=order_id, previous=order.status, status=final)
        if not committed:
            if order.status != final:
                logger.warning(
                    "Order %s: %s -> %s is outside the lifecycle; ignored",
                    order_id,
                    order.status.value,
                    final.value,
                )
                result.status = order.status
            else:
                logger.info("Order %s already %s; nothing to do", order_id, final.value)
            return result

        logger.info("Order %s: %s -> %s", order_id, order.status.value, final.value)

        if settles(order.status, final):
            await self._settle(order, final, result)
        return result

    async def _settle(self, order: Order, final: OrderStatus, result: TransitionResult) -> None:
        result.settled = True
        try:
            result.deduction = await self._ledger.deduct(order.product.id, order.quantity)
        except ProductNotFoundError:
            logger.warning(
                "Product %s of order %s no longer exists; settling without stock deduction",
                order.product.id,
                order.id,
            )
        except Exception:
            logger.exception("Stock deduction failed for order %s; releasing claim", order.id)
            await self._release_claim(order.id, claimed=final, previous=order.status)
            raise

        if not order.product.has_auto_message:
            return
        try:
            codes = self._vouchers.issue(order.quantity)
            title, content = compose_message(
                order.product.name,
                order.product.auto_message.text if order.product.auto_message else "",
                order.quantity,
                codes,
            )
            message = await self._dispatcher.send(order.user_id, title, content)
        except Exception:
            # Stock and status stay committed; the admin has to resend by hand
            logger.exception("Voucher delivery failed for order %s", order.id)
            raise
        result.voucher_message_id = message.id

    async def _release_claim(
        self, order_id: str, claimed: OrderStatus, previous: OrderStatus
    ) -> None:
        def release(record: Any) -> dict[str, Any] | None:
            if record is None or parse_status(record.get("status")) != claimed:
                return None
            return {**record, "status": previous.value}

        await self._orders.transact(order_id, release)

    async def expire(self, order_id: str, now_ms: int, timeout_ms: int) -> bool:
        """Cancel the order if it is still PENDING past its payment deadline."""

        def cancel_if_stale(record: Any) -> dict[str, Any] | None:
            if record is None or parse_status(record.get("status")) != OrderStatus.PENDING:
                return None
            if now_ms - (record.get("timestamp") or 0) <= timeout_ms:
                return None
            return {**record, "status": OrderStatus.CANCELLED.value}

        committed, _ = await self._orders.transact(order_id, cancel_if_stale)
        if committed:
            logger.info("Order %s expired unpaid; cancelled", order_id)
        return committed

    async def cancel_by_user(self, order_id: str, user_id: str) -> Order:
        """Customer cancels an unpaid order; it is also hidden from their history."""

        def cancel(record: Any) -> dict[str, Any] | None:
            if record is None:
                return None
            order = record_to_order(order_id, record)
            if order.user_id != user_id:
                raise ForbiddenError(f"Order {order_id} belongs to another user")
            if not order.is_pending:
                raise OrderNotCancellableError(order_id, order.status.value)
            if order.awaiting_review:
                raise PaymentProofLockedError(order_id)
            return {**record, "status": OrderStatus.CANCELLED.value, "hiddenForUser": True}

        committed, record = await self._orders.transact(order_id, cancel)
        if not committed:
            raise OrderNotFoundError(order_id)
        logger.info("Order %s cancelled by user %s", order_id, user_id)
        return record_to_order(order_id, record)

    async def confirm_received(self, order_id: str, user_id: str) -> TransitionResult:
        """Customer confirms delivery of a shipped order."""
        order = await self._orders.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if order.user_id != user_id:
            raise ForbiddenError(f"Order {order_id} belongs to another user")
        if order.status != OrderStatus.SHIPPED:
            raise InvalidTransitionError(order_id, OrderStatus.COMPLETED.value)
        return await self.transition(order_id, OrderStatus.COMPLETED)
