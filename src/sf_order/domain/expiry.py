"""ExpirySweeper — cancels PENDING orders left unpaid past the payment deadline.

Three entry points share one rule (`find_expired`):
  - observe(orders): called with every order snapshot a subscriber receives.
    Cancels are fire-and-forget tasks; a failure is logged and the next
    snapshot simply tries again.
  - sweep_once(): loads the collection and awaits the cancels (host/tests).
  - run_periodically(interval): host-process loop, started by the app lifespan.

Each cancel is a conditional write that only applies while the order is still
PENDING and past its deadline, so any number of observers may run it
concurrently and a payment that lands first is never overwritten.
"""
import asyncio
import logging
from collections.abc import Callable, Iterable

from src.sf_common.datetime_utils import now_ms
from src.sf_common.enums import OrderStatus
from src.sf_order.domain.lifecycle import OrderLifecycle
from src.sf_order.domain.models import Order
from src.sf_order.infrastructure.persistence import OrderRepository

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 6 * 60 * 60 * 1000


def find_expired(orders: Iterable[Order], now: int, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> list[str]:
    """Ids of PENDING orders whose age strictly exceeds `timeout_ms`."""
    return [
        o.id for o in orders if o.status == OrderStatus.PENDING and now - o.timestamp > timeout_ms
    ]


class ExpirySweeper:
    def __init__(
        self,
        orders: OrderRepository,
        lifecycle: OrderLifecycle,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._orders = orders
        self._lifecycle = lifecycle
        self._timeout_ms = timeout_ms
        self._clock = clock
        self._in_flight: set[asyncio.Task[bool]] = set()

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    def observe(self, orders: Iterable[Order]) -> list[str]:
        """Schedule cancels for expired orders without waiting for them."""
        now = self._clock()
        expired = find_expired(orders, now, self._timeout_ms)
        for order_id in expired:
            task = asyncio.create_task(self._lifecycle.expire(order_id, now, self._timeout_ms))
            self._in_flight.add(task)
            task.add_done_callback(self._on_done)
        return expired

    def _on_done(self, task: "asyncio.Task[bool]") -> None:
        self._in_flight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Expiry write failed, retrying on next observation: %s", exc)

    async def drain(self) -> None:
        """Wait for scheduled cancels to finish (shutdown, tests)."""
        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)

    async def sweep_once(self) -> list[str]:
        now = self._clock()
        expired = find_expired(await self._orders.list_all(), now, self._timeout_ms)
        cancelled = []
        for order_id in expired:
            try:
                if await self._lifecycle.expire(order_id, now, self._timeout_ms):
                    cancelled.append(order_id)
            except Exception:
                logger.exception("Expiry write failed for order %s", order_id)
        return cancelled

    async def run_periodically(self, interval_s: float) -> None:
        logger.info("Expiry sweeper started (every %.0fs)", interval_s)
        while True:
            try:
                cancelled = await self.sweep_once()
                if cancelled:
                    logger.info("Expiry sweep cancelled %d orders", len(cancelled))
            except Exception:
                logger.exception("Expiry sweep failed")
            await asyncio.sleep(interval_s)
