"""OrderLifecycle: settlement runs once per order, whatever the request pattern."""

import asyncio
import logging
import re
from unittest.mock import MagicMock

import pytest

from src.sf_catalog.domain.models import Product
from src.sf_catalog.infrastructure.persistence import ProductRepository
from src.sf_common.enums import OrderStatus
from src.sf_common.errors import (
    ForbiddenError,
    InvalidTransitionError,
    OrderNotCancellableError,
    OrderNotFoundError,
    PaymentProofLockedError,
)
from src.sf_order.application.service import OrderStore
from src.sf_order.domain.lifecycle import ALLOWED_TRANSITIONS, settles
from src.sf_store.infrastructure.memory_store import InMemoryKeyValueStore
from tests.factories import FakeClock, make_voucher_product

VOUCHER_RE = re.compile(r"^V-[A-Z0-9]{4}-[A-Z0-9]{4}$")


async def _stock(repo: ProductRepository, product_id: str) -> tuple[int, int]:
    product = await repo.get_by_id(product_id)
    assert product is not None
    return product.stock, product.total_sold


async def _place(order_store: OrderStore, product: Product, qty: int = 2, user: str = "u1") -> str:
    return await order_store.create_order(user, f"name-{user}", product, qty)


class TestSettles:
    def test_paid_from_pending_settles(self) -> None:
        assert settles(OrderStatus.PENDING, OrderStatus.PAID)

    def test_completed_from_shipped_does_not_settle(self) -> None:
        assert not settles(OrderStatus.SHIPPED, OrderStatus.COMPLETED)

    def test_late_payment_after_cancel_settles(self) -> None:
        assert settles(OrderStatus.CANCELLED, OrderStatus.PAID)
        assert settles(OrderStatus.REJECTED, OrderStatus.PAID)

    def test_completed_is_terminal_in_graph(self) -> None:
        assert ALLOWED_TRANSITIONS[OrderStatus.COMPLETED] == frozenset()


class TestPaidIsIdempotent:
    async def test_second_paid_does_not_deduct_again(
        self, order_store: OrderStore, product_repo: ProductRepository, saved_product: Product
    ) -> None:
        order_id = await _place(order_store, saved_product)

        first = await order_store.transition_order(order_id, OrderStatus.PAID)
        second = await order_store.transition_order(order_id, "PAID")

        assert first.settled and first.changed
        assert not second.settled and not second.changed
        assert await _stock(product_repo, saved_product.id) == (8, 2)

    async def test_concurrent_paid_requests_deduct_once(
        self, order_store: OrderStore, product_repo: ProductRepository, saved_product: Product
    ) -> None:
        order_id = await _place(order_store, saved_product, qty=3)

        results = await asyncio.gather(
            *(order_store.transition_order(order_id, OrderStatus.PAID) for _ in range(5))
        )

        assert sum(r.settled for r in results) == 1
        assert await _stock(product_repo, saved_product.id) == (7, 3)

    async def test_cancelled_then_paid_deducts_once(
        self, order_store: OrderStore, product_repo: ProductRepository, saved_product: Product
    ) -> None:
        order_id = await _place(order_store, saved_product)

        await order_store.transition_order(order_id, OrderStatus.CANCELLED)
        assert await _stock(product_repo, saved_product.id) == (10, 0)

        result = await order_store.transition_order(order_id, OrderStatus.PAID)
        await order_store.transition_order(order_id, OrderStatus.PAID)

        assert result.previous == OrderStatus.CANCELLED
        assert result.settled
        assert await _stock(product_repo, saved_product.id) == (8, 2)

    async def test_shipping_and_completing_do_not_deduct(
        self, order_store: OrderStore, product_repo: ProductRepository, saved_product: Product
    ) -> None:
        order_id = await _place(order_store, saved_product)
        await order_store.transition_order(order_id, OrderStatus.PAID)
        shipped = await order_store.transition_order(order_id, OrderStatus.SHIPPED)
        completed = await order_store.transition_order(order_id, OrderStatus.COMPLETED)

        assert not shipped.settled and not completed.settled
        assert await _stock(product_repo, saved_product.id) == (8, 2)

    async def test_completing_a_pending_order_settles(
        self, order_store: OrderStore, product_repo: ProductRepository, saved_product: Product
    ) -> None:
        order_id = await _place(order_store, saved_product)
        result = await order_store.transition_order(order_id, OrderStatus.COMPLETED)
        assert result.settled
        assert await _stock(product_repo, saved_product.id) == (8, 2)


class TestDigitalProducts:
    @pytest.fixture
    async def voucher_product(self, product_repo: ProductRepository) -> Product:
        product = make_voucher_product(stock=5)
        await product_repo.save(product)
        return product

    async def test_paid_completes_and_delivers_vouchers(
        self, order_store: OrderStore, product_repo: ProductRepository, voucher_product: Product
    ) -> None:
        order_id = await _place(order_store, voucher_product, qty=2)

        result = await order_store.transition_order(order_id, OrderStatus.PAID)

        assert result.status == OrderStatus.COMPLETED
        assert (await order_store.get_order(order_id)).status == OrderStatus.COMPLETED
        assert await _stock(product_repo, voucher_product.id) == (3, 2)

        inbox = await order_store.list_messages("u1")
        assert len(inbox) == 1
        assert inbox[0].id == result.voucher_message_id
        assert inbox[0].title == "Your order: Gift Card"
        codes = [line for line in inbox[0].content.splitlines() if VOUCHER_RE.match(line)]
        assert len(codes) == 2
        assert "Redeem at the counter." in inbox[0].content
        assert "Quantity: 2" in inbox[0].content

    async def test_repeated_paid_delivers_nothing_more(
        self, order_store: OrderStore, product_repo: ProductRepository, voucher_product: Product
    ) -> None:
        order_id = await _place(order_store, voucher_product, qty=1)

        await order_store.transition_order(order_id, OrderStatus.PAID)
        again = await order_store.transition_order(order_id, OrderStatus.PAID)

        assert not again.changed
        assert again.status == OrderStatus.COMPLETED
        assert len(await order_store.list_messages("u1")) == 1
        assert await _stock(product_repo, voucher_product.id) == (4, 1)

    async def test_physical_product_with_message_rule_still_ships(
        self, order_store: OrderStore, product_repo: ProductRepository
    ) -> None:
        product = make_voucher_product(id="p-phys", category="physical")
        await product_repo.save(product)
        order_id = await _place(order_store, product, qty=1)

        result = await order_store.transition_order(order_id, OrderStatus.PAID)

        assert result.status == OrderStatus.PAID
        assert result.voucher_message_id is not None

    async def test_failed_delivery_keeps_stock_and_status(
        self,
        store: InMemoryKeyValueStore,
        clock: FakeClock,
        product_repo: ProductRepository,
        voucher_product: Product,
    ) -> None:
        vouchers = MagicMock()
        vouchers.issue.side_effect = RuntimeError("entropy exhausted")
        order_store = OrderStore(store, clock=clock, vouchers=vouchers)
        order_id = await _place(order_store, voucher_product, qty=1)

        with pytest.raises(RuntimeError):
            await order_store.transition_order(order_id, OrderStatus.PAID)

        assert (await order_store.get_order(order_id)).status == OrderStatus.COMPLETED
        assert await _stock(product_repo, voucher_product.id) == (4, 1)
        assert await order_store.list_messages("u1") == []


class TestTransitionErrors:
    async def test_confirmed_cannot_be_targeted(
        self, order_store: OrderStore, saved_product: Product
    ) -> None:
        order_id = await _place(order_store, saved_product)
        with pytest.raises(InvalidTransitionError):
            await order_store.transition_order(order_id, OrderStatus.CONFIRMED)

    async def test_unknown_order(self, order_store: OrderStore) -> None:
        with pytest.raises(OrderNotFoundError):
            await order_store.transition_order("nope", OrderStatus.PAID)

    async def test_deleted_product_still_settles_without_deduction(
        self, order_store: OrderStore, product_repo: ProductRepository, saved_product: Product
    ) -> None:
        order_id = await _place(order_store, saved_product)
        await product_repo.delete(saved_product.id)

        result = await order_store.transition_order(order_id, OrderStatus.PAID)

        assert result.status == OrderStatus.PAID
        assert result.settled
        assert result.deduction is None
        assert (await order_store.get_order(order_id)).status == OrderStatus.PAID
        assert await product_repo.get_by_id(saved_product.id) is None

    async def test_deleted_voucher_product_still_delivers(
        self, order_store: OrderStore, product_repo: ProductRepository
    ) -> None:
        product = make_voucher_product()
        await product_repo.save(product)
        order_id = await _place(order_store, product, qty=1)
        await product_repo.delete(product.id)

        result = await order_store.transition_order(order_id, OrderStatus.PAID)

        assert result.status == OrderStatus.COMPLETED
        assert result.voucher_message_id is not None
        assert len(await order_store.list_messages("u1")) == 1


class TestMovesOutsideLifecycle:
    async def test_paid_back_to_pending_is_ignored(
        self,
        order_store: OrderStore,
        saved_product: Product,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        order_id = await _place(order_store, saved_product)
        await order_store.transition_order(order_id, OrderStatus.PAID)

        with caplog.at_level(logging.WARNING, logger="src.sf_order.domain.lifecycle"):
            result = await order_store.transition_order(order_id, OrderStatus.PENDING)

        assert result.status == OrderStatus.PAID
        assert not result.changed
        assert "outside the lifecycle" in caplog.text
        assert (await order_store.get_order(order_id)).status == OrderStatus.PAID

    async def test_paid_pending_paid_deducts_once(
        self, order_store: OrderStore, product_repo: ProductRepository, saved_product: Product
    ) -> None:
        order_id = await _place(order_store, saved_product)

        await order_store.transition_order(order_id, OrderStatus.PAID)
        await order_store.transition_order(order_id, OrderStatus.PENDING)
        again = await order_store.transition_order(order_id, OrderStatus.PAID)

        assert not again.settled
        assert await _stock(product_repo, saved_product.id) == (8, 2)

    async def test_shipped_cancelled_paid_deducts_once(
        self, order_store: OrderStore, product_repo: ProductRepository, saved_product: Product
    ) -> None:
        order_id = await _place(order_store, saved_product)

        await order_store.transition_order(order_id, OrderStatus.PAID)
        await order_store.transition_order(order_id, OrderStatus.SHIPPED)
        cancelled = await order_store.transition_order(order_id, OrderStatus.CANCELLED)
        await order_store.transition_order(order_id, OrderStatus.PAID)

        assert cancelled.status == OrderStatus.SHIPPED
        assert (await order_store.get_order(order_id)).status == OrderStatus.SHIPPED
        assert await _stock(product_repo, saved_product.id) == (8, 2)

    async def test_completed_order_stays_completed(
        self, order_store: OrderStore, saved_product: Product
    ) -> None:
        order_id = await _place(order_store, saved_product)
        await order_store.transition_order(order_id, OrderStatus.COMPLETED)

        for target in (OrderStatus.REJECTED, OrderStatus.SHIPPED, OrderStatus.PAID):
            result = await order_store.transition_order(order_id, target)
            assert result.status == OrderStatus.COMPLETED


class TestCustomerActions:
    async def test_cancel_hides_order_from_customer(
        self, order_store: OrderStore, saved_product: Product
    ) -> None:
        order_id = await _place(order_store, saved_product)

        order = await order_store.cancel_order_by_user(order_id, "u1")

        assert order.status == OrderStatus.CANCELLED
        assert order.hidden_for_user
        assert await order_store.list_orders("u1") == []
        assert [o.id for o in await order_store.list_orders()] == [order_id]

    async def test_cancel_someone_elses_order(
        self, order_store: OrderStore, saved_product: Product
    ) -> None:
        order_id = await _place(order_store, saved_product)
        with pytest.raises(ForbiddenError):
            await order_store.cancel_order_by_user(order_id, "intruder")

    async def test_cancel_after_payment_rejected(
        self, order_store: OrderStore, saved_product: Product
    ) -> None:
        order_id = await _place(order_store, saved_product)
        await order_store.transition_order(order_id, OrderStatus.PAID)
        with pytest.raises(OrderNotCancellableError):
            await order_store.cancel_order_by_user(order_id, "u1")

    async def test_cancel_locked_by_payment_proof(
        self, order_store: OrderStore, saved_product: Product
    ) -> None:
        order_id = await _place(order_store, saved_product)
        await order_store.attach_payment_proof(order_id, "u1", "data:image/png;base64,AAAA")
        with pytest.raises(PaymentProofLockedError):
            await order_store.cancel_order_by_user(order_id, "u1")

    async def test_confirm_received_completes_shipped_order(
        self, order_store: OrderStore, saved_product: Product
    ) -> None:
        order_id = await _place(order_store, saved_product)
        await order_store.transition_order(order_id, OrderStatus.PAID)
        await order_store.transition_order(order_id, OrderStatus.SHIPPED)

        result = await order_store.confirm_order_received(order_id, "u1")

        assert result.status == OrderStatus.COMPLETED
        assert not result.settled

    async def test_confirm_received_requires_shipped(
        self, order_store: OrderStore, saved_product: Product
    ) -> None:
        order_id = await _place(order_store, saved_product)
        await order_store.transition_order(order_id, OrderStatus.PAID)
        with pytest.raises(InvalidTransitionError):
            await order_store.confirm_order_received(order_id, "u1")
