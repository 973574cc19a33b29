"""StockLedger — sole writer of a product's stock / totalSold counters.

deduct() moves `quantity` units from stock to totalSold in one atomic
read-modify-write on the product record. Stock clamps at zero; totalSold does
not, so an oversold order keeps the sold count honest and the missing units
are simply lost from stock (logged as a warning).

Only OrderLifecycle calls deduct(), and only on the guarded PAID/COMPLETED
entry, so each order is deducted at most once.
"""
import logging
from dataclasses import dataclass
from typing import Any

from src.sf_catalog.infrastructure.persistence import ProductRepository
from src.sf_common.errors import ProductNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class Deduction:
    product_id: str
    quantity: int
    stock_before: int
    stock_after: int
    total_sold_after: int

    @property
    def oversold(self) -> int:
        return max(0, self.quantity - self.stock_before)


class StockLedger:
    def __init__(self, products: ProductRepository) -> None:
        self._products = products

    async def deduct(self, product_id: str, quantity: int) -> Deduction:
        if quantity <= 0:
            raise ValueError(f"quantity must be positive, got {quantity}")
        seen: dict[str, int] = {}

        def apply(record: Any) -> dict[str, Any] | None:
            if record is None:
                return None
            stock = int(record.get("stock") or 0)
            sold = int(record.get("totalSold") or 0)
            seen["stock"] = stock
            return {**record, "stock": max(0, stock - quantity), "totalSold": sold + quantity}

        committed, record = await self._products.transact(product_id, apply)
        if not committed:
            raise ProductNotFoundError(product_id)

        deduction = Deduction(
            product_id=product_id,
            quantity=quantity,
            stock_before=seen["stock"],
            stock_after=record["stock"],
            total_sold_after=record["totalSold"],
        )
        if deduction.oversold:
            logger.warning(
                "Oversell on product %s: deducted %d with only %d in stock",
                product_id,
                quantity,
                deduction.stock_before,
            )
        logger.info(
            "Stock deducted: product=%s qty=%d stock=%d->%d sold=%d",
            product_id,
            quantity,
            deduction.stock_before,
            deduction.stock_after,
            deduction.total_sold_after,
        )
        return deduction
