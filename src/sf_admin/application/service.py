"""AdminService — storefront settings and the dashboard overview.

Settings live at ``settings/banner`` (a single string) and
``settings/invoice`` (a camelCase record merged on update).
"""
import logging
from typing import Any

from src.sf_admin.application.schemas import (
    InvoiceSettingsSchema,
    StatsResponse,
    TopProduct,
    UpdateInvoiceSettingsRequest,
)
from src.sf_catalog.domain.models import Product
from src.sf_common.enums import OrderStatus
from src.sf_order.domain.models import Order
from src.sf_store.domain.repository import KeyValueStoreProtocol

logger = logging.getLogger(__name__)

BANNER_PATH = "settings/banner"
INVOICE_PATH = "settings/invoice"

# Orders whose money has been received
REVENUE_STATES = frozenset(
    {OrderStatus.PAID, OrderStatus.CONFIRMED, OrderStatus.SHIPPED, OrderStatus.COMPLETED}
)
TOP_PRODUCTS = 5

_INVOICE_FIELDS = {
    "logo_url": "logoUrl",
    "signature_url": "signatureUrl",
    "company_name": "companyName",
    "company_address": "companyAddress",
    "bank_details": "bankDetails",
    "footer_note": "footerNote",
    "owner_name": "ownerName",
}


def record_to_invoice(record: dict[str, Any] | None) -> InvoiceSettingsSchema:
    record = record or {}
    return InvoiceSettingsSchema(
        **{field: record[key] for field, key in _INVOICE_FIELDS.items() if record.get(key) is not None}
    )


def compute_stats(
    orders: list[Order], products: list[Product], total_users: int
) -> StatsResponse:
    by_status: dict[str, int] = {s.value: 0 for s in OrderStatus}
    for order in orders:
        by_status[order.status.value] += 1
    top = sorted(products, key=lambda p: p.total_sold, reverse=True)[:TOP_PRODUCTS]
    return StatsResponse(
        total_orders=len(orders),
        orders_by_status=by_status,
        pending=by_status[OrderStatus.PENDING.value],
        awaiting_review=sum(1 for o in orders if o.awaiting_review),
        shipped=by_status[OrderStatus.SHIPPED.value],
        cancelled=by_status[OrderStatus.CANCELLED.value] + by_status[OrderStatus.REJECTED.value],
        revenue=sum(o.total_price for o in orders if o.status in REVENUE_STATES),
        total_users=total_users,
        total_products=len(products),
        top_products=[
            TopProduct(product_id=p.id, name=p.name, total_sold=p.total_sold) for p in top
        ],
    )


class AdminService:
    def __init__(self, store: KeyValueStoreProtocol) -> None:
        self._store = store

    async def get_banner(self) -> str | None:
        value = await self._store.get(BANNER_PATH)
        return value if isinstance(value, str) and value else None

    async def set_banner(self, banner: str | None) -> None:
        await self._store.set(BANNER_PATH, banner or None)
        logger.info("Banner %s", "updated" if banner else "cleared")

    async def get_invoice_settings(self) -> InvoiceSettingsSchema:
        return record_to_invoice(await self._store.get(INVOICE_PATH))

    async def update_invoice_settings(
        self, req: UpdateInvoiceSettingsRequest
    ) -> InvoiceSettingsSchema:
        fields = {
            _INVOICE_FIELDS[field]: value
            for field, value in req.model_dump(exclude_unset=True).items()
        }
        if fields:
            await self._store.update(INVOICE_PATH, fields)
            logger.info("Invoice settings updated: %s", sorted(fields))
        return await self.get_invoice_settings()
