# src/sf_catalog/infrastructure/persistence.py
"""ProductRepository — product records on the key-value store.

Records keep the storefront's camelCase wire format, with the wholesale and
auto-message rules flattened into top-level fields.
"""
from typing import Any

from src.sf_catalog.domain.models import AutoMessageRule, ExtraInfo, Product, WholesaleRule
from src.sf_common.enums import ProductCategory
from src.sf_store.domain.repository import (
    KeyValueStoreProtocol,
    SnapshotCallback,
    TransactionFn,
    Unsubscribe,
)

COLLECTION = "products"


# ---------------------------------------------------------------------------
# Record mappers
# ---------------------------------------------------------------------------


def record_to_product(product_id: str, record: dict[str, Any]) -> Product:
    """Convert a stored record to a Product domain object."""
    wholesale = None
    if "enableWholesale" in record:
        wholesale = WholesaleRule(
            enabled=bool(record.get("enableWholesale")),
            min_qty=int(record.get("wholesaleMinQty") or 0),
            percent=record.get("wholesalePercent") or 0,
        )
    auto_message = None
    if "hasCustomMessage" in record:
        auto_message = AutoMessageRule(
            enabled=bool(record.get("hasCustomMessage")),
            text=record.get("customMessage") or "",
        )
    return Product(
        id=product_id,
        name=record.get("name", ""),
        original_price=record.get("originalPrice", 0),
        discounted_price=record.get("discountedPrice", 0),
        stock=record.get("stock") or 0,
        total_sold=record.get("totalSold") or 0,
        discount_percent=record.get("discountPercent") or 0,
        image_url=record.get("imageUrl", ""),
        sale_tag=record.get("saleTag", ""),
        is_sale_closed=bool(record.get("isSaleClosed")),
        is_coming_soon=bool(record.get("isComingSoon")),
        release_date=record.get("releaseDate") or None,
        category=record.get("category") or ProductCategory.PHYSICAL.value,
        buy_link=record.get("buyLink", ""),
        extra_info=[
            ExtraInfo(label=i.get("label", ""), value=i.get("value", ""), icon_type=i.get("iconType"))
            for i in record.get("extraInfo") or []
        ],
        wholesale=wholesale,
        auto_message=auto_message,
    )


def product_to_record(product: Product) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": product.id,
        "name": product.name,
        "imageUrl": product.image_url,
        "originalPrice": product.original_price,
        "discountedPrice": product.discounted_price,
        "discountPercent": product.discount_percent,
        "saleTag": product.sale_tag,
        "stock": product.stock,
        "totalSold": product.total_sold,
        "isSaleClosed": product.is_sale_closed,
        "isComingSoon": product.is_coming_soon,
        "category": product.category,
        "buyLink": product.buy_link,
        "extraInfo": [
            {"label": i.label, "value": i.value, "iconType": i.icon_type} for i in product.extra_info
        ],
    }
    if product.release_date is not None:
        record["releaseDate"] = product.release_date
    if product.wholesale is not None:
        record["enableWholesale"] = product.wholesale.enabled
        record["wholesaleMinQty"] = product.wholesale.min_qty
        record["wholesalePercent"] = product.wholesale.percent
    if product.auto_message is not None:
        record["hasCustomMessage"] = product.auto_message.enabled
        record["customMessage"] = product.auto_message.text
    return record


def snapshot_to_products(snapshot: dict[str, Any]) -> list[Product]:
    return [record_to_product(key, record) for key, record in snapshot.items()]


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ProductRepository:
    def __init__(self, store: KeyValueStoreProtocol) -> None:
        self._store = store

    def new_id(self) -> str:
        return self._store.push_key(COLLECTION)

    async def get_by_id(self, product_id: str) -> Product | None:
        record = await self._store.get(f"{COLLECTION}/{product_id}")
        return record_to_product(product_id, record) if record else None

    async def list_all(self) -> list[Product]:
        return snapshot_to_products(await self._store.children(COLLECTION))

    async def save(self, product: Product) -> None:
        await self._store.set(f"{COLLECTION}/{product.id}", product_to_record(product))

    async def update_fields(self, product_id: str, fields: dict[str, Any]) -> None:
        await self._store.update(f"{COLLECTION}/{product_id}", fields)

    async def delete(self, product_id: str) -> None:
        await self._store.remove(f"{COLLECTION}/{product_id}")

    async def transact(self, product_id: str, fn: TransactionFn) -> tuple[bool, Any]:
        return await self._store.transaction(f"{COLLECTION}/{product_id}", fn)

    async def subscribe(self, callback: SnapshotCallback) -> Unsubscribe:
        return await self._store.subscribe(COLLECTION, callback)
