"""ProductService — admin catalog CRUD.

Edits are written as a field diff against the stored record, never as a full
overwrite, so an edit racing a stock deduction cannot roll back stock or
totalSold unless the admin explicitly changed stock.
"""
import logging
from dataclasses import replace
from typing import Any

from src.sf_catalog.application.schemas import CreateProductRequest, UpdateProductRequest
from src.sf_catalog.domain.models import AutoMessageRule, ExtraInfo, Product, WholesaleRule
from src.sf_catalog.domain.pricing import discount_percent
from src.sf_catalog.infrastructure.persistence import ProductRepository, product_to_record
from src.sf_common.errors import ProductNotFoundError
from src.sf_store.domain.repository import KeyValueStoreProtocol

logger = logging.getLogger(__name__)


def _fields_from_request(values: dict[str, Any]) -> dict[str, Any]:
    """Map validated request values onto Product constructor fields."""
    fields = dict(values)
    if "extra_info" in fields and fields["extra_info"] is not None:
        fields["extra_info"] = [ExtraInfo(**i) for i in fields["extra_info"]]
    if fields.get("wholesale") is not None:
        fields["wholesale"] = WholesaleRule(**fields["wholesale"])
    if fields.get("auto_message") is not None:
        fields["auto_message"] = AutoMessageRule(**fields["auto_message"])
    return fields


class ProductService:
    def __init__(self, store: KeyValueStoreProtocol) -> None:
        self._repo = ProductRepository(store)

    async def list_products(self) -> list[Product]:
        return await self._repo.list_all()

    async def get_product(self, product_id: str) -> Product:
        product = await self._repo.get_by_id(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    async def add_product(self, req: CreateProductRequest) -> Product:
        fields = _fields_from_request(req.model_dump())
        product = Product(id=self._repo.new_id(), total_sold=0, **fields)
        product.discount_percent = discount_percent(
            product.original_price, product.discounted_price
        )
        await self._repo.save(product)
        logger.info("Product created: %s (%s)", product.id, product.name)
        return product

    async def update_product(self, product_id: str, req: UpdateProductRequest) -> Product:
        current = await self.get_product(product_id)
        changes = _fields_from_request(req.model_dump(exclude_unset=True))
        updated = replace(current, **changes)
        updated.discount_percent = discount_percent(
            updated.original_price, updated.discounted_price
        )
        await self._write_diff(current, updated)
        return updated

    async def toggle_sale_closed(self, product_id: str) -> Product:
        current = await self.get_product(product_id)
        updated = replace(current, is_sale_closed=not current.is_sale_closed)
        await self._write_diff(current, updated)
        return updated

    async def toggle_coming_soon(self, product_id: str) -> Product:
        current = await self.get_product(product_id)
        updated = replace(current, is_coming_soon=not current.is_coming_soon)
        await self._write_diff(current, updated)
        return updated

    async def delete_product(self, product_id: str) -> None:
        await self.get_product(product_id)
        await self._repo.delete(product_id)
        logger.info("Product deleted: %s", product_id)

    async def _write_diff(self, before: Product, after: Product) -> None:
        old = product_to_record(before)
        new = product_to_record(after)
        diff: dict[str, Any] = {k: v for k, v in new.items() if old.get(k) != v}
        diff.update({k: None for k in old if k not in new})
        if diff:
            await self._repo.update_fields(after.id, diff)
            logger.info("Product updated: %s fields=%s", after.id, sorted(diff))
