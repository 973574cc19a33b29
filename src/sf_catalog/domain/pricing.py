"""Pricing rules for single-line orders.

Prices are whole currency units with no sub-unit, so totals are used as
computed: a wholesale discount can produce a fractional unit price and nothing
rounds it. Whole-number results are returned as int.
"""
import math

from src.sf_catalog.domain.models import Product
from src.sf_common.errors import InsufficientStockError, ProductUnavailableError

Amount = int | float


def _normalize(value: float) -> Amount:
    return int(value) if float(value).is_integer() else value


def unit_price(product: Product, quantity: int) -> Amount:
    """Discounted price, reduced by the wholesale percent once quantity reaches min_qty.

    The wholesale percent applies to the discounted price, not the original.
    The threshold is inclusive.
    """
    base = product.discounted_price
    rule = product.wholesale
    if rule is not None and rule.is_active and quantity >= rule.min_qty:
        # base * (1 - percent/100), kept in one division to stay exact for whole percents
        return _normalize(base * (100 - rule.percent) / 100)
    return base


def price(product: Product, quantity: int) -> Amount:
    """Order total for `quantity` units of `product`."""
    return _normalize(unit_price(product, quantity) * quantity)


def discount_percent(original_price: int, discounted_price: int) -> int:
    """Display discount, 0-100, rounded half-up; never negative."""
    if original_price <= 0 or original_price <= discounted_price:
        return 0
    percent = (original_price - discounted_price) / original_price * 100
    return min(100, math.floor(percent + 0.5))


def check_purchasable(product: Product, quantity: int) -> None:
    """Storefront pre-check before an order is placed.

    Not enforced at write time: stock is only deducted when the order is paid.
    """
    if product.is_sale_closed:
        raise ProductUnavailableError(product.id, "sale closed")
    if product.is_coming_soon:
        raise ProductUnavailableError(product.id, "coming soon")
    if product.is_sold_out:
        raise ProductUnavailableError(product.id, "sold out")
    if quantity > product.stock:
        raise InsufficientStockError(requested=quantity, available=product.stock)
