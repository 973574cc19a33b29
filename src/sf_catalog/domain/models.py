"""Domain models for sf_catalog — pure dataclasses, no store dependency."""

from dataclasses import dataclass, field

from src.sf_common.enums import ProductCategory


@dataclass
class WholesaleRule:
    enabled: bool = False
    min_qty: int = 0
    percent: float = 0

    @property
    def is_active(self) -> bool:
        # A zero threshold or zero percent disables the rule even when enabled
        return bool(self.enabled and self.min_qty and self.percent)


@dataclass
class AutoMessageRule:
    enabled: bool = False
    text: str = ""


@dataclass
class ExtraInfo:
    label: str
    value: str
    icon_type: str | None = None


@dataclass
class Product:
    id: str
    name: str
    original_price: int
    discounted_price: int
    stock: int = 0
    total_sold: int = 0
    discount_percent: int = 0
    image_url: str = ""
    sale_tag: str = ""
    is_sale_closed: bool = False
    is_coming_soon: bool = False
    release_date: int | None = None  # epoch ms
    category: str = ProductCategory.PHYSICAL.value
    buy_link: str = ""
    extra_info: list[ExtraInfo] = field(default_factory=list)
    wholesale: WholesaleRule | None = None
    auto_message: AutoMessageRule | None = None

    @property
    def is_digital(self) -> bool:
        return self.category == ProductCategory.DIGITAL.value

    @property
    def is_sold_out(self) -> bool:
        return self.stock <= 0

    @property
    def has_auto_message(self) -> bool:
        return self.auto_message is not None and self.auto_message.enabled
