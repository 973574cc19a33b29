# src/sf_catalog/application/schemas.py
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from src.sf_catalog.domain.models import Product


class ExtraInfoSchema(BaseModel):
    label: str
    value: str
    icon_type: str | None = None


class WholesaleRuleSchema(BaseModel):
    enabled: bool = False
    min_qty: int = Field(0, ge=0)
    percent: float = Field(0, ge=0, le=100)


class AutoMessageRuleSchema(BaseModel):
    enabled: bool = False
    text: str = ""


class ProductFields(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    original_price: int = Field(..., ge=0)
    discounted_price: int = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    image_url: str = ""
    sale_tag: str = ""
    is_sale_closed: bool = False
    is_coming_soon: bool = False
    release_date: int | None = None
    category: Literal["physical", "digital"] = "physical"
    buy_link: str = ""
    extra_info: list[ExtraInfoSchema] = Field(default_factory=list)
    wholesale: WholesaleRuleSchema | None = None
    auto_message: AutoMessageRuleSchema | None = None


class CreateProductRequest(ProductFields):
    @model_validator(mode="after")
    def discounted_not_above_original(self) -> "CreateProductRequest":
        if self.original_price and self.discounted_price > self.original_price:
            raise ValueError("discounted_price must not exceed original_price")
        return self


class UpdateProductRequest(BaseModel):
    """Partial update; omitted fields are left unchanged. Counters are not editable here."""

    name: str | None = Field(None, min_length=1, max_length=200)
    original_price: int | None = Field(None, ge=0)
    discounted_price: int | None = Field(None, ge=0)
    stock: int | None = Field(None, ge=0)
    image_url: str | None = None
    sale_tag: str | None = None
    is_sale_closed: bool | None = None
    is_coming_soon: bool | None = None
    release_date: int | None = None
    category: Literal["physical", "digital"] | None = None
    buy_link: str | None = None
    extra_info: list[ExtraInfoSchema] | None = None
    wholesale: WholesaleRuleSchema | None = None
    auto_message: AutoMessageRuleSchema | None = None


class ProductResponse(BaseModel):
    id: str
    name: str
    image_url: str
    original_price: int
    discounted_price: int
    discount_percent: int
    sale_tag: str
    stock: int
    total_sold: int
    is_sale_closed: bool
    is_coming_soon: bool
    release_date: int | None
    category: str
    buy_link: str
    extra_info: list[ExtraInfoSchema]
    wholesale: WholesaleRuleSchema | None
    auto_message: AutoMessageRuleSchema | None

    @classmethod
    def from_domain(cls, p: Product) -> "ProductResponse":
        return cls(
            id=p.id,
            name=p.name,
            image_url=p.image_url,
            original_price=p.original_price,
            discounted_price=p.discounted_price,
            discount_percent=p.discount_percent,
            sale_tag=p.sale_tag,
            stock=p.stock,
            total_sold=p.total_sold,
            is_sale_closed=p.is_sale_closed,
            is_coming_soon=p.is_coming_soon,
            release_date=p.release_date,
            category=p.category,
            buy_link=p.buy_link,
            extra_info=[
                ExtraInfoSchema(label=i.label, value=i.value, icon_type=i.icon_type)
                for i in p.extra_info
            ],
            wholesale=(
                WholesaleRuleSchema(
                    enabled=p.wholesale.enabled,
                    min_qty=p.wholesale.min_qty,
                    percent=p.wholesale.percent,
                )
                if p.wholesale
                else None
            ),
            auto_message=(
                AutoMessageRuleSchema(enabled=p.auto_message.enabled, text=p.auto_message.text)
                if p.auto_message
                else None
            ),
        )


class ProductListResponse(BaseModel):
    items: list[ProductResponse]


class PriceQuoteResponse(BaseModel):
    product_id: str
    quantity: int
    unit_price: float
    total_price: float
    wholesale_applied: bool
