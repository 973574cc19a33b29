# src/sf_order/application/schemas.py
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from src.sf_catalog.application.schemas import ProductResponse
from src.sf_common.enums import OrderStatus
from src.sf_order.domain.lifecycle import TransitionResult
from src.sf_order.domain.models import Order, ShippingDetails


class ShippingDetailsSchema(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    address: str = Field(..., min_length=1, max_length=1000)
    phone: str = Field(..., min_length=3, max_length=32)

    def to_domain(self) -> ShippingDetails:
        return ShippingDetails(name=self.name, address=self.address, phone=self.phone)


class CreateOrderRequest(BaseModel):
    product_id: str
    quantity: int = Field(..., ge=1)
    shipping_details: ShippingDetailsSchema | None = None


class PaymentProofRequest(BaseModel):
    # Image reference or data URL, stored as given
    payment_proof: str = Field(..., min_length=1)

    @field_validator("payment_proof")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("payment_proof must not be blank")
        return v


class StatusChangeRequest(BaseModel):
    # PENDING is only ever the creation state; CONFIRMED is legacy
    status: Literal["PAID", "SHIPPED", "COMPLETED", "REJECTED", "CANCELLED"]


class OrderResponse(BaseModel):
    id: str
    user_id: str
    username: str
    product: ProductResponse
    quantity: int
    total_price: float
    status: str
    timestamp: int
    payment_proof: str | None = None
    shipping_details: ShippingDetailsSchema | None = None
    hidden_for_user: bool = False
    awaiting_review: bool = False

    @classmethod
    def from_domain(cls, o: Order) -> "OrderResponse":
        shipping = o.shipping_details
        return cls(
            id=o.id,
            user_id=o.user_id,
            username=o.username,
            product=ProductResponse.from_domain(o.product),
            quantity=o.quantity,
            total_price=o.total_price,
            status=o.status.value,
            timestamp=o.timestamp,
            payment_proof=o.payment_proof,
            shipping_details=(
                ShippingDetailsSchema(name=shipping.name, address=shipping.address, phone=shipping.phone)
                if shipping
                else None
            ),
            hidden_for_user=o.hidden_for_user,
            awaiting_review=o.awaiting_review,
        )


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    total: int


class CreateOrderResponse(BaseModel):
    order_id: str
    status: str = OrderStatus.PENDING.value
    total_price: float


class TransitionResponse(BaseModel):
    order_id: str
    previous_status: str
    status: str
    changed: bool
    settled: bool
    stock_after: int | None = None
    oversold: int = 0
    voucher_message_id: str | None = None

    @classmethod
    def from_result(cls, r: TransitionResult) -> "TransitionResponse":
        return cls(
            order_id=r.order_id,
            previous_status=r.previous.value,
            status=r.status.value,
            changed=r.changed,
            settled=r.settled,
            stock_after=r.deduction.stock_after if r.deduction else None,
            oversold=r.deduction.oversold if r.deduction else 0,
            voucher_message_id=r.voucher_message_id,
        )
