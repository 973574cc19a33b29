"""Unit tests for sf_order Pydantic schemas."""
import pytest
from pydantic import ValidationError

from src.sf_common.enums import OrderStatus
from src.sf_order.application.schemas import (
    CreateOrderRequest,
    OrderResponse,
    PaymentProofRequest,
    StatusChangeRequest,
)
from tests.factories import make_order


class TestCreateOrderRequest:
    def test_valid_request(self) -> None:
        req = CreateOrderRequest(product_id="prod-1", quantity=2)
        assert req.shipping_details is None

    def test_zero_quantity_raises(self) -> None:
        with pytest.raises(ValidationError):
            CreateOrderRequest(product_id="prod-1", quantity=0)

    def test_shipping_details_to_domain(self) -> None:
        req = CreateOrderRequest(
            product_id="prod-1",
            quantity=1,
            shipping_details={"name": "Alice", "address": "Jl. Merdeka 1", "phone": "0812"},
        )
        shipping = req.shipping_details.to_domain()
        assert (shipping.name, shipping.phone) == ("Alice", "0812")

    def test_blank_phone_raises(self) -> None:
        with pytest.raises(ValidationError):
            CreateOrderRequest(
                product_id="prod-1",
                quantity=1,
                shipping_details={"name": "Alice", "address": "Jl. Merdeka 1", "phone": ""},
            )


class TestPaymentProofRequest:
    def test_whitespace_only_raises(self) -> None:
        with pytest.raises(ValidationError):
            PaymentProofRequest(payment_proof="   ")

    def test_data_url_kept_as_given(self) -> None:
        req = PaymentProofRequest(payment_proof="data:image/png;base64,AAAA")
        assert req.payment_proof.startswith("data:image/png")


class TestStatusChangeRequest:
    def test_confirmed_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            StatusChangeRequest(status="CONFIRMED")

    def test_lowercase_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            StatusChangeRequest(status="paid")

    def test_pending_is_not_an_admin_target(self) -> None:
        with pytest.raises(ValidationError):
            StatusChangeRequest(status="PENDING")


def test_order_response_flags_awaiting_review() -> None:
    order = make_order(payment_proof="proof.jpg")
    resp = OrderResponse.from_domain(order)
    assert resp.status == OrderStatus.PENDING.value
    assert resp.awaiting_review is True
    assert resp.product.id == order.product.id
