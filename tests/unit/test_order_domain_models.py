from src.sf_common.enums import OrderStatus
from src.sf_order.domain.models import ShippingDetails
from tests.factories import make_order


class TestOrder:
    def test_line_shortcuts(self) -> None:
        order = make_order()
        assert order.product.id == "prod-1"
        assert order.quantity == 2

    def test_pending_without_proof_is_not_awaiting_review(self) -> None:
        assert not make_order().awaiting_review

    def test_pending_with_proof_awaits_review(self) -> None:
        assert make_order(payment_proof="proof.png").awaiting_review

    def test_paid_with_proof_is_not_awaiting_review(self) -> None:
        order = make_order(status=OrderStatus.PAID, payment_proof="proof.png")
        assert not order.awaiting_review

    def test_visible_only_to_owner(self) -> None:
        order = make_order()
        assert order.visible_to_user("user-1")
        assert not order.visible_to_user("user-2")

    def test_hidden_order_invisible_to_owner(self) -> None:
        assert not make_order(hidden_for_user=True).visible_to_user("user-1")

    def test_shipping_details_optional(self) -> None:
        order = make_order(shipping_details=ShippingDetails("Alice", "1 Main St", "0800"))
        assert order.shipping_details is not None
        assert make_order().shipping_details is None
