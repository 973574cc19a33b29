"""Order domain model — pure dataclasses, no store dependency."""
from dataclasses import dataclass

from src.sf_catalog.domain.models import Product
from src.sf_common.enums import OrderStatus


@dataclass
class ShippingDetails:
    name: str
    address: str
    phone: str


@dataclass
class OrderLine:
    product: Product  # snapshot taken at creation, never refreshed
    quantity: int


@dataclass
class Order:
    id: str
    user_id: str
    username: str
    line: OrderLine
    total_price: int | float  # fixed at creation
    status: OrderStatus
    timestamp: int  # creation instant, epoch ms
    payment_proof: str | None = None
    shipping_details: ShippingDetails | None = None
    hidden_for_user: bool = False

    @property
    def product(self) -> Product:
        return self.line.product

    @property
    def quantity(self) -> int:
        return self.line.quantity

    @property
    def is_pending(self) -> bool:
        return self.status == OrderStatus.PENDING

    @property
    def awaiting_review(self) -> bool:
        """Proof submitted, admin has not acted yet: locked for the customer."""
        return self.is_pending and bool(self.payment_proof)

    def visible_to_user(self, user_id: str) -> bool:
        return self.user_id == user_id and not self.hidden_for_user
