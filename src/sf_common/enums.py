"""Global enums — values are the persisted representation."""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    # Legacy value kept readable for stored data; nothing transitions into it
    CONFIRMED = "CONFIRMED"


class ProductCategory(str, Enum):
    PHYSICAL = "physical"
    DIGITAL = "digital"


class TokenRole(str, Enum):
    USER = "user"
    ADMIN = "admin"
