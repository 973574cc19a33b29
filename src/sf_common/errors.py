"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Catalog
  4xxx: Order
  6xxx: Messaging
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/User ---

class UsernameExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Username already exists", 409)


class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Email already exists", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid email or password", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


class AdminRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1006, "Admin privileges required", 403)


class ForbiddenError(AppError):
    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(1007, detail, 403)


class UserNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(1008, f"User not found: {user_id}", 404)


# --- 2xxx: Catalog ---

class ProductNotFoundError(AppError):
    def __init__(self, product_id: str) -> None:
        super().__init__(2001, f"Product not found: {product_id}", 404)


class ProductUnavailableError(AppError):
    def __init__(self, product_id: str, reason: str) -> None:
        super().__init__(2002, f"Product {product_id} is not available: {reason}", 422)


class InsufficientStockError(AppError):
    def __init__(self, requested: int, available: int) -> None:
        super().__init__(
            2003,
            f"Insufficient stock: requested {requested}, available {available}",
            422,
        )


# --- 4xxx: Order ---

class OrderNotFoundError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4004, f"Order not found: {order_id}", 404)


class InvalidTransitionError(AppError):
    def __init__(self, order_id: str, target: str) -> None:
        super().__init__(4005, f"Order {order_id} cannot move to {target}", 422)


class OrderNotCancellableError(AppError):
    def __init__(self, order_id: str, status: str) -> None:
        super().__init__(4006, f"Order {order_id} in status {status} cannot be cancelled", 422)


class PaymentProofLockedError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4007, f"Order {order_id} is awaiting admin review", 409)


# --- 6xxx: Messaging ---

class MessageNotFoundError(AppError):
    def __init__(self, message_id: str) -> None:
        super().__init__(6001, f"Message not found: {message_id}", 404)


# --- 9xxx: System ---

class StoreUnavailableError(AppError):
    def __init__(self, detail: str = "Store unavailable") -> None:
        super().__init__(9003, detail, 503)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
