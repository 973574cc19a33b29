"""Tests for sf_common.errors and sf_common.response."""

from types import SimpleNamespace

from src.sf_common.errors import (
    AppError,
    InsufficientStockError,
    InvalidTransitionError,
    OrderNotFoundError,
    PaymentProofLockedError,
    ProductUnavailableError,
    StoreUnavailableError,
)
from src.sf_common.response import error_body, respond


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1001, message="test"), Exception)


class TestSpecificErrors:
    def test_insufficient_stock(self) -> None:
        err = InsufficientStockError(requested=5, available=2)
        assert err.code == 2003
        assert err.http_status == 422
        assert "5" in err.message
        assert "2" in err.message

    def test_product_unavailable_carries_reason(self) -> None:
        err = ProductUnavailableError("prod-1", "coming soon")
        assert err.code == 2002
        assert "coming soon" in err.message

    def test_order_not_found(self) -> None:
        err = OrderNotFoundError("order-abc")
        assert err.code == 4004
        assert err.http_status == 404

    def test_invalid_transition(self) -> None:
        err = InvalidTransitionError("order-abc", "CONFIRMED")
        assert err.code == 4005
        assert err.http_status == 422

    def test_payment_proof_locked_is_conflict(self) -> None:
        assert PaymentProofLockedError("order-abc").http_status == 409

    def test_store_unavailable(self) -> None:
        err = StoreUnavailableError()
        assert err.code == 9003
        assert err.http_status == 503


class TestApiResponse:
    def test_respond_carries_request_id(self) -> None:
        request = SimpleNamespace(state=SimpleNamespace(request_id="req_abc"))
        resp = respond(request, {"id": "abc"})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.data == {"id": "abc"}
        assert resp.request_id == "req_abc"

    def test_error_body(self) -> None:
        body = error_body(None, 2003, "Insufficient stock")
        assert body["code"] == 2003
        assert body["data"] is None
        assert body["request_id"].startswith("req_")

    def test_serialization(self) -> None:
        request = SimpleNamespace(state=SimpleNamespace())
        d = respond(request, {"total": 36000}).model_dump()
        assert set(d) == {"code", "message", "data", "timestamp", "request_id"}
        assert d["request_id"].startswith("req_")
