"""Tests for mk_common.errors and mk_common.response."""

from src.mk_common.errors import (
    AppError,
    IllegalTransitionError,
    InvalidDispatchPhotoError,
    NotificationNotFoundError,
    OrderNotDispatchableError,
    OrderNotFoundError,
    RemoteOperationError,
    SessionNotOpenError,
)
from src.mk_common.response import ApiResponse, error_response, from_app_error, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500
        assert err.retryable is False

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1, message="x"), Exception)


class TestSpecificErrors:
    def test_illegal_transition(self) -> None:
        err = IllegalTransitionError("o1", "pending", "delivered")
        assert err.code == 4010
        assert err.http_status == 422
        assert "pending" in err.message
        assert "delivered" in err.message

    def test_order_not_found(self) -> None:
        err = OrderNotFoundError("o1")
        assert err.code == 4004
        assert err.http_status == 404

    def test_dispatch_errors(self) -> None:
        assert InvalidDispatchPhotoError("Image must be under 5MB").message == "Image must be under 5MB"
        err = OrderNotDispatchableError("o1", "pending")
        assert err.code == 6003
        assert "pending" in err.message

    def test_remote_operation_is_retryable(self) -> None:
        err = RemoteOperationError("write Orders", "timeout")
        assert err.retryable is True
        assert err.http_status == 503
        assert err.operation == "write Orders"
        assert err.message == "Remote operation failed: write Orders (timeout)"

    def test_misc(self) -> None:
        assert NotificationNotFoundError("n1").http_status == 404
        assert SessionNotOpenError("u1").http_status == 409


class TestApiResponse:
    def test_success_response(self) -> None:
        resp = success_response({"order_id": "o1"})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.data == {"order_id": "o1"}
        assert resp.retryable is False
        assert resp.request_id.startswith("req_")

    def test_error_response(self) -> None:
        resp = error_response(9003, "Remote operation failed", retryable=True)
        assert resp.code == 9003
        assert resp.data is None
        assert resp.retryable is True

    def test_serialization(self) -> None:
        dumped = ApiResponse(data=[1, 2]).model_dump()
        assert set(dumped) == {"code", "message", "data", "retryable", "timestamp", "request_id"}

    def test_request_id_passthrough(self) -> None:
        resp = success_response([], "Order updated", request_id="req_0123456789ab")
        assert resp.message == "Order updated"
        assert resp.request_id == "req_0123456789ab"

    def test_from_app_error_keeps_retryable(self) -> None:
        resp = from_app_error(RemoteOperationError("write orders"), "req_0123456789ab")
        assert resp.code == 9003
        assert resp.retryable is True
        assert resp.message == "Remote operation failed: write orders"
        assert resp.request_id == "req_0123456789ab"
