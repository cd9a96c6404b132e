"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/Session
  4xxx: Order lifecycle
  6xxx: Dispatch workflow
  7xxx: Notifications
  8xxx: Input validation
  9xxx: System / remote operations
"""


class AppError(Exception):
    """Base application error."""

    retryable: bool = False

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


# --- 1xxx: Auth/Session ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401)


class SessionNotOpenError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(1010, f"No dashboard session open for user {user_id}", 409)


# --- 4xxx: Order ---

class OrderNotFoundError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4004, f"Order not found: {order_id}", 404)


class IllegalTransitionError(AppError):
    def __init__(self, order_id: str, current: str, target: str) -> None:
        super().__init__(
            4010,
            f"Order {order_id} cannot move from {current} to {target}",
            422,
        )


class NotOrderSellerError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4011, f"Order {order_id} has no items sold by this seller", 403)


class DispatchPhotoRequiredError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(
            4012,
            f"Order {order_id} can only be dispatched with a dispatch photo",
            422,
        )


# --- 6xxx: Dispatch ---

class InvalidDispatchPhotoError(AppError):
    def __init__(self, reason: str) -> None:
        super().__init__(6001, reason, 422)


class DispatchNotOpenError(AppError):
    def __init__(self) -> None:
        super().__init__(6002, "No dispatch workflow is open", 409)


class OrderNotDispatchableError(AppError):
    def __init__(self, order_id: str, status: str, hint: str = "") -> None:
        message = f"Order {order_id} in status {status} cannot be dispatched"
        if hint:
            message = f"{message}; {hint}"
        super().__init__(6003, message, 422)


# --- 7xxx: Notifications ---

class NotificationNotFoundError(AppError):
    def __init__(self, notification_id: str) -> None:
        super().__init__(7001, f"Notification not found: {notification_id}", 404)


# --- 8xxx: Validation ---

class InvalidInputError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(8001, f"Invalid input: {detail}", 422)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class RemoteOperationError(AppError):
    """A gateway or storage call failed; the operation may be retried."""

    retryable = True

    def __init__(self, operation: str, detail: str = "") -> None:
        message = f"Remote operation failed: {operation}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(9003, message, 503)
        self.operation = operation
