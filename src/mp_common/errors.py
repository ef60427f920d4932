"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Product
  3xxx: Order
  4xxx: Payment
  9xxx: System

Every error also carries a stable `kind` string. Both transports expose
`kind` to clients (GraphQL `extensions.code`, Socket.IO `error.code`);
`code` is the finer-grained numeric identifier.
"""


class ErrorKind:
    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_OPERATION = "INVALID_OPERATION"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    PAYMENT_CREATION_FAILED = "PAYMENT_CREATION_FAILED"
    PAYMENT_EXECUTION_FAILED = "PAYMENT_EXECUTION_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        kind: str = ErrorKind.INTERNAL_ERROR,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.kind = kind
        super().__init__(message)


# --- 1xxx: Auth/User ---

class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(
            1001, "User with this email already exists", 409, ErrorKind.VALIDATION_ERROR
        )


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Invalid email or password", 401, ErrorKind.UNAUTHENTICATED)


class UnauthenticatedError(AppError):
    def __init__(self) -> None:
        super().__init__(
            1003,
            "You must be logged in to perform this action",
            401,
            ErrorKind.UNAUTHENTICATED,
        )


class ForbiddenError(AppError):
    def __init__(self, detail: str = "Access denied") -> None:
        super().__init__(1004, detail, 403, ErrorKind.FORBIDDEN)


class InvalidTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Token is invalid or expired", 401, ErrorKind.UNAUTHENTICATED)


class UserNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(1006, f"User not found: {user_id}", 404, ErrorKind.NOT_FOUND)


# --- 2xxx: Product ---

class ProductNotFoundError(AppError):
    def __init__(self, product_id: str) -> None:
        super().__init__(
            2001, f"Product not found or inactive: {product_id}", 404, ErrorKind.NOT_FOUND
        )


class InsufficientStockError(AppError):
    def __init__(self, requested: int, available: int) -> None:
        super().__init__(
            2002,
            f"Insufficient stock: requested {requested}, available {available}",
            422,
            ErrorKind.INSUFFICIENT_STOCK,
        )


# --- 3xxx: Order ---

class OrderNotFoundError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(3001, f"Order not found: {order_id}", 404, ErrorKind.NOT_FOUND)


class SelfPurchaseError(AppError):
    def __init__(self) -> None:
        super().__init__(
            3002, "You cannot order your own product", 422, ErrorKind.INVALID_OPERATION
        )


class InvalidOrderStateError(AppError):
    def __init__(self, order_id: str, status: str) -> None:
        super().__init__(
            3003,
            f"Order {order_id} in status {status} does not allow this operation",
            422,
            ErrorKind.INVALID_OPERATION,
        )


class InvalidTransitionError(AppError):
    def __init__(self, order_id: str, current: str, target: str) -> None:
        super().__init__(
            3004,
            f"Order {order_id} cannot move from {current} to {target}",
            422,
            ErrorKind.INVALID_TRANSITION,
        )


class PaymentMismatchError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(
            3005,
            f"Payment does not belong to order {order_id}",
            422,
            ErrorKind.INVALID_OPERATION,
        )


# --- 4xxx: Payment ---

class PaymentCreationFailedError(AppError):
    def __init__(self, detail: str = "Payment could not be created") -> None:
        super().__init__(4001, detail, 502, ErrorKind.PAYMENT_CREATION_FAILED)


class PaymentExecutionFailedError(AppError):
    def __init__(self, detail: str = "Payment could not be executed") -> None:
        super().__init__(4002, detail, 502, ErrorKind.PAYMENT_EXECUTION_FAILED)


# --- 9xxx: System ---

class ValidationError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(9001, detail, 422, ErrorKind.VALIDATION_ERROR)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500, ErrorKind.INTERNAL_ERROR)
