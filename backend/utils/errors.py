"""Domain exceptions, mapped to HTTP responses in main.py."""
from typing import List, Optional


class ShopError(Exception):
    """Base exception for all shop errors."""

    status_code = 500

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.message = message
        self.errors = errors
        super().__init__(message)


class ValidationFailed(ShopError):
    """Malformed input, accounting-identity violation or invalid price."""

    status_code = 400


class InsufficientStockError(ValidationFailed):
    """Raised when demand for a product exceeds what is available."""

    def __init__(self, product_name: str, available: int, required: int):
        self.product_name = product_name
        self.available = available
        self.required = required
        super().__init__(
            f"Insufficient stock for {product_name}. Available: {available}, Required: {required}"
        )


class InvalidTransitionError(ValidationFailed):
    """Raised when an order status move is not allowed."""

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change order status from {current} to {requested}")


class AuthorizationError(ShopError):
    status_code = 403


class NotFoundError(ShopError):
    status_code = 404

    def __init__(self, resource: str, identifier=None):
        msg = f"{resource} not found"
        if identifier is not None:
            msg = f"{resource} with ID {identifier} not found"
        super().__init__(msg)


class SignatureError(ShopError):
    """Webhook payload could not be authenticated."""

    status_code = 401


class TransactionError(ShopError):
    """Unexpected failure inside the stock deduction transaction."""

    status_code = 500
