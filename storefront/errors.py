"""
Cart error types and shared error messages.

Message constants are kept here so routers, services and tests use the
same wording.
"""

# Validation
ERROR_INVALID_QUANTITY = "quantity must be a positive integer"
ERROR_QUANTITY_NOT_INT = "quantity must be an integer"
ERROR_EMPTY_PRODUCT_ID = "product_id must be a non-empty string"
ERROR_CART_EMPTY = "Cart is empty"

# Storage
ERROR_CART_UNAVAILABLE = "Cart service unavailable"
ERROR_CART_PERMISSION = "Not allowed to access this cart"
ERROR_LOCAL_CART_CORRUPT = "Stored cart could not be parsed"

# Checkout
ERROR_NO_CHECKOUT_URL = "No checkout URL received"
ERROR_CHECKOUT_FAILED = "Failed to create checkout session"


class CartError(Exception):
    """Base class for all cart errors."""

    default_message = ERROR_CART_UNAVAILABLE

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(CartError):
    """Rejected input; raised before anything is written."""

    default_message = ERROR_INVALID_QUANTITY


class StorageUnavailable(CartError):
    """The backing store for the active mode could not be read or written."""


class RemoteUnavailable(StorageUnavailable):
    """Remote per-user cart store failed (network, server error)."""


class PermissionDenied(StorageUnavailable):
    """Remote per-user cart store rejected the request."""

    default_message = ERROR_CART_PERMISSION


class LocalCorrupt(StorageUnavailable):
    """The local cart slot holds a payload that cannot be parsed."""

    default_message = ERROR_LOCAL_CART_CORRUPT


class CheckoutError(CartError):
    """The payment-session collaborator did not return a redirect target."""

    default_message = ERROR_CHECKOUT_FAILED


__all__ = [
    "CartError",
    "CheckoutError",
    "LocalCorrupt",
    "PermissionDenied",
    "RemoteUnavailable",
    "StorageUnavailable",
    "ValidationError",
]
