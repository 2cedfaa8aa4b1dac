"""
Custom exceptions for CartSync.

Provides a hierarchy of exceptions separating local policy rejections
(never reach the network) from server and transport failures.
"""

from typing import Any, Dict, Optional

UNREACHABLE_MESSAGE = (
    "Something went wrong. Check that the backend is running, reachable and returns valid JSON."
)


class CartSyncError(Exception):
    """Base exception for all CartSync errors."""

    level = "error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(CartSyncError):
    """Raised when there are configuration issues."""
    pass


class LocalPolicyError(CartSyncError):
    """Rejected on the client before any request was made."""

    level = "warning"


class UnauthenticatedError(LocalPolicyError):
    """A cart write was attempted without a logged-in session."""

    def __init__(self, message: str = "Login to add an item to the Cart", **kwargs):
        super().__init__(message, **kwargs)


class DuplicateItemError(LocalPolicyError):
    """The product is already in the cart and duplicates are not allowed."""

    def __init__(
        self,
        product_id: str,
        message: str = (
            "Item already in cart. Use the cart sidebar to update quantity or remove item."
        ),
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.product_id = product_id


class InputError(LocalPolicyError):
    """User input failed local validation."""
    pass


class DataAccessError(CartSyncError):
    """Base class for errors talking to the backend."""
    pass


class NetworkError(DataAccessError):
    """Transport or connectivity failure with no interpretable server response."""

    def __init__(
        self,
        message: str = UNREACHABLE_MESSAGE,
        cause: Optional[BaseException] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.cause = cause


class ApiStatusError(DataAccessError):
    """The server answered with an error status; ``message`` is the server's text."""

    def __init__(self, status_code: int, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code


class AuthError(ApiStatusError):
    """Server rejected the credentials or token."""
    pass


class ValidationError(ApiStatusError):
    """Server rejected the request payload, e.g. an unknown product."""
    pass


class NotFoundSignal(ApiStatusError):
    """HTTP 404. For search this means "no matches" rather than a failure."""
    pass
