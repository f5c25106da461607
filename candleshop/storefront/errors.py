# candleshop/storefront/errors.py
from typing import Dict, Optional


class StorefrontError(Exception):
    """Base class for every failure the storefront shows to the user."""

    # Title used for the toast notification
    title = "Something went wrong"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


# Input rejected, either by a local form schema or by the API (400/422)
class ValidationError(StorefrontError):
    title = "Invalid data"

    def __init__(self, message: str, field_errors: Optional[Dict[str, str]] = None, status_code: Optional[int] = None):
        super().__init__(message, status_code)
        self.field_errors = field_errors or {}


# Request failed, timed out or the server broke; the user may simply retry
class NetworkError(StorefrontError):
    title = "Connection problem"


# Stock exceeded, missing variant and similar clashes with current data
class ConflictError(StorefrontError):
    title = "Action not possible"


# The cart shown to the user no longer matches the server
class ReconciliationError(ConflictError):
    title = "Your cart has changed"


class NotFoundError(StorefrontError):
    title = "Not found"


class AuthError(StorefrontError):
    title = "Please sign in"
