"""
Domain errors raised by the store, the ordering engine and the auth gate.

Handlers in navstation.main translate them to HTTP responses, so services never
build HTTP responses themselves.
"""

from typing import Optional


class NavigationError(Exception):
    """Base class for all navstation errors."""
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class ValidationError(NavigationError):
    """Input is missing a required field or references something that does not exist."""
    status_code = 400


class AuthError(NavigationError):
    """Missing, malformed or expired token, or bad credentials."""
    status_code = 401


class BatchError(NavigationError):
    """A reorder batch was rejected; none of its rows were written."""
    status_code = 409

    def __init__(self, message: str = "", entity_id: Optional[int] = None):
        super().__init__(message)
        self.entity_id = entity_id


class StoreError(NavigationError):
    """The backing store failed (I/O, driver or constraint error)."""
    status_code = 500
