# errors.py - Error taxonomy
# Shared by the API client and the services.

from typing import Any, Optional


class StorefrontError(Exception):
    """Base class for every storefront failure."""


class InvalidInputError(StorefrontError):
    """Input rejected on the client before any network call is made."""


class ApiError(StorefrontError):
    """Remote call failed: non-2xx status or ``success: false`` envelope."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def __str__(self) -> str:
        if self.status_code:
            return f"{self.message} (HTTP {self.status_code})"
        return self.message


class NetworkError(ApiError):
    """Transport-level failure: connection refused, timeout, DNS."""


class SessionExpiredError(ApiError):
    """401 outside of login; the unauthorized handler has already run."""
