"""Identity Toolkit exceptions for error handling."""
from __future__ import annotations
from typing import Optional


class IdentityError(Exception):
    """Base exception for all Identity Toolkit operations."""
    pass


class IdentityAPIError(IdentityError):
    """Error reported by (or while talking to) the Identity Toolkit API.

    Every transport, HTTP and response-parsing failure surfaces as this type
    (or one of its subclasses), so callers only need a single except clause.

    Attributes:
        message: Human readable error message
        status_code: HTTP status code (None when no response was received)
        code: Library error code (e.g. "tenant-not-found", "unavailable")
        endpoint: URL of the request that failed
        server_code: Raw error code reported by the service, if any
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: str = "unknown",
        endpoint: str = "",
        server_code: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code
        self.endpoint = endpoint
        self.server_code = server_code
        super().__init__(message)


class TenantNotFoundError(IdentityAPIError):
    """Tenant lookup failed - no tenant exists for the given identifier."""
    pass


class InsufficientPermissionError(IdentityAPIError):
    """Credential lacks the IAM permissions required for the operation."""
    pass


class OperationCancelledError(IdentityError):
    """The caller's cancellation event fired before the request completed."""
    pass
