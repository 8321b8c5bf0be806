"""
Error types raised by the Natter core.

Every error carries the HTTP status it maps to at the API boundary, so the
request layer and the audit log agree on a single outcome per failure.

Invariants:
    - All errors inherit from NatterError
    - PermissionDeniedError keeps its sub-reason for logs, but its message
      never reveals whether a grant exists
"""

from __future__ import annotations

from typing import Any


class NatterError(Exception):
    """Base exception for all Natter errors.

    Attributes:
        message: Error message safe to return to the caller
        code: Error code for programmatic handling
        status_code: HTTP status the error maps to
    """

    code = "NATTER_ERROR"
    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(NatterError):
    """Input failed validation (text length, empty name, capability code)."""

    code = "VALIDATION"
    status_code = 400


class AuthenticationError(NatterError):
    """No valid credentials were presented."""

    code = "AUTHENTICATION_REQUIRED"
    status_code = 401


class PermissionDeniedError(NatterError):
    """Capability check failed.

    Attributes:
        reason: NO_GRANT or INSUFFICIENT_CAPABILITY, for diagnostics only
    """

    code = "PERMISSION_DENIED"
    status_code = 403

    def __init__(self, reason: str | None = None) -> None:
        super().__init__("permission denied", details={"reason": reason})
        self.reason = reason


class NotFoundError(NatterError):
    """Referenced space, user, message or grant does not exist."""

    code = "NOT_FOUND"
    status_code = 404


class ConflictError(NatterError):
    """Uniqueness violation (space name, user name)."""

    code = "CONFLICT"
    status_code = 409


class UnsupportedMediaTypeError(NatterError):
    """POST body is not JSON."""

    code = "UNSUPPORTED_MEDIA_TYPE"
    status_code = 415


class TooManyRequestsError(NatterError):
    """Request rate limit exceeded. Clients should retry after a short pause."""

    code = "TOO_MANY_REQUESTS"
    status_code = 429


class AuditWriteError(NatterError):
    """The audit trail could not be written; the request must fail."""

    code = "AUDIT_WRITE_FAILED"
    status_code = 500


class TransientStoreError(NatterError):
    """Datastore unavailable. Callers may retry."""

    code = "TRANSIENT_STORE_ERROR"
    status_code = 503
