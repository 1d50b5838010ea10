from __future__ import annotations

from typing import Optional


class ServiceError(Exception):
    """Base class for service-layer exceptions mapped to HTTP responses.

    Each subclass carries the HTTP status_code and the error_code used in the
    JSON error envelope, so handlers branch on the class and never on the
    message or on third-party exception names.
    """

    status_code: int = 400
    error_code: str = "VALIDATION_ERROR"

    def __init__(self, message: str, *, detail: Optional[dict] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class ValidationError(ServiceError):
    """Required input missing or malformed (400)."""
    status_code = 400
    error_code = "VALIDATION_ERROR"


class AuthenticationError(ServiceError):
    """Bad credentials or a missing/invalid/expired token (401)."""
    status_code = 401
    error_code = "AUTHENTICATION_ERROR"


class InternalError(ServiceError):
    """Persistence or unexpected failure (500). The message is logged, never returned."""
    status_code = 500
    error_code = "INTERNAL_ERROR"
