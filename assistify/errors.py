"""
Error taxonomy shared by services and routers.

Services raise these; the exception handlers in assistify.main turn them into
{"detail": ..., "code": ...} JSON responses. 5xx errors may carry an opaque
diagnostic which is returned under "error".
"""

from __future__ import annotations

from typing import Any, Optional


class AppError(Exception):
    """Base class for every error that maps onto an HTTP response."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, *, diagnostic: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.diagnostic = diagnostic

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"detail": self.message, "code": self.code}
        if self.status_code >= 500 and self.diagnostic is not None:
            payload["error"] = self.diagnostic
        return payload


class InvalidInput(AppError):
    status_code = 400
    code = "INVALID_INPUT"


class Unauthenticated(AppError):
    status_code = 401
    code = "UNAUTHENTICATED"


class Forbidden(AppError):
    status_code = 403
    code = "FORBIDDEN"


class NotFound(AppError):
    status_code = 404
    code = "NOT_FOUND"


class UpstreamError(AppError):
    """The remote generation endpoint failed, timed out, or was unreachable."""

    status_code = 502
    code = "UPSTREAM_ERROR"


class UpstreamAuthError(UpstreamError):
    """The remote endpoint rejected our credential."""

    code = "UPSTREAM_AUTH_FAILED"


class PersistenceError(AppError):
    status_code = 500
    code = "PERSISTENCE_ERROR"


class InternalError(AppError):
    status_code = 500
    code = "INTERNAL_ERROR"


class GenerationNotConfigured(InternalError):
    code = "GENERATION_NOT_CONFIGURED"
