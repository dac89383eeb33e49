"""
Application error hierarchy and FastAPI exception handlers.

AppError is the base for all typed errors. The global exception handler
converts AppError subclasses to consistent JSON responses.

Captcha and token state-machine violations derive from CaptchaStateError and
are always client-visible rejections. Configuration errors are raised while
the app is being built and abort startup.

Non-AppError exceptions bubble up as 500s (with Sentry reporting in production).
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shared.logging import get_logger

log = get_logger(__name__)


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details

    def to_dict(self) -> dict:
        payload: dict = {"error": self.message, "code": self.error_code}
        if self.field is not None:
            payload["field"] = self.field
        if self.details is not None:
            payload["details"] = self.details
        return payload


class AuthenticationError(AppError):
    status_code = 401
    error_code = "authentication_error"


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"


class ConflictError(AppError):
    status_code = 409
    error_code = "conflict"


class VersionConflictError(ConflictError):
    """A compare-and-swap write found a newer version in the store."""

    error_code = "version_conflict"


# ── Captcha / token state machine ────────────────────────────────────────────


class CaptchaStateError(AppError):
    status_code = 400
    error_code = "captcha_state_error"


class AlreadySolvedError(CaptchaStateError):
    error_code = "captcha_already_solved"


class ExpiredError(CaptchaStateError):
    error_code = "captcha_expired"


class AlreadyActivatedError(CaptchaStateError):
    error_code = "token_already_activated"


class NotYetActivatedError(CaptchaStateError):
    error_code = "token_not_activated"


# ── Startup configuration ────────────────────────────────────────────────────


class ConfigurationError(AppError):
    error_code = "configuration_error"


class InvalidRangeFormatError(ConfigurationError):
    error_code = "invalid_range_format"


class InvalidConfigurationError(ConfigurationError):
    error_code = "invalid_configuration"


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            log.error("app_error", error_code=exc.error_code, error=exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        # Sentry integration: if sentry_sdk is initialized it will auto-capture
        # unhandled exceptions before this handler fires.
        log.error(
            "unhandled_exception",
            path=request.url.path,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content={"error": "An internal server error occurred.", "code": "internal_error"},
        )
