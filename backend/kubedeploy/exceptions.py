from typing import Any, Optional
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


logger = logging.getLogger(__name__)

DATABASE_UNAVAILABLE_MESSAGE = "Database not available. Authentication is disabled."


class AppException(Exception):
    """Base application error carrying the HTTP status to respond with."""

    def __init__(self, message: str, *, status_code: int = 400, headers: Optional[dict[str, str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.headers = headers


class AuthenticationError(AppException):
    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, status_code=401, headers={"WWW-Authenticate": "Bearer"})


class DatabaseUnavailableError(AppException):
    def __init__(self, message: str = DATABASE_UNAVAILABLE_MESSAGE) -> None:
        super().__init__(message, status_code=503)


class UserExistsError(AppException):
    def __init__(self) -> None:
        super().__init__("User with this email or username already exists", status_code=409)


class InvalidCredentialsError(AppException):
    def __init__(self) -> None:
        super().__init__("Invalid email or password", status_code=401)


class NotFoundException(AppException):
    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=404)


def error_envelope(message: str) -> dict[str, Any]:
    return {"success": False, "error": message}


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


def _format_validation_errors(errors: list[Any]) -> str:
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts)


def register_exception_handlers(app: FastAPI) -> None:
    """Register global handlers so every error leaves as an envelope."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        logger.warning("HTTPException: status=%s path=%s request_id=%s", exc.status_code, request.url.path, _request_id(request))
        return JSONResponse(status_code=exc.status_code, content=error_envelope(message), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
        errors = exc.errors()
        logger.info("ValidationError: path=%s errors=%d request_id=%s", request.url.path, len(errors), _request_id(request))
        return JSONResponse(status_code=400, content=error_envelope(f"Invalid request: {_format_validation_errors(errors)}"))

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):  # type: ignore[override]
        logger.warning(
            "AppException: status=%s path=%s request_id=%s message=%s",
            exc.status_code,
            request.url.path,
            _request_id(request),
            exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content=error_envelope(exc.message), headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):  # type: ignore[override]
        logger.exception("UnhandledException: path=%s request_id=%s", request.url.path, _request_id(request))
        return JSONResponse(status_code=500, content=error_envelope("Internal server error"))
