"""
Error handling middleware with security-compliant error sanitization.
Prevents credentials and personal numbers from leaking into responses and
logs while keeping one error envelope for every failure.
"""

import logging
import traceback
from typing import Any, Callable, NamedTuple, Optional
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError, IntegrityError, OperationalError
import re

from core.middleware.authentication import AuthenticationError
from core.middleware.authorization import AuthorizationError
from database.engine import DatabaseUnavailableError

logger = logging.getLogger(__name__)

# Patterns for sensitive data that should never be logged
SENSITIVE_PATTERNS = [
    re.compile(r'password["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'token["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'secret["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'authorization["\s:]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'recruitmentAuth=[^;\s]+'),
    re.compile(r'\b\d{8}-\d{4}\b'),  # Personal number
    re.compile(r'\b[0-9a-f]{64}\b'),  # Password digest
]


def sanitize_error_message(message: str) -> str:
    """
    Remove sensitive information from error messages.

    Args:
        message: Original error message

    Returns:
        Sanitized error message
    """
    sanitized = str(message)
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub('[REDACTED]', sanitized)
    return sanitized


def get_safe_error_details(exc: Exception, include_details: bool = False) -> dict[str, Any]:
    """
    Extract safe error details without exposing sensitive information.

    Args:
        exc: The exception to extract details from
        include_details: Whether to include detailed error information (only in dev)

    Returns:
        Dictionary with safe error details
    """
    details = {
        "type": type(exc).__name__,
        "message": sanitize_error_message(str(exc)),
    }

    if include_details:
        details["traceback"] = sanitize_error_message(traceback.format_exc())

    return details


def format_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Format pydantic error entries into a user-friendly structure.

    Input values are echoed only when they are simple and match no
    sensitive pattern.
    """
    formatted = []
    for error in errors:
        error_dict = {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": sanitize_error_message(error["msg"]),
            "type": error["type"],
        }

        if "input" in error:
            input_value = error["input"]
            if isinstance(input_value, (str, int, float, bool)):
                input_str = str(input_value)
                if not any(pattern.search(input_str) for pattern in SENSITIVE_PATTERNS):
                    error_dict["input"] = input_value

        formatted.append(error_dict)

    return formatted


def error_envelope(
    code: str,
    message: str,
    path: str,
    method: str,
    details: Any = None,
) -> dict[str, Any]:
    """Build the ``{"error": {...}}`` body shared by every failure response."""
    body = {
        "error": {
            "code": code,
            "message": message,
            "path": path,
            "method": method,
        }
    }
    if details is not None:
        body["error"]["details"] = details
    return body


class ErrorMapping(NamedTuple):
    """How one exception family is reported to the caller."""

    exc_type: type[BaseException]
    status_code: int
    code: str
    message: str
    log_level: int = logging.ERROR


# First match wins; subclasses precede their bases. pydantic's
# ValidationError subclasses ValueError, so it precedes the ValueError branch.
ERROR_MAPPINGS: tuple[ErrorMapping, ...] = (
    ErrorMapping(AuthenticationError, status.HTTP_401_UNAUTHORIZED,
                 "NOT_AUTHENTICATED", "Authentication required", logging.WARNING),
    ErrorMapping(AuthorizationError, status.HTTP_403_FORBIDDEN,
                 "PERMISSION_DENIED", "You don't have permission to perform this action",
                 logging.WARNING),
    ErrorMapping(DatabaseUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE,
                 "DATABASE_UNAVAILABLE", "Database service temporarily unavailable"),
    ErrorMapping(IntegrityError, status.HTTP_409_CONFLICT,
                 "INTEGRITY_ERROR", "Database integrity constraint violated"),
    ErrorMapping(OperationalError, status.HTTP_503_SERVICE_UNAVAILABLE,
                 "DATABASE_ERROR", "Database service temporarily unavailable"),
    ErrorMapping(SQLAlchemyError, status.HTTP_500_INTERNAL_SERVER_ERROR,
                 "DATABASE_ERROR", "A database error occurred"),
    ErrorMapping(ValidationError, status.HTTP_500_INTERNAL_SERVER_ERROR,
                 "CONTRACT_VIOLATION", "The server produced an invalid result"),
    ErrorMapping(TimeoutError, status.HTTP_504_GATEWAY_TIMEOUT,
                 "TIMEOUT", "The request timed out"),
)

UNEXPECTED = ErrorMapping(
    Exception, status.HTTP_500_INTERNAL_SERVER_ERROR,
    "INTERNAL_SERVER_ERROR", "An unexpected error occurred",
)


def find_error_mapping(exc: BaseException) -> ErrorMapping:
    """Return the reporting rule for ``exc``, falling back to a generic 500."""
    for mapping in ERROR_MAPPINGS:
        if isinstance(exc, mapping.exc_type):
            return mapping
    return UNEXPECTED


def _request_id(scope: dict) -> Optional[str]:
    for name, value in scope.get("headers", []):
        if name == b"x-request-id":
            return value.decode()
    return None


class ErrorHandlingMiddleware:
    """
    Last line of defence for anything the routes and the exception handlers
    let through.

    Every failure becomes the shared error envelope. Messages from unexpected
    exceptions are never echoed; ``debug`` adds sanitized details.
    """

    def __init__(self, app: Callable, debug: bool = False):
        self.app = app
        self.debug = debug

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        try:
            await self.app(scope, receive, send)
        except Exception as exc:
            response = self._handle_exception(exc, scope)
            await response(scope, receive, send)

    def _handle_exception(self, exc: Exception, scope: dict) -> Response:
        path = scope.get("path", "unknown")
        method = scope.get("method", "unknown")
        details = None

        if isinstance(exc, StarletteHTTPException):
            status_code, code = exc.status_code, "HTTP_EXCEPTION"
            message = sanitize_error_message(exc.detail)
            logger.warning(f"HTTP exception: {method} {path} - {status_code} {message}")

        elif isinstance(exc, RequestValidationError):
            status_code, code = status.HTTP_422_UNPROCESSABLE_ENTITY, "VALIDATION_ERROR"
            message = "Request validation failed"
            details = format_validation_errors(exc.errors())
            logger.warning(f"Validation error: {method} {path} - {details}")

        elif isinstance(exc, ValueError) and not isinstance(exc, ValidationError):
            status_code, code = status.HTTP_400_BAD_REQUEST, "INVALID_INPUT"
            message = sanitize_error_message(str(exc)) or "Invalid input provided"
            logger.warning(f"Invalid input: {method} {path} - {message}")

        else:
            mapping = find_error_mapping(exc)
            status_code, code, message = mapping.status_code, mapping.code, mapping.message
            logger.log(
                mapping.log_level,
                f"{type(exc).__name__} on {method} {path}: {sanitize_error_message(str(exc))}",
                exc_info=mapping.log_level >= logging.ERROR,
            )
            if self.debug and mapping.status_code >= 500:
                details = get_safe_error_details(exc, include_details=True)

        body = error_envelope(code, message, path, method, details)
        request_id = _request_id(scope)
        if request_id:
            body["error"]["request_id"] = request_id

        return JSONResponse(status_code=status_code, content=body)


def _envelope_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_envelope(code, message, str(request.url.path), request.method, details),
        headers=headers,
    )


def setup_error_handlers(app: FastAPI) -> None:
    """
    Register envelope-producing handlers for the exceptions FastAPI
    dispatches itself: HTTP errors, request validation and the auth gates.
    """

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _envelope_response(
            request,
            exc.status_code,
            "HTTP_EXCEPTION",
            sanitize_error_message(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _envelope_response(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "VALIDATION_ERROR",
            "Request validation failed",
            format_validation_errors(exc.errors()),
        )

    @app.exception_handler(AuthenticationError)
    @app.exception_handler(AuthorizationError)
    async def gate_exception_handler(request: Request, exc: Exception):
        mapping = find_error_mapping(exc)
        logger.warning(
            f"{type(exc).__name__}: {request.method} {request.url.path} - "
            f"{sanitize_error_message(str(exc))}"
        )
        return _envelope_response(request, mapping.status_code, mapping.code, mapping.message)
