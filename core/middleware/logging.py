"""
Structured logging middleware with PII masking.
Logs every request and its outcome as one JSON line each, without
credentials, tokens, emails or personal numbers.
"""

import logging
import time
import json
import re
import uuid
from typing import Any, Callable, Optional
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import traceback

logger = logging.getLogger(__name__)


# Field names whose values are never logged
SENSITIVE_FIELD_PATTERNS = [
    re.compile(r'password', re.IGNORECASE),
    re.compile(r'token', re.IGNORECASE),
    re.compile(r'secret', re.IGNORECASE),
    re.compile(r'authorization', re.IGNORECASE),
    re.compile(r'cookie', re.IGNORECASE),
    re.compile(r'personal[_-]?number', re.IGNORECASE),
]

# PII patterns replaced inside free-form values
PII_PATTERNS = [
    (re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b'), '[EMAIL]'),
    (re.compile(r'\b\d{8}-\d{4}\b'), '[PERSONAL_NUMBER]'),
    (re.compile(r'\b\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\b'), '[IP]'),
]

# Probes hit often and carry nothing worth logging
SKIP_PATHS = ['/health', '/ready']


def is_sensitive_field(field_name: str) -> bool:
    """Check if a field name indicates sensitive data."""
    return any(pattern.search(field_name) for pattern in SENSITIVE_FIELD_PATTERNS)


def mask_pii_text(value: str) -> str:
    for pattern, replacement in PII_PATTERNS:
        value = pattern.sub(replacement, value)
    return value


def mask_sensitive_data(data: Any, depth: int = 0, max_depth: int = 10) -> Any:
    """
    Recursively mask sensitive data in dictionaries and lists.

    Values under sensitive keys are replaced entirely; other strings have
    their PII patterns replaced.

    Args:
        data: Data structure to mask
        depth: Current recursion depth
        max_depth: Maximum recursion depth

    Returns:
        Data structure with sensitive values masked
    """
    if depth > max_depth:
        return "[MAX_DEPTH_EXCEEDED]"

    if isinstance(data, dict):
        return {
            key: "[REDACTED]" if is_sensitive_field(str(key))
            else mask_sensitive_data(value, depth + 1, max_depth)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [mask_sensitive_data(item, depth + 1, max_depth) for item in data]
    if isinstance(data, str):
        return mask_pii_text(data)
    return data


def mask_headers(headers: dict) -> dict:
    """
    Mask sensitive headers, keeping the scheme of an Authorization header.

    Args:
        headers: Dictionary of HTTP headers

    Returns:
        Headers with sensitive values masked
    """
    masked = {}
    for key, value in headers.items():
        if not is_sensitive_field(key):
            masked[key] = value
        elif key.lower() == 'authorization' and ' ' in value:
            masked[key] = f"{value.split(' ', 1)[0]} [REDACTED]"
        else:
            masked[key] = "[REDACTED]"
    return masked


def should_log_request(path: str) -> bool:
    """Whether requests to ``path`` are logged."""
    return not any(path.startswith(skip) for skip in SKIP_PATHS)


def completion_level(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    Request logging middleware.

    Assigns every request an id (``x-request-id`` is honoured when sent),
    logs request start and completion with duration and status, and echoes
    the id back in the response headers.
    """

    def __init__(
        self,
        app: ASGIApp,
        log_request_body: bool = False,
        log_response_body: bool = False,
        max_body_size: int = 1024,
    ):
        """
        Initialize logging middleware.

        Args:
            app: The ASGI application
            log_request_body: Whether to log JSON request bodies (masked)
            log_response_body: Whether to log the response size
            max_body_size: Maximum body size to log (bytes)
        """
        super().__init__(app)
        self.log_request_body = log_request_body
        self.log_response_body = log_response_body
        self.max_body_size = max_body_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get('x-request-id') or str(uuid.uuid4())
        request.state.request_id = request_id

        if not should_log_request(request.url.path):
            response = await call_next(request)
            response.headers['x-request-id'] = request_id
            return response

        started = time.perf_counter()
        logger.info(json.dumps(await self._start_record(request, request_id)))

        response = None
        try:
            response = await call_next(request)
        except Exception:
            logger.error(
                f"Request processing error: {request.method} {request.url.path}",
                exc_info=True,
                extra={'request_id': request_id},
            )
            raise
        finally:
            self._log_completion(request, request_id, started, response)

        response.headers['x-request-id'] = request_id
        return response

    async def _start_record(self, request: Request, request_id: str) -> dict[str, Any]:
        identity = request.scope.get('identity')
        record = {
            'event': 'request_started',
            'request_id': request_id,
            'method': request.method,
            'path': request.url.path,
            'username': identity.username if identity else None,
            'query_params': mask_sensitive_data(dict(request.query_params)),
            'headers': mask_headers(dict(request.headers)),
        }
        if self.log_request_body and request.method in ('POST', 'PUT', 'PATCH'):
            body = await self._get_request_body(request)
            if body is not None:
                record['body'] = mask_sensitive_data(body)
        return record

    def _log_completion(
        self,
        request: Request,
        request_id: str,
        started: float,
        response: Optional[Response],
    ) -> None:
        # No response means the exception propagates to the error middleware
        status_code = response.status_code if response is not None else 500
        record = {
            'event': 'request_completed',
            'request_id': request_id,
            'method': request.method,
            'path': request.url.path,
            'status_code': status_code,
            'duration_ms': round((time.perf_counter() - started) * 1000, 2),
        }
        if self.log_response_body and response is not None:
            record['content_length'] = response.headers.get('content-length')
        logger.log(completion_level(status_code), json.dumps(record))

    async def _get_request_body(self, request: Request) -> Any:
        """
        Read a JSON request body for logging.

        Returns:
            Parsed body, a size marker when too large, or None
        """
        if 'application/json' not in request.headers.get('content-type', ''):
            return None

        body_bytes = await request.body()
        if len(body_bytes) > self.max_body_size:
            return {'_truncated': True, '_size': len(body_bytes)}
        try:
            return json.loads(body_bytes)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.debug(f"Could not parse request body: {e}")
            return None


class StructuredFormatter(logging.Formatter):
    """
    Formats log records as JSON lines.

    Request and audit events are logged as JSON strings; those are embedded
    under ``event`` instead of being escaped into ``message``.
    """

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        log_data: dict[str, Any] = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'logger': record.name,
        }

        event = _as_event(message)
        if event is not None:
            log_data['event'] = event
        else:
            log_data['message'] = message

        request_id = getattr(record, 'request_id', None)
        if request_id:
            log_data['request_id'] = request_id

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, tb = record.exc_info
            log_data['exception'] = {
                'type': exc_type.__name__,
                'message': mask_pii_text(str(exc)),
                'traceback': [mask_pii_text(line) for line in traceback.format_exception(exc_type, exc, tb)],
            }

        return json.dumps(log_data, default=str)


def _as_event(message: str) -> Optional[dict[str, Any]]:
    if not message.startswith('{'):
        return None
    try:
        parsed = json.loads(message)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def setup_logging(log_level: str = "INFO", json_logs: bool = True):
    """
    Route every logger through one stderr handler on the root logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_logs: JSON lines when true, plain text for local runs and the CLI
    """
    level = logging.getLevelName(log_level.upper())
    handler = logging.StreamHandler()
    handler.setFormatter(
        StructuredFormatter() if json_logs
        else logging.Formatter('%(asctime)s %(levelname)-7s %(name)s: %(message)s')
    )

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Access lines duplicate request_completed; engine echo is controlled by DATABASE_ECHO
    for name in ('uvicorn.access', 'sqlalchemy.engine'):
        logging.getLogger(name).setLevel(logging.WARNING)
