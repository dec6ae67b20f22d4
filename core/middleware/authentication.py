"""
Authentication middleware for verifying caller identity.

This middleware:
1. Reads the identity token from the auth cookie or an Authorization header
2. Verifies the token signature and expiry
3. Loads the caller identity into the request scope
4. Rejects protected requests without a valid token with 401
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

import jwt
from fastapi import Request, status
from fastapi.responses import JSONResponse

from core.config import settings
from core.security import verify_auth_token
from database.models.users import Role

logger = logging.getLogger(__name__)

# Public endpoints that don't require authentication
PUBLIC_ENDPOINTS = [
    "/",
    "/health",
    "/ready",
    "/api/v1/user/signin",
    "/api/v1/user/signup",
    "/api/v1/user/signout",
    "/docs",
    "/redoc",
    "/openapi.json",
]


@dataclass(frozen=True)
class Identity:
    """Caller identity decoded from a verified token."""

    username: str
    role: Role

    @property
    def role_id(self) -> int:
        return self.role.value


class AuthenticationError(Exception):
    """Base exception for authentication errors."""
    pass


class TokenExpiredError(AuthenticationError):
    """Raised when the identity token has expired."""
    pass


class TokenInvalidError(AuthenticationError):
    """Raised when the identity token is missing or invalid."""
    pass


def decode_identity(
    token: str,
    secret: Optional[str] = None,
    algorithm: Optional[str] = None,
) -> Identity:
    """
    Verify a token and build the identity it carries.

    Raises:
        TokenExpiredError: If the token has expired
        TokenInvalidError: If the token is malformed, badly signed or names
            an unknown role
    """
    try:
        payload = verify_auth_token(token, secret, algorithm)
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenInvalidError(f"Invalid token: {str(e)}")

    try:
        role = Role(payload["role_id"])
    except ValueError:
        raise TokenInvalidError(f"Unknown role id {payload['role_id']}")

    return Identity(username=payload["username"], role=role)


class AuthenticationMiddleware:
    """
    Authentication middleware that validates identity tokens.

    Tokens are stateless: a verified token is trusted until it expires,
    without a storage round trip.
    """

    def __init__(
        self,
        app: Callable,
        jwt_secret: Optional[str] = None,
        jwt_algorithm: Optional[str] = None,
        cookie_name: Optional[str] = None,
    ):
        """
        Initialize authentication middleware.

        Args:
            app: ASGI application
            jwt_secret: Secret key for JWT verification
            jwt_algorithm: JWT signing algorithm
            cookie_name: Name of the cookie carrying the token
        """
        self.app = app
        self.jwt_secret = jwt_secret or settings.jwt_secret
        self.jwt_algorithm = jwt_algorithm or settings.jwt_algorithm
        self.cookie_name = cookie_name or settings.auth_cookie_name

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        """
        Process requests with authentication validation.

        Args:
            scope: ASGI scope dictionary
            receive: ASGI receive function
            send: ASGI send function
        """
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        token = self._extract_token(request)

        if self._is_public_endpoint(request.url.path):
            # Public routes still see the caller when a valid token is sent
            if token:
                try:
                    scope["identity"] = decode_identity(token, self.jwt_secret, self.jwt_algorithm)
                except AuthenticationError:
                    pass
            await self.app(scope, receive, send)
            return

        try:
            if not token:
                raise TokenInvalidError("No authentication token provided")
            scope["identity"] = decode_identity(token, self.jwt_secret, self.jwt_algorithm)
        except TokenExpiredError:
            await self._send_error_response(
                scope,
                receive,
                send,
                status_code=status.HTTP_401_UNAUTHORIZED,
                code="TOKEN_EXPIRED",
                message="Authentication token has expired. Please sign in again.",
            )
            return
        except TokenInvalidError as e:
            logger.warning(f"Rejected request to {request.url.path}: {str(e)}")
            await self._send_error_response(
                scope,
                receive,
                send,
                status_code=status.HTTP_401_UNAUTHORIZED,
                code="TOKEN_INVALID",
                message="Invalid authentication token.",
            )
            return

        await self.app(scope, receive, send)

    def _is_public_endpoint(self, path: str) -> bool:
        """
        Check if endpoint is public (no auth required).

        Args:
            path: Request path

        Returns:
            True if endpoint is public
        """
        if path in PUBLIC_ENDPOINTS:
            return True

        public_prefixes = ["/docs", "/redoc"]
        return any(path.startswith(prefix) for prefix in public_prefixes)

    def _extract_token(self, request: Request) -> Optional[str]:
        """
        Extract the token from the auth cookie, falling back to a Bearer
        Authorization header.

        Args:
            request: FastAPI request

        Returns:
            JWT token or None
        """
        token = request.cookies.get(self.cookie_name)
        if token:
            return token

        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            return auth_header[7:]

        return None

    async def _send_error_response(
        self,
        scope: dict,
        receive: Callable,
        send: Callable,
        status_code: int,
        code: str,
        message: str,
    ) -> None:
        """
        Send error response for authentication failures.

        Args:
            status_code: HTTP status code
            code: Error code
            message: Error message
        """
        error_response = {
            "error": {
                "code": code,
                "message": message,
                "path": scope.get("path"),
                "method": scope.get("method"),
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        }

        response = JSONResponse(
            status_code=status_code,
            content=error_response,
        )
        await response(scope, receive, send)


def get_current_identity(request: Request) -> Identity:
    """
    Get the authenticated caller from the request scope.

    Args:
        request: FastAPI request

    Returns:
        Caller identity

    Raises:
        AuthenticationError: If no identity was attached to the request
    """
    identity = request.scope.get("identity")
    if not identity:
        raise AuthenticationError("User not authenticated")
    return identity
