"""
Core middleware package.

This package provides the HTTP boundary components:
- Error handling with sensitive data sanitization
- Structured logging with PII masking
- Authentication with cookie or Bearer identity tokens
- Authorization with role gates
"""

from core.middleware.error_handling import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    sanitize_error_message,
)

from core.middleware.logging import (
    StructuredLoggingMiddleware,
    setup_logging,
)

from core.middleware.authentication import (
    AuthenticationMiddleware,
    AuthenticationError,
    Identity,
    get_current_identity,
)

from core.middleware.authorization import (
    AuthorizationError,
    InsufficientRole,
    require_role,
    require_roles,
    require_recruiter,
    require_applicant,
    require_signed_in,
)

__all__ = [
    # Error handling
    "ErrorHandlingMiddleware",
    "setup_error_handlers",
    "sanitize_error_message",
    # Logging
    "StructuredLoggingMiddleware",
    "setup_logging",
    # Authentication
    "AuthenticationMiddleware",
    "AuthenticationError",
    "Identity",
    "get_current_identity",
    # Authorization
    "AuthorizationError",
    "InsufficientRole",
    "require_role",
    "require_roles",
    "require_recruiter",
    "require_applicant",
    "require_signed_in",
]
