"""
Authorization checks for role-gated endpoints.

Every caller carries exactly one role. Routes declare the roles they admit
with the ``require_roles`` dependency; a caller outside them gets 403 and
the operation behind the route is never invoked.
"""

import logging
from typing import Callable

from fastapi import Request

from core.middleware.authentication import (
    AuthenticationError,
    Identity,
)
from database.models.users import Role

logger = logging.getLogger(__name__)


class AuthorizationError(Exception):
    """Raised when the caller is not allowed to perform an action."""
    pass


class InsufficientRole(AuthorizationError):
    """Raised when the caller's role is not among the admitted roles."""
    pass


def require_role(identity: Identity, *allowed_roles: Role) -> Identity:
    """
    Check that the caller holds one of ``allowed_roles``.

    Args:
        identity: Authenticated caller
        allowed_roles: Roles admitted by the action

    Returns:
        The identity, unchanged

    Raises:
        InsufficientRole: If the caller's role is not admitted
    """
    if identity.role not in allowed_roles:
        logger.warning(
            f"User {identity.username} with role {identity.role.label} attempted action "
            f"requiring roles: {', '.join(role.label for role in allowed_roles)}"
        )
        raise InsufficientRole(
            f"User role {identity.role.label} not authorized. "
            f"Required: {', '.join(role.label for role in allowed_roles)}"
        )
    return identity


def require_roles(*allowed_roles: Role) -> Callable:
    """
    Dependency to require one of the given roles.

    Args:
        allowed_roles: Allowed roles

    Returns:
        FastAPI dependency resolving to the caller's identity
    """
    async def dependency(request: Request) -> Identity:
        # Set by AuthenticationMiddleware
        identity = request.scope.get("identity")
        if not identity:
            raise AuthenticationError("User not authenticated")
        return require_role(identity, *allowed_roles)

    return dependency


require_recruiter = require_roles(Role.RECRUITER)
require_applicant = require_roles(Role.APPLICANT)
require_signed_in = require_roles(Role.RECRUITER, Role.APPLICANT)
