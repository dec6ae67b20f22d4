"""
Security utilities.

Provides credential hashing, identity token issuance/verification and
audit logging with PII masking for API endpoints.
"""

import hashlib
import json
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional, Set, TypedDict

import jwt

from core.config import settings

logger = logging.getLogger("security.audit")

# Key derivation parameters; changing any of them invalidates stored digests.
PBKDF2_ALGORITHM = "sha512"
PBKDF2_ITERATIONS = 25
PBKDF2_KEY_LENGTH = 32


class JWTPayload(TypedDict, total=False):
    """Claims carried by the identity token."""
    username: str
    role_id: int
    iat: int
    exp: int


class AuditAction(str, Enum):
    """Audit log action types."""
    SIGNIN = "SIGNIN"
    SIGNUP = "SIGNUP"
    VIEW = "VIEW"
    LIST = "LIST"
    REGISTER = "REGISTER"
    DECIDE = "DECIDE"


class ResourceType(str, Enum):
    """Resource types for audit logging."""
    USER = "USER"
    JOB = "JOB"
    APPLICATION = "APPLICATION"


# PII fields that should be masked in logs
PII_FIELDS: Set[str] = {
    "email", "first_name", "last_name", "name",
    "personal_number", "password",
}


def hash_password(username: str, password: str, global_salt: Optional[str] = None) -> str:
    """
    Derive the stored password digest for a user.

    The salt is the global salt joined to the username with an underscore,
    so the digest is deterministic and can be compared on signin.

    Args:
        username: Login handle, part of the per-user salt
        password: Plain text password
        global_salt: Override for the configured global salt

    Returns:
        Hex encoded PBKDF2-HMAC-SHA512 digest (64 characters)
    """
    salt = f"{global_salt if global_salt is not None else settings.global_salt}_{username}"
    derived = hashlib.pbkdf2_hmac(
        PBKDF2_ALGORITHM,
        password.encode("utf-8"),
        salt.encode("utf-8"),
        PBKDF2_ITERATIONS,
        dklen=PBKDF2_KEY_LENGTH,
    )
    return derived.hex()


def create_auth_token(
    username: str,
    role_id: int,
    secret: Optional[str] = None,
    algorithm: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Issue a signed identity token.

    Args:
        username: Login handle of the signed in user
        role_id: Numeric role of the user
        secret: Signing secret (defaults to settings)
        algorithm: JWT algorithm (defaults to settings)
        expires_delta: Lifetime (defaults to AUTH_TOKEN_EXPIRE_DAYS)

    Returns:
        Encoded JWT
    """
    if expires_delta is None:
        expires_delta = timedelta(days=settings.auth_token_expire_days)

    now = datetime.now(timezone.utc)
    payload: JWTPayload = {
        "username": username,
        "role_id": int(role_id),
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
    }
    return jwt.encode(
        payload,
        secret or settings.jwt_secret,
        algorithm=algorithm or settings.jwt_algorithm,
    )


def verify_auth_token(
    token: str,
    secret: Optional[str] = None,
    algorithm: Optional[str] = None,
) -> JWTPayload:
    """
    Verify an identity token and return its claims.

    Raises:
        jwt.ExpiredSignatureError: If the token has expired
        jwt.InvalidTokenError: If the token is malformed, badly signed or
            missing required claims
    """
    payload = jwt.decode(
        token,
        secret or settings.jwt_secret,
        algorithms=[algorithm or settings.jwt_algorithm],
        options={"require": ["exp", "username", "role_id"]},
    )
    if not isinstance(payload["username"], str) or not isinstance(payload["role_id"], int):
        raise jwt.InvalidTokenError("Malformed identity claims")
    return payload


def mask_pii(data: Any, depth: int = 0) -> Any:
    """
    Recursively mask PII fields in data structures.

    Args:
        data: Data to mask (dict, list, or primitive)
        depth: Current recursion depth (max 10)

    Returns:
        Data with PII fields masked
    """
    if depth > 10:
        return "[MAX_DEPTH]"

    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            if key.lower() in PII_FIELDS:
                if isinstance(value, str) and len(value) > 0:
                    # Partial masking: show first char and length indicator
                    masked[key] = f"{value[0]}***[{len(value)}]"
                else:
                    masked[key] = "[MASKED]"
            else:
                masked[key] = mask_pii(value, depth + 1)
        return masked
    elif isinstance(data, list):
        return [mask_pii(item, depth + 1) for item in data[:5]]  # Limit list items
    else:
        return data


def log_audit_event(
    action: AuditAction,
    resource_type: ResourceType,
    resource_id: Optional[Any] = None,
    username: Optional[str] = None,
    request_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    contains_pii: bool = False,
) -> None:
    """
    Log an audit event as a structured JSON line.

    Details are masked when the event carries PII.
    """
    event = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event_type": "AUDIT",
        "action": action.value,
        "resource_type": resource_type.value,
        "resource_id": str(resource_id) if resource_id is not None else None,
        "username": username,
        "request_id": request_id,
        "contains_pii": contains_pii,
        "details": mask_pii(details) if details and contains_pii else details,
    }
    logger.info(json.dumps(event, default=str))
