"""
User account endpoints.

Provides signin and signup for applicants, a signin check for the
frontend and signout. The identity token is delivered as an http-only
cookie and also returned in the body for non-browser clients.
"""

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from api.dependencies import ensure_available, get_service, require_identity
from api.schemas.common import ErrorResponse
from api.schemas.results import UserErrorCode, UserResult
from api.schemas.users import IdentityResponse, SigninRequest, SignupRequest
from api.services.recruitment import RecruitmentService
from core.config import settings
from core.middleware.authentication import Identity
from core.security import (
    AuditAction,
    ResourceType,
    create_auth_token,
    log_audit_event,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/user",
    tags=["user"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)


def _set_auth_cookie(response: Response, user: UserResult) -> str:
    token = create_auth_token(user.username, user.role.value)
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=int(timedelta(days=settings.auth_token_expire_days).total_seconds()),
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite="lax",
    )
    return token


def _clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.auth_cookie_name,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite="lax",
    )


def _rejected(status_code: int, detail: str) -> HTTPException:
    """HTTP error that also signs out any identity the client still holds."""
    cleared = Response()
    _clear_auth_cookie(cleared)
    return HTTPException(
        status_code=status_code,
        detail=detail,
        headers={"set-cookie": cleared.headers["set-cookie"]},
    )


def _user_body(user: UserResult, token: str) -> dict:
    return {
        "username": user.username,
        "role_id": user.role.value,
        "role": user.role.label,
        "error_code": user.error_code.value,
        "token": token,
    }


@router.post(
    "/signin",
    summary="Sign In",
    description="Check credentials and issue an identity token.",
)
async def signin(
    body: SigninRequest,
    request: Request,
    response: Response,
    service: RecruitmentService = Depends(get_service),
):
    """Sign in with username and password."""
    user = ensure_available(await service.signin_user(body.username, body.password))

    log_audit_event(
        AuditAction.SIGNIN,
        ResourceType.USER,
        username=body.username,
        request_id=getattr(request.state, "request_id", None),
        details={"outcome": user.error_code.value},
    )

    if user.error_code != UserErrorCode.OK:
        raise _rejected(status.HTTP_401_UNAUTHORIZED, "Invalid username or password")

    token = _set_auth_cookie(response, user)
    return _user_body(user, token)


@router.post(
    "/signup",
    summary="Sign Up",
    description="Create an applicant account and sign it in.",
    status_code=status.HTTP_201_CREATED,
)
async def signup(
    body: SignupRequest,
    request: Request,
    response: Response,
    service: RecruitmentService = Depends(get_service),
):
    """Register a new applicant."""
    user = ensure_available(await service.signup_user(body))

    log_audit_event(
        AuditAction.SIGNUP,
        ResourceType.USER,
        username=body.username,
        request_id=getattr(request.state, "request_id", None),
        details={"outcome": user.error_code.value, "email": body.email},
        contains_pii=True,
    )

    if user.error_code == UserErrorCode.EXISTENT_EMAIL:
        raise _rejected(status.HTTP_400_BAD_REQUEST, "Email already in use")
    if user.error_code == UserErrorCode.EXISTENT_USERNAME:
        raise _rejected(status.HTTP_400_BAD_REQUEST, "Username already in use")

    token = _set_auth_cookie(response, user)
    return _user_body(user, token)


@router.get(
    "/check-signin",
    summary="Check Signin",
    description="Return the identity carried by the caller's token.",
    response_model=IdentityResponse,
)
async def check_signin(identity: Identity = Depends(require_identity)):
    """Report who the caller is signed in as."""
    return IdentityResponse(
        username=identity.username,
        role_id=identity.role_id,
        role=identity.role.label,
    )


@router.get(
    "/signout",
    summary="Sign Out",
    description="Clear the identity cookie.",
)
async def signout(response: Response):
    """Sign the caller out."""
    _clear_auth_cookie(response)
    return {"message": "Signed out"}
