"""FastAPI dependencies for dependency injection."""

from typing import Optional, TypeVar
from fastapi import HTTPException, Request, status

from api.services.recruitment import RecruitmentService
from core.middleware.authentication import Identity, get_current_identity
from database.engine import Database

T = TypeVar("T")


def get_service(request: Request) -> RecruitmentService:
    """Service object created by the application lifespan."""
    return request.app.state.service


def get_database(request: Request) -> Database:
    """Storage handle created by the application lifespan."""
    return request.app.state.database


async def require_identity(request: Request) -> Identity:
    """Require a verified identity on the request."""
    return get_current_identity(request)


def ensure_available(result: Optional[T]) -> T:
    """
    Unwrap a service result.

    Raises:
        HTTPException: 503 when the service reported a storage failure
    """
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service temporarily unavailable",
        )
    return result
