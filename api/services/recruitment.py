"""
Recruitment service object.

One instance is created at startup and shared by every request. Each
public method runs one operation inside its own transaction. Storage
failures are logged and reported as ``None`` so callers can answer with
"service unavailable"; invalid result objects are not caught.
"""

from datetime import date
from functools import wraps
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from api.schemas.applications import ApplicationFilter
from api.schemas.results import (
    ApplicationDetailResult,
    ApplicationsListResult,
    DecisionResult,
    JobResult,
    RegistrationResult,
    UserResult,
)
from api.schemas.users import RecruiterSignupRequest, SignupRequest
from api.services import applications, decisions, jobs, registration, users
from database.engine import Database, DatabaseUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

STORAGE_ERRORS = (DatabaseUnavailableError, SQLAlchemyError, TimeoutError, OSError)


def storage_boundary(operation: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[Optional[T]]]:
    """Turn storage failures raised by ``operation`` into a logged ``None``."""

    @wraps(operation)
    async def wrapper(self: "RecruitmentService", *args: Any, **kwargs: Any) -> Optional[T]:
        try:
            return await operation(self, *args, **kwargs)
        except STORAGE_ERRORS as e:
            logger.error(
                f"{operation.__name__} failed: {type(e).__name__}",
                exc_info=True,
            )
            return None

    return wrapper


class RecruitmentService:
    """Entry point for every recruitment operation."""

    def __init__(self, database: Database):
        self.database = database

    # ==================== Users ===================== #
    @storage_boundary
    async def signin_user(self, username: str, password: str) -> UserResult:
        async with self.database.transaction() as session:
            return await users.signin_user(session, username, password)

    @storage_boundary
    async def signup_user(self, signup: SignupRequest) -> UserResult:
        async with self.database.transaction() as session:
            return await users.signup_user(session, signup)

    @storage_boundary
    async def signup_recruiter(self, signup: RecruiterSignupRequest) -> UserResult:
        async with self.database.transaction() as session:
            return await users.signup_recruiter(session, signup)

    # ==================== Jobs ===================== #
    @storage_boundary
    async def get_jobs(self) -> list[JobResult]:
        async with self.database.transaction() as session:
            return await jobs.get_jobs(session)

    # ==================== Applications ===================== #
    @storage_boundary
    async def register_application(
        self,
        username: str,
        competence_id: int,
        years_of_experience: float,
        date_from: date,
        date_to: date,
    ) -> RegistrationResult:
        async with self.database.transaction() as session:
            return await registration.register_application(
                session,
                username=username,
                competence_id=competence_id,
                years_of_experience=years_of_experience,
                date_from=date_from,
                date_to=date_to,
            )

    @storage_boundary
    async def list_applications(
        self,
        filters: Optional[ApplicationFilter] = None,
        page: Optional[int] = None,
    ) -> ApplicationsListResult:
        async with self.database.transaction() as session:
            return await applications.list_applications(session, filters, page)

    @storage_boundary
    async def get_applications_count(
        self, filters: Optional[ApplicationFilter] = None
    ) -> int:
        async with self.database.transaction() as session:
            return await applications.get_applications_count(session, filters)

    @storage_boundary
    async def get_applications_page_count(
        self, filters: Optional[ApplicationFilter] = None
    ) -> int:
        async with self.database.transaction() as session:
            return await applications.get_applications_page_count(session, filters)

    @storage_boundary
    async def get_application(self, application_id: int) -> ApplicationDetailResult:
        async with self.database.transaction() as session:
            return await applications.get_application(session, application_id)

    @storage_boundary
    async def submit_application_decision(
        self,
        username: str,
        application_id: int,
        decision: str,
    ) -> DecisionResult:
        async with self.database.transaction() as session:
            return await decisions.submit_application_decision(
                session, username, application_id, decision
            )
