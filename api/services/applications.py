"""
Application query functions for API endpoints.

Listing, counting and detail lookups over applications submitted by
applicants. Listings are ordered by application id and paged in fixed
pages of ``PAGE_SIZE`` rows.
"""

from typing import Optional
import logging

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.applications import ApplicationFilter
from api.schemas.results import (
    ApplicationDetailResult,
    ApplicationSummary,
    ApplicationsListResult,
    CompetenceResult,
)
from core.utils.validators import ensure_valid, validate_non_negative_integer
from database.models.applications import (
    ApplicantAvailability,
    Application,
    ApplicationStatus,
)
from database.models.jobs import Competence
from database.models.users import Person, Role

logger = logging.getLogger(__name__)

PAGE_SIZE = 25


def build_applications_query(filters: Optional[ApplicationFilter] = None) -> Select:
    """
    Build the base query selecting applications that match ``filters``.

    Only applications by persons with the applicant role are eligible, and
    the applicant must have at least one availability period satisfying
    the date bounds.
    """
    filters = filters or ApplicationFilter()

    availability = select(ApplicantAvailability.id).where(
        ApplicantAvailability.person_id == Person.id
    )
    if filters.date_from is not None:
        availability = availability.where(ApplicantAvailability.from_date >= filters.date_from)
    if filters.date_to is not None:
        availability = availability.where(ApplicantAvailability.to_date <= filters.date_to)

    query = (
        select(Application.id, Person.first_name, Person.last_name)
        .join(Person, Application.person_id == Person.id)
        .where(Person.role_id == Role.APPLICANT.value)
        .where(availability.exists())
    )

    if filters.name is not None:
        query = query.where(
            or_(Person.first_name == filters.name, Person.last_name == filters.name)
        )
    if filters.competence_id is not None:
        query = query.where(Application.competence_id == filters.competence_id)

    return query.order_by(Application.id)


async def list_applications(
    session: AsyncSession,
    filters: Optional[ApplicationFilter] = None,
    page: Optional[int] = None,
) -> ApplicationsListResult:
    """
    List applications matching a filter.

    Args:
        session: Session bound to the caller's transaction
        filters: Criteria to match, all unset by default
        page: 1-based page number; None or 0 returns every match

    Returns:
        ApplicationsListResult, empty when the page is out of range
    """
    query = build_applications_query(filters)

    if page:
        ensure_valid(validate_non_negative_integer(page), "Page")
        query = query.limit(PAGE_SIZE).offset((page - 1) * PAGE_SIZE)

    result = await session.execute(query)
    return ApplicationsListResult(
        applications=[
            ApplicationSummary(
                application_id=row.id,
                first_name=row.first_name,
                last_name=row.last_name,
            )
            for row in result.all()
        ]
    )


async def get_applications_count(
    session: AsyncSession,
    filters: Optional[ApplicationFilter] = None,
) -> int:
    """Count applications matching a filter."""
    query = build_applications_query(filters)
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    return (await session.execute(count_query)).scalar_one()


async def get_applications_page_count(
    session: AsyncSession,
    filters: Optional[ApplicationFilter] = None,
) -> int:
    """Number of ``PAGE_SIZE`` pages needed to list every match."""
    total = await get_applications_count(session, filters)
    return (total + PAGE_SIZE - 1) // PAGE_SIZE


async def get_application(
    session: AsyncSession,
    application_id: int,
) -> ApplicationDetailResult:
    """
    Get detailed information about an application.

    The availability reported is the applicant's period ending first.

    Args:
        session: Session bound to the caller's transaction
        application_id: The application ID

    Returns:
        ApplicationDetailResult; an unknown id yields the ``InvalidID``
        placeholder
    """
    result = await session.execute(
        select(
            Application.id,
            Application.years_of_experience,
            Person.id.label("person_id"),
            Person.first_name,
            Person.last_name,
            Competence.id.label("competence_id"),
            Competence.type.label("competence_type"),
            ApplicationStatus.decision,
        )
        .join(Person, Application.person_id == Person.id)
        .join(Competence, Application.competence_id == Competence.id)
        .join(ApplicationStatus, ApplicationStatus.application_id == Application.id)
        .where(Application.id == application_id)
    )
    row = result.one_or_none()
    if row is None:
        return ApplicationDetailResult.not_found(application_id)

    availability_result = await session.execute(
        select(ApplicantAvailability.from_date, ApplicantAvailability.to_date)
        .where(ApplicantAvailability.person_id == row.person_id)
        .order_by(ApplicantAvailability.to_date.asc(), ApplicantAvailability.id.asc())
        .limit(1)
    )
    availability = availability_result.one_or_none()
    if availability is None:
        logger.warning(f"Application {application_id} has no availability period")
        return ApplicationDetailResult.not_found(application_id)

    return ApplicationDetailResult(
        application_id=row.id,
        first_name=row.first_name,
        last_name=row.last_name,
        competence=CompetenceResult(id=row.competence_id, type=row.competence_type),
        years_of_experience=row.years_of_experience,
        date_from=availability.from_date,
        date_to=availability.to_date,
        decision=row.decision,
    )
