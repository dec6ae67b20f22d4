"""
Application registration.

An applicant applies for one competence and declares the period they are
available. Registration is rejected when the same person already has an
application for the competence while one of their availability periods
overlaps the requested one. Availability belongs to the person, not to a
single application, so a period registered with any competence counts.
"""

from datetime import date
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.results import RegistrationErrorCode, RegistrationResult
from api.services.identity import get_person_id, get_role
from database.models.applications import (
    ApplicantAvailability,
    Application,
    ApplicationStatus,
    Decision,
)
from database.models.jobs import Competence
from database.models.users import Role

logger = logging.getLogger(__name__)


def _rejected(error_code: RegistrationErrorCode) -> RegistrationResult:
    return RegistrationResult(application_id=0, error_code=error_code)


async def find_existing_application(
    session: AsyncSession,
    person_id: int,
    competence_id: int,
    date_from: date,
    date_to: date,
) -> int | None:
    """
    Find an application by the person for the competence whose applicant is
    available during some part of ``[date_from, date_to]``.

    Returns:
        The lowest matching application id, or None
    """
    overlapping_availability = (
        select(ApplicantAvailability.id)
        .where(ApplicantAvailability.person_id == person_id)
        .where(ApplicantAvailability.from_date <= date_to)
        .where(ApplicantAvailability.to_date >= date_from)
        .exists()
    )
    result = await session.execute(
        select(Application.id)
        .where(Application.person_id == person_id)
        .where(Application.competence_id == competence_id)
        .where(overlapping_availability)
        .order_by(Application.id)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def register_application(
    session: AsyncSession,
    username: str,
    competence_id: int,
    years_of_experience: float,
    date_from: date,
    date_to: date,
) -> RegistrationResult:
    """
    Register an application for the applicant owning ``username``.

    Checks run in a fixed order and the first failing check decides the
    result: unknown user, wrong role, unknown competence, duplicate. On
    success the application, its ``Unhandled`` status and the availability
    period are inserted in the caller's transaction.

    Args:
        session: Session bound to the caller's transaction
        username: Username of the applicant
        competence_id: Competence applied for
        years_of_experience: Non-negative years of experience
        date_from: First day of availability
        date_to: Last day of availability

    Returns:
        RegistrationResult with the new id and ``OK``, the existing id and
        ``ExistentApplication``, or id 0 with the failing check's code

    Raises:
        ValueError: If ``date_from`` is after ``date_to``
    """
    if date_from > date_to:
        raise ValueError("date_from must not be after date_to")

    person_id = await get_person_id(session, username)
    if person_id is None:
        return _rejected(RegistrationErrorCode.INVALID_USERNAME)

    role = await get_role(session, person_id)
    if role != Role.APPLICANT:
        return _rejected(RegistrationErrorCode.INVALID_ROLE)

    competence = await session.get(Competence, competence_id)
    if competence is None:
        return _rejected(RegistrationErrorCode.INVALID_COMPETENCE)

    existing_id = await find_existing_application(
        session, person_id, competence_id, date_from, date_to
    )
    if existing_id is not None:
        return RegistrationResult(
            application_id=existing_id,
            error_code=RegistrationErrorCode.EXISTENT_APPLICATION,
        )

    application = Application(
        person_id=person_id,
        competence_id=competence_id,
        years_of_experience=years_of_experience,
        status=ApplicationStatus(decision=Decision.UNHANDLED, recruiter_id=None),
    )
    session.add(application)
    session.add(
        ApplicantAvailability(
            person_id=person_id,
            from_date=date_from,
            to_date=date_to,
        )
    )
    await session.flush()

    logger.info(
        f"Registered application {application.id} for competence {competence_id}"
    )
    return RegistrationResult(
        application_id=application.id,
        error_code=RegistrationErrorCode.OK,
    )
