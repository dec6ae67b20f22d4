"""
Decision workflow.

A recruiter accepts or rejects an application. Once an application carries
a final decision it is never changed again; later submissions get the
stored decision back.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.results import DecisionErrorCode, DecisionResult
from api.services.identity import get_person_id, get_role
from database.models.applications import ApplicationStatus, Decision
from database.models.users import Role

logger = logging.getLogger(__name__)


async def submit_application_decision(
    session: AsyncSession,
    username: str,
    application_id: int,
    decision: Decision | str,
) -> DecisionResult:
    """
    Record a recruiter's decision on an application.

    The status row is locked for the rest of the transaction so that two
    recruiters deciding at once cannot both succeed.

    Args:
        session: Session bound to the caller's transaction
        username: Username of the deciding recruiter
        application_id: Application to decide on
        decision: ``Unhandled``, ``Accepted`` or ``Rejected``

    Returns:
        DecisionResult carrying the decision stored after the call
    """
    person_id = await get_person_id(session, username)
    if person_id is None:
        return DecisionResult(
            decision=Decision.UNHANDLED,
            error_code=DecisionErrorCode.INVALID_USERNAME,
        )

    role = await get_role(session, person_id)
    if role != Role.RECRUITER:
        return DecisionResult(
            decision=Decision.UNHANDLED,
            error_code=DecisionErrorCode.INVALID_ROLE,
        )

    result = await session.execute(
        select(ApplicationStatus)
        .where(ApplicationStatus.application_id == application_id)
        .with_for_update()
    )
    status = result.scalar_one_or_none()
    if status is None:
        return DecisionResult(
            decision=Decision.UNHANDLED,
            error_code=DecisionErrorCode.INVALID_APPLICATION,
        )

    if status.decision.is_terminal:
        return DecisionResult(
            decision=status.decision,
            error_code=DecisionErrorCode.EXISTENT_DECISION,
        )

    try:
        requested = Decision(decision)
    except ValueError:
        return DecisionResult(
            decision=status.decision,
            error_code=DecisionErrorCode.INVALID_DECISION,
        )

    status.decision = requested
    status.recruiter_id = person_id
    await session.flush()

    logger.info(f"Application {application_id} decided: {requested.value}")
    return DecisionResult(decision=requested, error_code=DecisionErrorCode.OK)
