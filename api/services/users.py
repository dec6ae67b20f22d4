"""
User service functions for API endpoints.

Signin against stored credential digests and account creation for
applicants and recruiters.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.results import UserErrorCode, UserResult
from api.schemas.users import RecruiterSignupRequest, SignupRequest
from core.security import hash_password
from database.models.users import LoginInfo, Person, Role

logger = logging.getLogger(__name__)


async def signin_user(session: AsyncSession, username: str, password: str) -> UserResult:
    """
    Check a username and password against the stored credentials.

    Returns:
        UserResult with the user's role and ``OK``, or the ``Invalid`` role
        and ``LoginFailure`` when the pair does not match
    """
    digest = hash_password(username, password)
    result = await session.execute(
        select(Person.role_id)
        .join(LoginInfo, LoginInfo.person_id == Person.id)
        .where(LoginInfo.username == username)
        .where(LoginInfo.password == digest)
    )
    role_id = result.scalar_one_or_none()

    if role_id is None:
        return UserResult(
            username=username,
            role=Role.INVALID,
            error_code=UserErrorCode.LOGIN_FAILURE,
        )
    return UserResult(username=username, role=Role(role_id))


async def _create_account(
    session: AsyncSession,
    signup: SignupRequest,
    role: Role,
) -> UserResult:
    email_taken = await session.execute(
        select(LoginInfo.id).where(LoginInfo.email == signup.email)
    )
    if email_taken.first() is not None:
        return UserResult(
            username=signup.username,
            role=Role.INVALID,
            error_code=UserErrorCode.EXISTENT_EMAIL,
        )

    username_taken = await session.execute(
        select(LoginInfo.id).where(LoginInfo.username == signup.username)
    )
    if username_taken.first() is not None:
        return UserResult(
            username=signup.username,
            role=Role.INVALID,
            error_code=UserErrorCode.EXISTENT_USERNAME,
        )

    person = Person(
        first_name=signup.first_name,
        last_name=signup.last_name,
        personal_number=signup.personal_number,
        role_id=role.value,
    )
    person.login_info = LoginInfo(
        username=signup.username,
        email=signup.email,
        password=hash_password(signup.username, signup.password),
    )
    session.add(person)
    await session.flush()

    logger.info(f"Created {role.label.lower()} account {person.id}")
    return UserResult(username=signup.username, role=role)


async def signup_user(session: AsyncSession, signup: SignupRequest) -> UserResult:
    """
    Create an applicant account.

    Email uniqueness is checked before username uniqueness.

    Returns:
        UserResult with the ``Applicant`` role and ``OK``, or ``ExistentEmail``
        / ``ExistentUsername``
    """
    return await _create_account(session, signup, Role.APPLICANT)


async def signup_recruiter(session: AsyncSession, signup: RecruiterSignupRequest) -> UserResult:
    """Create a recruiter account. Only reachable from the management CLI."""
    return await _create_account(session, signup, Role.RECRUITER)
