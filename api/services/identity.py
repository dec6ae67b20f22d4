"""
Identity lookups shared by the registration and decision workflows.

Both functions run on the caller's session so they observe, and take part
in, the caller's transaction.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database.models.users import LoginInfo, Person, Role


async def get_person_id(session: AsyncSession, username: str) -> Optional[int]:
    """
    Resolve a username to the id of the person owning it.

    Returns:
        The person id, or None if no credential carries the username
    """
    result = await session.execute(
        select(LoginInfo.person_id).where(LoginInfo.username == username)
    )
    return result.scalar_one_or_none()


async def get_role(session: AsyncSession, person_id: int) -> Optional[Role]:
    """
    Look up the role of a person.

    A stored role id outside the known roles resolves to ``Role.INVALID``.

    Returns:
        The role, or None if the person does not exist
    """
    result = await session.execute(
        select(Person.role_id).where(Person.id == person_id)
    )
    role_id = result.scalar_one_or_none()
    if role_id is None:
        return None
    try:
        return Role(role_id)
    except ValueError:
        return Role.INVALID
