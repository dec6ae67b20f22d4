"""
Tests for identity lookups and application registration.
"""

from datetime import date
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from api.schemas.results import ApplicationErrorCode, RegistrationErrorCode
from api.services.identity import get_person_id, get_role
from database.models import Application, ApplicationStatus, Decision, Person, Role


SUMMER = (date(2024, 6, 1), date(2024, 8, 31))


async def _count(database, model) -> int:
    async with database.transaction() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


class TestIdentityResolver:
    """Test username and role lookups."""

    async def test_known_username(self, database):
        async with database.transaction() as session:
            person_id = await get_person_id(session, "alice01")
            assert person_id is not None
            assert await get_role(session, person_id) == Role.APPLICANT

    async def test_recruiter_role(self, database):
        async with database.transaction() as session:
            person_id = await get_person_id(session, "rita01")
            assert await get_role(session, person_id) == Role.RECRUITER

    async def test_unknown_username(self, database):
        async with database.transaction() as session:
            assert await get_person_id(session, "nobody") is None

    async def test_unknown_person(self, database):
        async with database.transaction() as session:
            assert await get_role(session, 999) is None

    async def test_unexpected_role_id_is_invalid(self, database):
        async with database.transaction() as session:
            session.add(Person(id=50, first_name="Eve", last_name="Odd", role_id=7))
        async with database.transaction() as session:
            assert await get_role(session, 50) == Role.INVALID


class TestRegisterApplication:
    """Test the registration workflow."""

    async def test_register_and_read_back(self, service):
        """An applicant registers and the recruiter sees the full application."""
        result = await service.register_application("alice01", 3, 2.5, *SUMMER)

        assert result.error_code == RegistrationErrorCode.OK
        assert result.application_id > 0

        detail = await service.get_application(result.application_id)
        assert detail.error_code == ApplicationErrorCode.OK
        assert detail.first_name == "Alice"
        assert detail.last_name == "Andersson"
        assert detail.competence.id == 3
        assert detail.competence.type == "Roller coaster operation"
        assert detail.years_of_experience == 2.5
        assert (detail.date_from, detail.date_to) == SUMMER
        assert detail.decision == Decision.UNHANDLED

    async def test_status_created_unhandled_without_recruiter(self, service, database):
        result = await service.register_application("alice01", 1, 1, *SUMMER)

        async with database.transaction() as session:
            status = (await session.execute(
                select(ApplicationStatus).where(
                    ApplicationStatus.application_id == result.application_id
                )
            )).scalar_one()
        assert status.decision == Decision.UNHANDLED
        assert status.recruiter_id is None

    async def test_duplicate_returns_existing_id(self, service, database):
        first = await service.register_application("alice01", 3, 2.5, *SUMMER)
        second = await service.register_application("alice01", 3, 2.5, *SUMMER)

        assert second.error_code == RegistrationErrorCode.EXISTENT_APPLICATION
        assert second.application_id == first.application_id
        assert await _count(database, Application) == 1

    async def test_partially_overlapping_period_is_duplicate(self, service):
        first = await service.register_application("alice01", 3, 2.5, *SUMMER)
        second = await service.register_application(
            "alice01", 3, 2.5, date(2024, 8, 31), date(2024, 9, 30)
        )

        assert second.error_code == RegistrationErrorCode.EXISTENT_APPLICATION
        assert second.application_id == first.application_id

    async def test_disjoint_period_is_new_application(self, service):
        first = await service.register_application("alice01", 3, 2.5, *SUMMER)
        second = await service.register_application(
            "alice01", 3, 2.5, date(2025, 1, 1), date(2025, 2, 1)
        )

        assert second.error_code == RegistrationErrorCode.OK
        assert second.application_id != first.application_id

    async def test_other_competence_is_new_application(self, service):
        await service.register_application("alice01", 3, 2.5, *SUMMER)
        second = await service.register_application("alice01", 1, 1, *SUMMER)
        assert second.error_code == RegistrationErrorCode.OK

    async def test_other_applicant_is_new_application(self, service):
        await service.register_application("alice01", 3, 2.5, *SUMMER)
        second = await service.register_application("bob02", 3, 4, *SUMMER)
        assert second.error_code == RegistrationErrorCode.OK

    async def test_availability_is_shared_across_competences(self, service):
        """A period declared for another competence makes a later one a duplicate."""
        first = await service.register_application(
            "alice01", 1, 1, date(2024, 1, 1), date(2024, 1, 31)
        )
        second = await service.register_application(
            "alice01", 2, 1, date(2024, 6, 1), date(2024, 6, 30)
        )
        third = await service.register_application(
            "alice01", 1, 1, date(2024, 6, 1), date(2024, 6, 30)
        )

        assert second.error_code == RegistrationErrorCode.OK
        assert third.error_code == RegistrationErrorCode.EXISTENT_APPLICATION
        assert third.application_id == first.application_id

    async def test_reversed_period_rejected(self, service, database):
        with pytest.raises(ValueError):
            await service.register_application(
                "alice01", 3, 2.5, date(2024, 8, 31), date(2024, 6, 1)
            )
        assert await _count(database, Application) == 0

    async def test_unknown_username(self, service, database):
        result = await service.register_application("nobody", 3, 2.5, *SUMMER)

        assert result.error_code == RegistrationErrorCode.INVALID_USERNAME
        assert result.application_id == 0
        assert await _count(database, Application) == 0

    async def test_recruiter_cannot_register(self, service, database):
        result = await service.register_application("rita01", 3, 2.5, *SUMMER)

        assert result.error_code == RegistrationErrorCode.INVALID_ROLE
        assert result.application_id == 0
        assert await _count(database, Application) == 0

    async def test_unknown_competence(self, service):
        result = await service.register_application("alice01", 99, 2.5, *SUMMER)

        assert result.error_code == RegistrationErrorCode.INVALID_COMPETENCE
        assert result.application_id == 0

    async def test_competence_checked_before_duplicates(self, service):
        await service.register_application("alice01", 3, 2.5, *SUMMER)
        result = await service.register_application("alice01", 99, 2.5, *SUMMER)
        assert result.error_code == RegistrationErrorCode.INVALID_COMPETENCE

    async def test_storage_failure_rolls_back(self, service, database):
        failing = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("gone")))
        with patch("api.services.registration.find_existing_application", failing):
            result = await service.register_application("alice01", 3, 2.5, *SUMMER)

        assert result is None
        assert await _count(database, Application) == 0
