"""
Tests for application listing, counting and detail lookups.
"""

from datetime import date
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from api.schemas.applications import ApplicationFilter
from api.schemas.results import ApplicationErrorCode
from api.services.applications import PAGE_SIZE
from database.models import (
    ApplicantAvailability,
    Application,
    ApplicationStatus,
    Person,
    Role,
)

BULK_SIZE = 30


def _letters(index: int) -> str:
    return chr(ord("A") + index // 26) + chr(ord("a") + index % 26)


@pytest.fixture
async def bulk_applications(database):
    """Thirty applicants with one application each, for competence 1 or 2."""
    ids = []
    async with database.transaction() as session:
        for index in range(BULK_SIZE):
            person = Person(
                first_name="Applicant",
                last_name=f"Bulk{_letters(index).lower()}",
                role_id=Role.APPLICANT.value,
            )
            session.add(person)
            await session.flush()
            application = Application(
                person_id=person.id,
                competence_id=1 if index % 2 == 0 else 2,
                years_of_experience=index,
                status=ApplicationStatus(),
            )
            session.add(application)
            session.add(ApplicantAvailability(
                person_id=person.id,
                from_date=date(2024, 1 + index % 12, 1),
                to_date=date(2024, 1 + index % 12, 28),
            ))
            await session.flush()
            ids.append(application.id)
    return ids


class TestListApplications:
    """Test filtering and pagination."""

    async def test_unset_filter_lists_everything_in_id_order(self, service, bulk_applications):
        result = await service.list_applications()

        listed = [summary.application_id for summary in result.applications]
        assert listed == sorted(bulk_applications)

    @pytest.mark.parametrize("page", [None, 0])
    async def test_unset_page_lists_everything(self, service, bulk_applications, page):
        result = await service.list_applications(ApplicationFilter(), page)
        assert len(result.applications) == BULK_SIZE

    async def test_pages(self, service, bulk_applications):
        first = await service.list_applications(ApplicationFilter(), 1)
        second = await service.list_applications(ApplicationFilter(), 2)

        assert len(first.applications) == PAGE_SIZE
        assert len(second.applications) == BULK_SIZE - PAGE_SIZE
        assert [s.application_id for s in first.applications + second.applications] == sorted(
            bulk_applications
        )

    async def test_out_of_range_page_is_empty(self, service, bulk_applications):
        result = await service.list_applications(ApplicationFilter(), 3)
        assert result.applications == []

    async def test_filter_by_competence(self, service, bulk_applications):
        result = await service.list_applications(ApplicationFilter(competence_id=2))

        assert len(result.applications) == BULK_SIZE // 2
        assert [s.application_id for s in result.applications] == bulk_applications[1::2]

    async def test_filter_by_first_or_last_name(self, service):
        await service.register_application("alice01", 3, 1, date(2024, 6, 1), date(2024, 8, 31))
        await service.register_application("bob02", 3, 1, date(2024, 6, 1), date(2024, 8, 31))

        by_first = await service.list_applications(ApplicationFilter(name="Alice"))
        by_last = await service.list_applications(ApplicationFilter(name="Berg"))

        assert [s.first_name for s in by_first.applications] == ["Alice"]
        assert [s.last_name for s in by_last.applications] == ["Berg"]

    async def test_name_filter_is_case_sensitive(self, service):
        await service.register_application("alice01", 3, 1, date(2024, 6, 1), date(2024, 8, 31))

        result = await service.list_applications(ApplicationFilter(name="alice"))
        assert result.applications == []

    async def test_filter_by_dates(self, service):
        await service.register_application("alice01", 3, 1, date(2024, 6, 1), date(2024, 8, 31))
        await service.register_application("bob02", 3, 1, date(2024, 3, 1), date(2024, 12, 31))

        starts_late = await service.list_applications(ApplicationFilter(date_from=date(2024, 5, 1)))
        ends_early = await service.list_applications(ApplicationFilter(date_to=date(2024, 9, 30)))
        both = await service.list_applications(
            ApplicationFilter(date_from=date(2024, 1, 1), date_to=date(2024, 12, 31))
        )

        assert [s.first_name for s in starts_late.applications] == ["Alice"]
        assert [s.first_name for s in ends_early.applications] == ["Alice"]
        assert len(both.applications) == 2

    async def test_applicant_listed_once_with_several_periods(self, service):
        await service.register_application("alice01", 3, 1, date(2024, 6, 1), date(2024, 8, 31))
        await service.register_application("alice01", 1, 1, date(2025, 6, 1), date(2025, 8, 31))

        result = await service.list_applications()
        assert len(result.applications) == 2
        assert len({s.application_id for s in result.applications}) == 2

    async def test_non_applicants_excluded(self, service, database):
        async with database.transaction() as session:
            recruiter = Person(first_name="Rolf", last_name="Recruiter", role_id=Role.RECRUITER.value)
            session.add(recruiter)
            await session.flush()
            session.add(Application(
                person_id=recruiter.id, competence_id=1, years_of_experience=1,
                status=ApplicationStatus(),
            ))
            session.add(ApplicantAvailability(
                person_id=recruiter.id, from_date=date(2024, 1, 1), to_date=date(2024, 2, 1),
            ))

        result = await service.list_applications()
        assert result.applications == []

    async def test_negative_page_rejected(self, service):
        with pytest.raises(ValueError):
            await service.list_applications(ApplicationFilter(), -1)


class TestCounts:
    """Test counts and page counts."""

    async def test_counts(self, service, bulk_applications):
        assert await service.get_applications_count() == BULK_SIZE
        assert await service.get_applications_page_count() == 2

    async def test_counts_with_filter(self, service, bulk_applications):
        filters = ApplicationFilter(competence_id=1)
        assert await service.get_applications_count(filters) == BULK_SIZE // 2
        assert await service.get_applications_page_count(filters) == 1

    async def test_no_matches(self, service):
        assert await service.get_applications_count() == 0
        assert await service.get_applications_page_count() == 0

    async def test_counts_with_date_filter(self, service, bulk_applications):
        # Months July to December, twice within the thirty rows
        filters = ApplicationFilter(date_from=date(2024, 7, 1))
        assert await service.get_applications_count(filters) == 12
        assert await service.get_applications_page_count(filters) == 1


class TestGetApplication:
    """Test application detail lookups."""

    async def test_unknown_id_placeholder(self, service):
        result = await service.get_application(999)

        assert result is not None
        assert result.application_id == 999
        assert result.error_code == ApplicationErrorCode.INVALID_ID

    async def test_reports_period_ending_first(self, service):
        later = await service.register_application(
            "alice01", 3, 1, date(2025, 6, 1), date(2025, 8, 31)
        )
        await service.register_application("alice01", 1, 1, date(2024, 6, 1), date(2024, 8, 31))

        detail = await service.get_application(later.application_id)

        assert detail.competence.id == 3
        assert (detail.date_from, detail.date_to) == (date(2024, 6, 1), date(2024, 8, 31))

    async def test_storage_failure_returns_none(self, service):
        with patch(
            "api.services.applications.get_application",
            side_effect=OperationalError("SELECT", {}, Exception("gone")),
        ):
            assert await service.get_application(1) is None
