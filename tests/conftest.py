"""Shared fixtures and utilities for tests."""

import os

# Settings are read at import time, so the environment is prepared before
# any application module is imported.
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-min-32-chars-long-for-security")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("GLOBAL_SALT", "recruitment")
os.environ.setdefault("JSON_LOGS", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from api.main import create_app
from api.schemas.users import RecruiterSignupRequest, SignupRequest
from api.services.recruitment import RecruitmentService
from database.engine import Database
from database.models import Competence, Job


APPLICANTS = [
    SignupRequest(
        first_name="Alice",
        last_name="Andersson",
        personal_number="19811218-9876",
        email="alice@example.com",
        username="alice01",
        password="alicepass",
    ),
    SignupRequest(
        first_name="Bob",
        last_name="Berg",
        personal_number="19900101-0017",
        email="bob@example.com",
        username="bob02",
        password="bobpass",
    ),
]

RECRUITER = RecruiterSignupRequest(
    first_name="Rita",
    last_name="Lind",
    email="rita@example.com",
    username="rita01",
    password="ritapass",
)


def make_database() -> Database:
    """In-memory database sharing one connection across sessions."""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    return Database(engine=engine)


async def seed_database(database: Database) -> None:
    """
    Create the schema and the reference data used across tests.

    Jobs: 1 "Ticket seller" (competences 1, 2), 2 "Ride operator"
    (competence 3). Users: applicants alice01 and bob02, recruiter rita01.
    """
    await database.create_all()
    await database.connect()

    async with database.transaction() as session:
        session.add_all([
            Job(id=1, name="Ticket seller", competences=[
                Competence(id=1, type="Ticket sales"),
                Competence(id=2, type="Lotteries"),
            ]),
            Job(id=2, name="Ride operator", competences=[
                Competence(id=3, type="Roller coaster operation"),
            ]),
        ])

    service = RecruitmentService(database)
    for signup in APPLICANTS:
        await service.signup_user(signup)
    await service.signup_recruiter(RECRUITER)


@pytest.fixture
async def database():
    """Seeded in-memory database."""
    database = make_database()
    await seed_database(database)
    yield database
    await database.close()


@pytest.fixture
async def empty_database():
    """In-memory database with the schema but no rows."""
    database = make_database()
    await database.create_all()
    await database.connect()
    yield database
    await database.close()


@pytest.fixture
def service(database):
    """Service object over the seeded database."""
    return RecruitmentService(database)


@pytest.fixture
def app_database():
    """Storage handle handed to the application under test."""
    return make_database()


@pytest.fixture
def api_client(app_database):
    """
    Client for the full application over a seeded database.

    Seeding runs through the client's portal so it shares the event loop
    the application runs on.
    """
    app = create_app(database=app_database)
    with TestClient(app) as client:
        client.portal.call(seed_database, app_database)
        yield client
