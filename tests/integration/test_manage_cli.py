"""
Integration tests for the management CLI.
"""

import asyncio
from pathlib import Path

import pytest
from typer.testing import CliRunner

from api.manage import app
from api.services.recruitment import RecruitmentService
from database.engine import Database
from database.models import Role


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'recruitment.db'}"


def recruiter_args(database_url: str, **overrides) -> list[str]:
    options = {
        "--first-name": "Rita",
        "--last-name": "Lind",
        "--email": "rita@example.com",
        "--username": "rita01",
        "--password": "ritapass",
        "--database-url": database_url,
    }
    options.update(overrides)
    args = ["create-recruiter"]
    for option, value in options.items():
        args += [option, value]
    return args


async def _signin(database_url: str, username: str, password: str):
    database = Database(url=database_url)
    try:
        await database.connect()
        return await RecruitmentService(database).signin_user(username, password)
    finally:
        await database.close()


class TestManageCli:
    """Test database setup and recruiter provisioning."""

    def test_init_db_then_create_recruiter(self, runner, database_url):
        result = runner.invoke(app, ["init-db", "--database-url", database_url])
        assert result.exit_code == 0
        assert "Database tables created." in result.output

        result = runner.invoke(app, recruiter_args(database_url))
        assert result.exit_code == 0
        assert "Recruiter rita01 created." in result.output

        user = asyncio.run(_signin(database_url, "rita01", "ritapass"))
        assert user.role == Role.RECRUITER

    def test_existing_username(self, runner, database_url):
        runner.invoke(app, ["init-db", "--database-url", database_url])
        runner.invoke(app, recruiter_args(database_url))

        result = runner.invoke(app, recruiter_args(database_url, **{"--email": "other@example.com"}))

        assert result.exit_code == 1
        assert "ExistentUsername" in result.output

    def test_invalid_fields(self, runner, database_url):
        result = runner.invoke(app, recruiter_args(database_url, **{"--username": "rita_01"}))

        assert result.exit_code == 2
        assert "username" in result.output

    def test_password_prompt(self, runner, database_url):
        runner.invoke(app, ["init-db", "--database-url", database_url])
        args = recruiter_args(database_url)
        index = args.index("--password")
        del args[index:index + 2]

        result = runner.invoke(app, args, input="ritapass\nritapass\n")

        assert result.exit_code == 0
        assert asyncio.run(_signin(database_url, "rita01", "ritapass")).role == Role.RECRUITER
