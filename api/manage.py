"""Typer CLI for database setup and recruiter provisioning.

Usage::

    python -m api.manage init-db
    python -m api.manage create-recruiter --username anna01 --email anna@example.com ...
"""

import asyncio
from typing import Optional

import typer
from pydantic import ValidationError

from api.schemas.results import UserErrorCode
from api.schemas.users import RecruiterSignupRequest
from api.services.recruitment import RecruitmentService
from core.config import settings
from core.middleware.logging import setup_logging
from database.engine import Database

app = typer.Typer(help="Recruitment API management commands.")


async def _init_db(database: Database) -> None:
    try:
        await database.create_all()
    finally:
        await database.close()


async def _create_recruiter(database: Database, signup: RecruiterSignupRequest) -> Optional[UserErrorCode]:
    try:
        if not await database.connect():
            return None
        result = await RecruitmentService(database).signup_recruiter(signup)
        return result.error_code if result else None
    finally:
        await database.close()


@app.command("init-db")
def init_db(
    database_url: Optional[str] = typer.Option(None, help="Overrides DATABASE_URL."),
) -> None:
    """Create every table of the recruitment schema."""
    setup_logging(settings.log_level, json_logs=False)
    asyncio.run(_init_db(Database(url=database_url)))
    typer.echo("Database tables created.")


@app.command("create-recruiter")
def create_recruiter(
    first_name: str = typer.Option(..., help="Recruiter's first name."),
    last_name: str = typer.Option(..., help="Recruiter's last name."),
    email: str = typer.Option(..., help="Login email, must be unused."),
    username: str = typer.Option(..., help="Login username, letters and digits."),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
    personal_number: Optional[str] = typer.Option(None, help="YYYYMMDD-XXXX"),
    database_url: Optional[str] = typer.Option(None, help="Overrides DATABASE_URL."),
) -> None:
    """Create a recruiter account."""
    setup_logging(settings.log_level, json_logs=False)
    try:
        signup = RecruiterSignupRequest(
            first_name=first_name,
            last_name=last_name,
            personal_number=personal_number,
            email=email,
            username=username,
            password=password,
        )
    except ValidationError as e:
        for error in e.errors():
            typer.echo(f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}", err=True)
        raise typer.Exit(code=2)

    error_code = asyncio.run(_create_recruiter(Database(url=database_url), signup))
    if error_code is None:
        typer.echo("Database unavailable.", err=True)
        raise typer.Exit(code=1)
    if error_code != UserErrorCode.OK:
        typer.echo(f"Recruiter not created: {error_code.value}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Recruiter {username} created.")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
