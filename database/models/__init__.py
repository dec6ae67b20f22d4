"""SQLAlchemy models for the recruitment schema."""

from database.models.users import Person, LoginInfo, Role
from database.models.jobs import Job, Competence
from database.models.applications import (
    Application,
    ApplicationStatus,
    ApplicantAvailability,
    Decision,
)

__all__ = [
    "Person",
    "LoginInfo",
    "Role",
    "Job",
    "Competence",
    "Application",
    "ApplicationStatus",
    "ApplicantAvailability",
    "Decision",
]
