"""
Result objects returned by the recruitment service.

Each result validates its own fields on construction. A failed validation
means a collaborator produced a value outside its documented domain; the
resulting ``ValidationError`` is allowed to propagate.
"""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from core.utils.validators import (
    ensure_valid,
    validate_alphanumeric,
    validate_name,
    validate_non_negative_number,
    validate_positive_integer,
)
from database.models.applications import Decision
from database.models.users import Role


# ==================== Domain codes ===================== #
class UserErrorCode(str, Enum):
    """Outcome of signin and signup."""
    OK = "OK"
    LOGIN_FAILURE = "LoginFailure"
    EXISTENT_EMAIL = "ExistentEmail"
    EXISTENT_USERNAME = "ExistentUsername"


class RegistrationErrorCode(str, Enum):
    """Outcome of an application registration."""
    OK = "OK"
    INVALID_USERNAME = "InvalidUsername"
    INVALID_ROLE = "InvalidRole"
    INVALID_COMPETENCE = "InvalidCompetence"
    EXISTENT_APPLICATION = "ExistentApplication"


class ApplicationErrorCode(str, Enum):
    """Outcome of an application detail lookup."""
    OK = "OK"
    INVALID_ID = "InvalidID"


class DecisionErrorCode(str, Enum):
    """Outcome of a decision submission."""
    OK = "OK"
    INVALID_USERNAME = "InvalidUsername"
    INVALID_APPLICATION = "InvalidApplication"
    EXISTENT_DECISION = "ExistentDecision"
    INVALID_DECISION = "InvalidDecision"
    INVALID_ROLE = "InvalidRole"


class ResultModel(BaseModel):
    """Base for result objects: immutable once constructed."""

    model_config = ConfigDict(frozen=True, use_enum_values=False)


# ==================== Users ===================== #
class UserResult(ResultModel):
    """Signed in or signed up user."""

    username: str
    role: Role
    error_code: UserErrorCode = UserErrorCode.OK

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        ensure_valid(validate_alphanumeric(v), "Username")
        return v

    @model_validator(mode="after")
    def check_role_matches_outcome(self) -> "UserResult":
        """A successful outcome carries a real role, a failed one carries none."""
        if self.error_code == UserErrorCode.OK and self.role == Role.INVALID:
            raise ValueError("Successful user result requires a valid role")
        if self.error_code != UserErrorCode.OK and self.role != Role.INVALID:
            raise ValueError("Failed user result must carry the Invalid role")
        return self


# ==================== Jobs ===================== #
class CompetenceResult(ResultModel):
    """Competence reference data."""

    id: int
    type: str

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: int) -> int:
        ensure_valid(validate_positive_integer(v), "Competence ID")
        return v


class JobResult(ResultModel):
    """A job with its competences."""

    job_id: int
    description: str
    competences: list[CompetenceResult] = Field(default_factory=list)

    @field_validator("job_id")
    @classmethod
    def validate_job_id(cls, v: int) -> int:
        ensure_valid(validate_positive_integer(v), "Job ID")
        return v


# ==================== Registration ===================== #
class RegistrationResult(ResultModel):
    """
    Outcome of registering an application.

    ``application_id`` is the new id on success, the already existing id
    for ``ExistentApplication`` and 0 for every other error.
    """

    application_id: int = Field(ge=0)
    error_code: RegistrationErrorCode

    @model_validator(mode="after")
    def check_id_matches_outcome(self) -> "RegistrationResult":
        carries_id = self.error_code in (
            RegistrationErrorCode.OK,
            RegistrationErrorCode.EXISTENT_APPLICATION,
        )
        if carries_id and self.application_id == 0:
            raise ValueError(f"{self.error_code.value} result requires an application id")
        if not carries_id and self.application_id != 0:
            raise ValueError(f"{self.error_code.value} result must carry application id 0")
        return self


# ==================== Query ===================== #
class ApplicationSummary(ResultModel):
    """One row of an applications listing."""

    application_id: int
    first_name: str
    last_name: str

    @field_validator("application_id")
    @classmethod
    def validate_application_id(cls, v: int) -> int:
        ensure_valid(validate_positive_integer(v), "Application ID")
        return v

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_names(cls, v: str) -> str:
        ensure_valid(validate_name(v), "Name")
        return v


class ApplicationsListResult(ResultModel):
    """Filtered, optionally paged list of applications."""

    applications: list[ApplicationSummary] = Field(default_factory=list)


class ApplicationDetailResult(ResultModel):
    """
    Full information about one application.

    An unknown id yields a placeholder that carries only the requested id,
    the ``Unhandled`` decision and ``InvalidID``.
    """

    application_id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    competence: Optional[CompetenceResult] = None
    years_of_experience: Optional[float] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    decision: Decision = Decision.UNHANDLED
    error_code: ApplicationErrorCode = ApplicationErrorCode.OK

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_names(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            ensure_valid(validate_name(v), "Name")
        return v

    @field_validator("years_of_experience")
    @classmethod
    def validate_experience(cls, v: Optional[float]) -> Optional[float]:
        if v is not None:
            ensure_valid(validate_non_negative_number(v), "Years of experience")
        return v

    @model_validator(mode="after")
    def check_complete(self) -> "ApplicationDetailResult":
        if self.error_code == ApplicationErrorCode.OK:
            ensure_valid(validate_positive_integer(self.application_id), "Application ID")
            missing = [
                name
                for name in ("first_name", "last_name", "competence",
                             "years_of_experience", "date_from", "date_to")
                if getattr(self, name) is None
            ]
            if missing:
                raise ValueError(f"Application detail is missing {', '.join(missing)}")
        return self

    @classmethod
    def not_found(cls, application_id: int) -> "ApplicationDetailResult":
        """Placeholder returned for an id that matches no application."""
        return cls(
            application_id=application_id,
            error_code=ApplicationErrorCode.INVALID_ID,
        )


# ==================== Decision ===================== #
class DecisionResult(ResultModel):
    """Decision stored on an application after a submission."""

    decision: Decision
    error_code: DecisionErrorCode
