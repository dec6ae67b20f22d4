"""User-related Pydantic schemas."""

from typing import Optional
from pydantic import BaseModel, Field, field_validator

from core.utils.validators import (
    ensure_valid,
    validate_alphanumeric,
    validate_email,
    validate_name,
    validate_personal_number,
)


class SigninRequest(BaseModel):
    """Credentials submitted at signin."""

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        ensure_valid(validate_alphanumeric(v), "Username")
        return v


class SignupRequest(BaseModel):
    """New applicant account details."""

    first_name: str = Field(min_length=1, max_length=255)
    last_name: str = Field(min_length=1, max_length=255)
    personal_number: str = Field(description="YYYYMMDD-XXXX")
    email: str = Field(max_length=255)
    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=6, max_length=255)

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def strip_names(cls, v: str) -> str:
        """Strip whitespace from name fields."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_names(cls, v: str) -> str:
        ensure_valid(validate_name(v), "Name")
        return v

    @field_validator("personal_number")
    @classmethod
    def validate_personal_number_field(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            ensure_valid(validate_personal_number(v), "Personal number")
        return v

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v: str) -> str:
        """Store the normalized address so uniqueness ignores domain case."""
        result = validate_email(v)
        ensure_valid(result, "Email")
        return result[1]

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        ensure_valid(validate_alphanumeric(v), "Username")
        return v


class RecruiterSignupRequest(SignupRequest):
    """
    Recruiter account details, provisioned from the management CLI.

    Recruiters are not required to register a personal number.
    """

    personal_number: Optional[str] = Field(None, description="YYYYMMDD-XXXX")


class IdentityResponse(BaseModel):
    """Identity of the signed in caller."""

    username: str
    role_id: int
    role: str
