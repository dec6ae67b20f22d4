"""Application-related Pydantic schemas."""

from datetime import date
from typing import Optional
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from core.utils.validators import (
    ensure_valid,
    parse_iso_date,
    validate_iso_date,
    validate_name,
    validate_non_negative_number,
)
from database.models.applications import Decision


class ApplicationFilter(BaseModel):
    """
    Criteria narrowing an applications listing.

    Every field is optional; a field left as ``None`` does not restrict the
    result. ``name`` matches either the first or the last name exactly.
    """

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = Field(None, description="First or last name of the applicant")
    competence_id: Optional[int] = Field(None, ge=1, description="Competence applied for")
    date_from: Optional[date] = Field(None, description="Earliest availability start")
    date_to: Optional[date] = Field(None, description="Latest availability end")

    @field_validator("name", "date_from", "date_to", mode="before")
    @classmethod
    def empty_as_unset(cls, v, info: ValidationInfo):
        """Treat empty query parameters as unset and require YYYY-MM-DD dates."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        if info.field_name == "name":
            return v
        ensure_valid(validate_iso_date(v), "Date")
        return parse_iso_date(v)

    @field_validator("name")
    @classmethod
    def validate_name_field(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            ensure_valid(validate_name(v), "Name")
        return v


class RegisterApplicationRequest(BaseModel):
    """Body of an application registration."""

    competence_id: int = Field(ge=1, description="Competence to apply for")
    years_of_experience: float = Field(description="Years of experience in the competence")
    date_from: date = Field(description="First day the applicant is available")
    date_to: date = Field(description="Last day the applicant is available")

    @field_validator("years_of_experience")
    @classmethod
    def validate_experience(cls, v: float) -> float:
        ensure_valid(validate_non_negative_number(v), "Years of experience")
        return v

    @field_validator("date_from", "date_to", mode="before")
    @classmethod
    def parse_dates(cls, v):
        ensure_valid(validate_iso_date(v), "Date")
        return parse_iso_date(v)

    @model_validator(mode="after")
    def check_period(self) -> "RegisterApplicationRequest":
        """Ensure the availability period is not reversed."""
        if self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        return self


class DecisionRequest(BaseModel):
    """Body of a decision submission."""

    decision: Decision = Field(description="Unhandled, Accepted or Rejected")
