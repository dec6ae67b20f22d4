"""
Application Models

Job applications, their decision status and the availability windows
applicants register together with them.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    Date,
    Float,
    ForeignKey,
    Integer,
    Enum as SQLEnum,
    Index,
    CheckConstraint,
)
from database.engine import Base
from datetime import date
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from database.models.users import Person
    from database.models.jobs import Competence


# ==================== Decision ===================== #
class Decision(str, PyEnum):
    """
    Decision on an application.

    ``UNHANDLED`` is the initial state; ``ACCEPTED`` and ``REJECTED`` are
    terminal.
    """

    UNHANDLED = "Unhandled"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not Decision.UNHANDLED


class Application(Base):
    """An applicant's application for one competence."""

    __tablename__: str = "application"
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, nullable=False, autoincrement=True
    )
    person_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("person.id", ondelete="CASCADE"), nullable=False
    )
    competence_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("competence.id"), nullable=False
    )
    years_of_experience: Mapped[float] = mapped_column(Float, nullable=False)

    person: Mapped["Person"] = relationship(
        "Person", back_populates="applications", foreign_keys=[person_id]
    )
    competence: Mapped["Competence"] = relationship(
        "Competence", back_populates="applications"
    )
    status: Mapped["ApplicationStatus"] = relationship(
        "ApplicationStatus",
        back_populates="application",
        uselist=False,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("years_of_experience >= 0", name="ck_application_experience"),
        Index("idx_application_person_competence", "person_id", "competence_id"),
    )

    def __repr__(self) -> str:
        return f"<Application(id={self.id}, person_id={self.person_id}, competence_id={self.competence_id})>"


class ApplicationStatus(Base):
    """Decision state of an application, created together with it."""

    __tablename__: str = "application_status"
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, nullable=False, autoincrement=True
    )
    application_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("application.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    decision: Mapped[Decision] = mapped_column(
        SQLEnum(
            Decision,
            name="decision",
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
        default=Decision.UNHANDLED,
    )
    # Set when a recruiter decides
    recruiter_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("person.id"), nullable=True
    )

    application: Mapped["Application"] = relationship(
        "Application", back_populates="status"
    )

    def __repr__(self) -> str:
        return f"<ApplicationStatus(application_id={self.application_id}, decision={self.decision})>"


class ApplicantAvailability(Base):
    """A period during which an applicant is available."""

    __tablename__: str = "applicant_availability"
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, nullable=False, autoincrement=True
    )
    person_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("person.id", ondelete="CASCADE"), nullable=False
    )
    from_date: Mapped[date] = mapped_column(Date, nullable=False)
    to_date: Mapped[date] = mapped_column(Date, nullable=False)

    person: Mapped["Person"] = relationship("Person", back_populates="availabilities")

    __table_args__ = (
        Index("idx_availability_person", "person_id"),
        Index("idx_availability_dates", "from_date", "to_date"),
    )

    def __repr__(self) -> str:
        return f"<ApplicantAvailability(person_id={self.person_id}, {self.from_date}..{self.to_date})>"
