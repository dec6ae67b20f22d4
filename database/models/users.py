"""
User Models

People taking part in the recruitment process and their login credentials.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    Integer,
    ForeignKey,
    Index,
)
from database.engine import Base
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from database.models.applications import Application, ApplicantAvailability


# ==================== Role ===================== #
class Role(IntEnum):
    """Role of a person. Values are persisted in ``person.role_id``."""

    INVALID = 0  # unset or failed authentication
    RECRUITER = 1  # decides on applications
    APPLICANT = 2  # registers applications

    @property
    def label(self) -> str:
        return self.name.capitalize()


class Person(Base):
    """A person known to the system, applicant or recruiter."""

    __tablename__: str = "person"
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, nullable=False, autoincrement=True
    )
    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False)
    personal_number: Mapped[str | None] = mapped_column(String(13), nullable=True)
    role_id: Mapped[int] = mapped_column(
        Integer, nullable=False, default=Role.INVALID.value
    )

    login_info: Mapped["LoginInfo | None"] = relationship(
        "LoginInfo", back_populates="person", uselist=False
    )
    applications: Mapped[list["Application"]] = relationship(
        "Application", back_populates="person", foreign_keys="Application.person_id"
    )
    availabilities: Mapped[list["ApplicantAvailability"]] = relationship(
        "ApplicantAvailability", back_populates="person"
    )

    __table_args__ = (
        Index("idx_person_first_name", "first_name"),
        Index("idx_person_last_name", "last_name"),
    )

    @property
    def role(self) -> Role:
        return Role(self.role_id)

    def __repr__(self) -> str:
        return f"<Person(id={self.id}, role_id={self.role_id})>"


class LoginInfo(Base):
    """Credentials of a person. Username and email are globally unique."""

    __tablename__: str = "login_info"
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, nullable=False, autoincrement=True
    )
    person_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("person.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    username: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    # Hex PBKDF2 digest, see core.security.hash_password
    password: Mapped[str] = mapped_column(String(128), nullable=False)

    person: Mapped["Person"] = relationship("Person", back_populates="login_info")

    def __repr__(self) -> str:
        return f"<LoginInfo(id={self.id}, username={self.username!r})>"
