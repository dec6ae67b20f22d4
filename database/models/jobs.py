"""
Jobs Module

Reference data: jobs and the competences each of them requires.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, ForeignKey, Index
from database.engine import Base
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from database.models.applications import Application


class Job(Base):
    """A job that applicants can apply for through its competences."""

    __tablename__: str = "job"
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, nullable=False, autoincrement=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    competences: Mapped[list["Competence"]] = relationship(
        "Competence",
        back_populates="job",
        order_by="Competence.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Job(id={self.id}, name={self.name!r})>"


class Competence(Base):
    """A competence belonging to a job."""

    __tablename__: str = "competence"
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, nullable=False, autoincrement=True
    )
    job_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("job.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(255), nullable=False)

    job: Mapped["Job"] = relationship("Job", back_populates="competences")
    applications: Mapped[list["Application"]] = relationship(
        "Application", back_populates="competence"
    )

    __table_args__ = (Index("idx_competence_job", "job_id"),)

    def __repr__(self) -> str:
        return f"<Competence(id={self.id}, type={self.type!r})>"
