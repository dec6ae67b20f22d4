"""Job catalogue queries."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from api.schemas.results import CompetenceResult, JobResult
from database.models.jobs import Job


async def get_jobs(session: AsyncSession) -> list[JobResult]:
    """
    List every job with its competences.

    Jobs and competences are both ordered by id.
    """
    result = await session.execute(
        select(Job).options(selectinload(Job.competences)).order_by(Job.id)
    )
    return [
        JobResult(
            job_id=job.id,
            description=job.name,
            competences=[
                CompetenceResult(id=competence.id, type=competence.type)
                for competence in job.competences
            ],
        )
        for job in result.scalars().all()
    ]
