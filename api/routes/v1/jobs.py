"""
Job catalogue endpoints.

Provides the list of jobs and the competences applicants can apply for.
"""

from fastapi import APIRouter, Depends, Request

from api.dependencies import ensure_available, get_service
from api.schemas.common import ErrorResponse
from api.schemas.results import JobResult
from api.services.recruitment import RecruitmentService
from core.middleware.authentication import Identity
from core.middleware.authorization import require_signed_in
from core.security import AuditAction, ResourceType, log_audit_event

router = APIRouter(
    prefix="/jobs",
    tags=["jobs"],
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)


@router.get(
    "",
    summary="List Jobs",
    description="List every job with its competences. Requires a signed in user.",
    response_model=list[JobResult],
)
async def list_jobs(
    request: Request,
    identity: Identity = Depends(require_signed_in),
    service: RecruitmentService = Depends(get_service),
):
    """Retrieve all jobs ordered by id."""
    jobs = ensure_available(await service.get_jobs())
    log_audit_event(
        AuditAction.LIST,
        ResourceType.JOB,
        username=identity.username,
        request_id=getattr(request.state, "request_id", None),
        details={"returned": len(jobs)},
    )
    return jobs
