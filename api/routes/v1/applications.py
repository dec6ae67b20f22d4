"""
Application workflow endpoints.

Applicants register applications; recruiters list, inspect and decide on
them. Business-rule outcomes are reported through the ``error_code`` of
the returned result, not through HTTP errors.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from api.dependencies import ensure_available, get_service
from api.schemas.applications import (
    ApplicationFilter,
    DecisionRequest,
    RegisterApplicationRequest,
)
from api.schemas.common import CountResponse, ErrorResponse, PageCountResponse
from api.schemas.results import (
    ApplicationDetailResult,
    ApplicationsListResult,
    DecisionResult,
    RegistrationResult,
)
from api.services.applications import PAGE_SIZE
from api.services.recruitment import RecruitmentService
from core.middleware.authentication import Identity
from core.middleware.authorization import require_applicant, require_recruiter
from core.security import AuditAction, ResourceType, log_audit_event

router = APIRouter(
    prefix="/applications",
    tags=["applications"],
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)


def get_application_filter(
    name: Optional[str] = Query(None, description="First or last name of the applicant"),
    competence_id: Optional[int] = Query(None, ge=1, description="Competence applied for"),
    date_from: Optional[str] = Query(None, description="Earliest availability start (YYYY-MM-DD)"),
    date_to: Optional[str] = Query(None, description="Latest availability end (YYYY-MM-DD)"),
) -> ApplicationFilter:
    """Collect the listing filter from query parameters."""
    try:
        return ApplicationFilter(
            name=name,
            competence_id=competence_id,
            date_from=date_from,
            date_to=date_to,
        )
    except ValidationError as e:
        raise RequestValidationError(
            [{**error, "loc": ("query", *error["loc"])} for error in e.errors()]
        )


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


@router.post(
    "",
    summary="Register Application",
    description="Apply for a competence. Requires the applicant role.",
    response_model=RegistrationResult,
)
async def register_application(
    body: RegisterApplicationRequest,
    request: Request,
    identity: Identity = Depends(require_applicant),
    service: RecruitmentService = Depends(get_service),
):
    """Register an application for the signed in applicant."""
    result = ensure_available(
        await service.register_application(
            username=identity.username,
            competence_id=body.competence_id,
            years_of_experience=body.years_of_experience,
            date_from=body.date_from,
            date_to=body.date_to,
        )
    )
    log_audit_event(
        AuditAction.REGISTER,
        ResourceType.APPLICATION,
        resource_id=result.application_id or None,
        username=identity.username,
        request_id=_request_id(request),
        details={"outcome": result.error_code.value, "competence_id": body.competence_id},
    )
    return result


@router.get(
    "",
    summary="List Applications",
    description="List applications matching the filter, 25 per page. Requires the recruiter role.",
    response_model=ApplicationsListResult,
)
async def list_applications(
    request: Request,
    identity: Identity = Depends(require_recruiter),
    filters: ApplicationFilter = Depends(get_application_filter),
    page: Optional[int] = Query(None, ge=0, description="1-based page; 0 or omitted lists every match"),
    service: RecruitmentService = Depends(get_service),
):
    """Retrieve a page of matching applications."""
    result = ensure_available(await service.list_applications(filters, page))
    log_audit_event(
        AuditAction.LIST,
        ResourceType.APPLICATION,
        username=identity.username,
        request_id=_request_id(request),
        details={"page": page, "returned": len(result.applications)},
    )
    return result


@router.get(
    "/count",
    summary="Count Applications",
    description="Number of applications matching the filter. Requires the recruiter role.",
    response_model=CountResponse,
    dependencies=[Depends(require_recruiter)],
)
async def count_applications(
    filters: ApplicationFilter = Depends(get_application_filter),
    service: RecruitmentService = Depends(get_service),
):
    """Count matching applications."""
    count = ensure_available(await service.get_applications_count(filters))
    return CountResponse(count=count)


@router.get(
    "/page-count",
    summary="Count Application Pages",
    description="Number of pages needed to list every match. Requires the recruiter role.",
    response_model=PageCountResponse,
    dependencies=[Depends(require_recruiter)],
)
async def count_application_pages(
    filters: ApplicationFilter = Depends(get_application_filter),
    service: RecruitmentService = Depends(get_service),
):
    """Count pages of matching applications."""
    page_count = ensure_available(await service.get_applications_page_count(filters))
    return PageCountResponse(page_count=page_count, page_size=PAGE_SIZE)


@router.get(
    "/{application_id}",
    summary="Get Application Details",
    description="Full application information. Requires the recruiter role.",
    response_model=ApplicationDetailResult,
)
async def get_application(
    request: Request,
    application_id: int = Path(..., ge=1, description="Application ID"),
    identity: Identity = Depends(require_recruiter),
    service: RecruitmentService = Depends(get_service),
):
    """Retrieve an application; unknown ids yield ``InvalidID``."""
    result = ensure_available(await service.get_application(application_id))
    log_audit_event(
        AuditAction.VIEW,
        ResourceType.APPLICATION,
        resource_id=application_id,
        username=identity.username,
        request_id=_request_id(request),
    )
    return result


@router.post(
    "/{application_id}/decision",
    summary="Decide Application",
    description="Accept or reject an application. Requires the recruiter role.",
    response_model=DecisionResult,
)
async def decide_application(
    body: DecisionRequest,
    request: Request,
    application_id: int = Path(..., ge=1, description="Application ID"),
    identity: Identity = Depends(require_recruiter),
    service: RecruitmentService = Depends(get_service),
):
    """Record the recruiter's decision; a final decision is never replaced."""
    result = ensure_available(
        await service.submit_application_decision(
            identity.username, application_id, body.decision
        )
    )
    log_audit_event(
        AuditAction.DECIDE,
        ResourceType.APPLICATION,
        resource_id=application_id,
        username=identity.username,
        request_id=_request_id(request),
        details={"requested": body.decision.value, "outcome": result.error_code.value},
    )
    return result
