"""
API Services Layer.

Operations over the recruitment schema. The functions in the submodules
take the caller's session; ``RecruitmentService`` wraps each of them in a
transaction for the HTTP layer.
"""

from api.services.identity import get_person_id, get_role

from api.services.registration import register_application

from api.services.applications import (
    PAGE_SIZE,
    list_applications,
    get_applications_count,
    get_applications_page_count,
    get_application,
)

from api.services.decisions import submit_application_decision

from api.services.users import signin_user, signup_user, signup_recruiter

from api.services.jobs import get_jobs

__all__ = [
    "get_person_id",
    "get_role",
    "register_application",
    "PAGE_SIZE",
    "list_applications",
    "get_applications_count",
    "get_applications_page_count",
    "get_application",
    "submit_application_decision",
    "signin_user",
    "signup_user",
    "signup_recruiter",
    "get_jobs",
]
