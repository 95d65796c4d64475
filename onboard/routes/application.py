# ========================================
# onboard/routes/application.py
# ========================================

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from onboard.dependencies import get_application_service
from onboard.schemas.application import (
    ApplicationCreate,
    ApplicationResult,
    ApplicationStatusUpdate,
    MyApplicationItem,
)
from onboard.schemas.status import to_external, to_internal
from onboard.services.application_service import ApplicationService
from onboard.utils.auth import get_current_user, require_role
from onboard.utils.ids import serialize_doc, to_object_id

router = APIRouter(tags=["Applications"])


async def change_status(
    application_id: str,
    status_update: ApplicationStatusUpdate,
    current_user: dict,
    applications: ApplicationService,
) -> dict:
    require_role(
        current_user, "organization",
        "Access denied. Only organizations can manage applications.",
    )

    internal = to_internal(status_update.status)
    application = await applications.update_application_status(
        current_user["_id"], to_object_id(application_id, "application ID"), internal
    )

    external = to_external(application["status"])
    return {
        "success": True,
        "message": f"Application status is {external}",
        "data": serialize_doc(application),
    }


# ===========================
# JOB SEEKER ENDPOINTS
# ===========================

# ✅ 1. APPLY FOR SESSION (Job seeker)
@router.post("/applications", response_model=ApplicationResult, status_code=status.HTTP_201_CREATED)
async def submit_application(
    payload: ApplicationCreate,
    current_user: dict = Depends(get_current_user),
    applications: ApplicationService = Depends(get_application_service),
):
    """Apply to a public session. Only job seekers can apply."""

    require_role(current_user, "job_seeker", "Only job seekers can apply")

    application = await applications.submit_application(
        current_user["_id"], to_object_id(payload.session_id, "session ID")
    )
    return {
        "success": True,
        "message": "Application submitted successfully",
        "data": serialize_doc(application),
    }


# ✅ 2. GET MY APPLICATIONS (Job seeker)
@router.get("/applications", response_model=List[MyApplicationItem])
async def get_my_applications(
    sort: Optional[str] = Query(None, description="dateApplied or -dateApplied"),
    limit: Optional[int] = Query(None, ge=1),
    current_user: dict = Depends(get_current_user),
    applications: ApplicationService = Depends(get_application_service),
):
    """Get all applications submitted by the current job seeker."""

    require_role(current_user, "job_seeker", "Only job seekers can view their applications")

    result = await applications.list_job_seeker_applications(current_user["_id"], sort, limit)
    return serialize_doc(result)


# ===========================
# ORGANIZATION ENDPOINTS
# ===========================

# ✅ 3. UPDATE APPLICATION STATUS (Organization)
@router.put("/applications/{application_id}/status", response_model=ApplicationResult)
async def update_status(
    application_id: str,
    status_update: ApplicationStatusUpdate,
    current_user: dict = Depends(get_current_user),
    applications: ApplicationService = Depends(get_application_service),
):
    """Move an application to Pending, Shortlisted, Approved or Rejected.

    Approving counts against the session capacity.
    """

    return await change_status(application_id, status_update, current_user, applications)
