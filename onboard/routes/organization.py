# ========================================
# onboard/routes/organization.py
# ========================================

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status

from onboard.database import get_db
from onboard.dependencies import (
    get_application_service,
    get_dispatcher,
    get_session_service,
)
from onboard.routes.application import change_status
from onboard.schemas.application import (
    ApplicationResult,
    ApplicationStatusUpdate,
    OrganizationApplicationItem,
)
from onboard.schemas.session import SessionCreate, SessionResponse, SessionUpdate, present_session
from onboard.schemas.status import to_internal
from onboard.services.application_service import ApplicationService
from onboard.services.notification_service import NotificationDispatcher
from onboard.services.session_service import SessionService
from onboard.utils.auth import get_current_user, require_role
from onboard.utils.ids import serialize_doc, to_object_id

router = APIRouter(prefix="/organization", tags=["Organization"])

ORG_ONLY = "Access denied. Organization account required."


# ===========================
# ACCOUNT
# ===========================

# ✅ 1. CLOSE ORGANIZATION (soft delete)
@router.patch("/close")
async def close_organization(current_user: dict = Depends(get_current_user), db=Depends(get_db)):
    """Deactivate the organization. Closed organizations cannot post sessions."""

    require_role(current_user, "organization", ORG_ONLY)

    if current_user.get("is_active") is False:
        raise HTTPException(status_code=400, detail="Organization is already closed")

    await db.users.update_one({"_id": current_user["_id"]}, {"$set": {"is_active": False}})
    return {"success": True, "message": "Organization closed successfully"}


# ===========================
# SESSION MANAGEMENT
# ===========================

# ✅ 2. LIST MY SESSIONS
@router.get("/sessions", response_model=List[SessionResponse])
async def get_my_sessions(
    sort: Optional[str] = Query(None, description="createdAt, -createdAt, startDate, -startDate"),
    limit: Optional[int] = Query(None, ge=1),
    current_user: dict = Depends(get_current_user),
    sessions: SessionService = Depends(get_session_service),
):
    """Get all sessions posted by the current organization."""

    require_role(current_user, "organization", ORG_ONLY)

    result = await sessions.list_organization_sessions(current_user["_id"], sort, limit)
    return [present_session(s) for s in result]


# ✅ 3. CREATE SESSION
@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def create_session(
    payload: SessionCreate,
    background_tasks: BackgroundTasks,
    current_user: dict = Depends(get_current_user),
    sessions: SessionService = Depends(get_session_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Create a session and notify all active job seekers in the background."""

    require_role(current_user, "organization", ORG_ONLY)

    session = await sessions.create_session(current_user, payload.model_dump())

    # Runs after the response has been sent
    background_tasks.add_task(dispatcher.broadcast_detached, session, current_user)

    return {
        "success": True,
        "message": "Session created successfully",
        "data": SessionResponse(**present_session(session)),
    }


# ✅ 4. UPDATE SESSION
@router.put("/sessions/{session_id}")
async def update_session(
    session_id: str,
    payload: SessionUpdate,
    current_user: dict = Depends(get_current_user),
    sessions: SessionService = Depends(get_session_service),
):
    """Edit a session. Only the owning organization can edit."""

    require_role(current_user, "organization", ORG_ONLY)

    updated = await sessions.update_session(
        current_user["_id"],
        to_object_id(session_id, "session ID"),
        payload.model_dump(exclude_unset=True, exclude_none=True),
    )
    return {
        "success": True,
        "message": "Session updated successfully",
        "data": SessionResponse(**present_session(updated)),
    }


# ✅ 5. DELETE SESSION
@router.delete("/sessions/{session_id}")
async def delete_session(
    session_id: str,
    current_user: dict = Depends(get_current_user),
    sessions: SessionService = Depends(get_session_service),
):
    """Delete a session together with its applications."""

    require_role(current_user, "organization", ORG_ONLY)

    removed = await sessions.delete_session(current_user["_id"], to_object_id(session_id, "session ID"))
    return {
        "success": True,
        "message": "Session deleted successfully",
        "applications_removed": removed,
    }


# ===========================
# APPLICATION MANAGEMENT
# ===========================

# ✅ 6. APPLICATIONS FOR MY SESSIONS
@router.get("/applications", response_model=List[OrganizationApplicationItem])
async def get_organization_applications(
    status: Optional[str] = Query(None, description="Pending, Shortlisted, Approved, Rejected or All"),
    sort: Optional[str] = Query(None, description="dateApplied or -dateApplied"),
    limit: Optional[int] = Query(None, ge=1),
    current_user: dict = Depends(get_current_user),
    applications: ApplicationService = Depends(get_application_service),
):
    """Get applications received on the organization's sessions."""

    require_role(current_user, "organization", ORG_ONLY)

    internal_status = to_internal(status) if status and status != "All" else None
    result = await applications.list_organization_applications(
        current_user["_id"], internal_status, sort, limit
    )
    return serialize_doc(result)


# ✅ 7. UPDATE APPLICATION STATUS
@router.put("/applications/{application_id}/status", response_model=ApplicationResult)
async def update_application_status(
    application_id: str,
    status_update: ApplicationStatusUpdate,
    current_user: dict = Depends(get_current_user),
    applications: ApplicationService = Depends(get_application_service),
):
    """Move an application to Pending, Shortlisted, Approved or Rejected."""

    return await change_status(application_id, status_update, current_user, applications)
