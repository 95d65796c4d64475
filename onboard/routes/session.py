# ========================================
# onboard/routes/session.py
# ========================================

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from onboard.dependencies import get_discovery_service, get_session_service
from onboard.schemas.session import (
    CalendarEvent,
    DiscoverResponse,
    SessionViewResponse,
    present_session,
)
from onboard.services.discovery_service import DiscoveryService
from onboard.services.session_service import SessionService
from onboard.utils.auth import get_current_user, get_optional_user
from onboard.utils.ids import to_object_id

router = APIRouter(prefix="/sessions", tags=["Sessions"])

# ===========================
# PUBLIC ENDPOINTS (optional auth)
# ===========================

# ✅ 1. DISCOVER SESSIONS WITH SEARCH AND FILTERS
@router.get("/discover", response_model=DiscoverResponse, response_model_by_alias=True)
async def discover_sessions(
    search: Optional[str] = Query(None, description="Search in title, description and tags"),
    tags: Optional[str] = Query(None, description="Comma-separated tags (match any)"),
    start_date: Optional[datetime] = Query(None, description="Sessions starting on or after"),
    end_date: Optional[datetime] = Query(None, description="Sessions starting on or before"),
    location: Optional[str] = Query(None, description="Filter by location"),
    sort: Optional[str] = Query("-createdAt", description="createdAt, -createdAt, startDate, -startDate"),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    viewer: Optional[dict] = Depends(get_optional_user),
    discovery: DiscoveryService = Depends(get_discovery_service),
):
    """Public, active, still-open sessions. Job seekers also see their apply/wishlist state."""

    result = await discovery.discover_sessions(
        viewer=viewer,
        search=search,
        tags=tags,
        start_date=start_date,
        end_date=end_date,
        location=location,
        sort=sort,
        page=page,
        limit=limit,
    )
    return {
        "success": True,
        "data": [present_session(s) for s in result["data"]],
        "pagination": result["pagination"],
    }


# ✅ 2. CALENDAR (Authenticated)
@router.get("/calendar", response_model=List[CalendarEvent])
async def get_calendar_sessions(
    current_user: dict = Depends(get_current_user),
    sessions: SessionService = Depends(get_session_service),
):
    """Approved sessions for job seekers, own sessions for organizations."""

    return await sessions.calendar_sessions(current_user)


# ✅ 3. GET SINGLE SESSION DETAILS
@router.get("/{session_id}", response_model=SessionViewResponse)
async def get_session_details(
    session_id: str,
    viewer: Optional[dict] = Depends(get_optional_user),
    discovery: DiscoveryService = Depends(get_discovery_service),
):
    """Get detailed information about a specific session."""

    session = await discovery.get_session_details(to_object_id(session_id, "session ID"), viewer)
    return present_session(session)
