# ========================================
# onboard/routes/export.py
# ========================================

from fastapi import APIRouter, Depends, Query, Response

from onboard.dependencies import get_application_service
from onboard.errors import ValidationError
from onboard.services.application_service import ApplicationService
from onboard.utils.auth import get_current_user, require_role
from onboard.utils.dates import utcnow
from onboard.utils.export import create_csv_response_headers, export_applicants_to_csv
from onboard.utils.ids import to_object_id

router = APIRouter(prefix="/export", tags=["Export"])


# ✅ EXPORT SESSION APPLICANTS (Organization)
@router.get("/sessions/{session_id}/applicants")
async def export_session_applicants(
    session_id: str,
    format: str = Query("csv", description="Only csv is supported"),
    current_user: dict = Depends(get_current_user),
    applications: ApplicationService = Depends(get_application_service),
):
    """Download everyone who applied to one of the organization's sessions."""

    require_role(current_user, "organization", "Only organizations can export applicants")

    if format.lower() != "csv":
        raise ValidationError([f"Unsupported export format: {format}"], "Invalid export format")

    applicants = await applications.session_applicants(
        current_user["_id"], to_object_id(session_id, "session ID")
    )
    csv_content = export_applicants_to_csv(applicants)

    return Response(
        content=csv_content,
        media_type="text/csv",
        headers=create_csv_response_headers(
            f"applicants_{session_id}_{utcnow().strftime('%Y%m%d')}"
        ),
    )
