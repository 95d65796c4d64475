# ========================================
# onboard/routes/activity_log.py
# ========================================

from typing import List

from fastapi import APIRouter, Depends

from onboard.dependencies import get_activity_logger
from onboard.schemas.activity_log import ActivityLogResponse
from onboard.services.activity_logger import ActivityLogger
from onboard.utils.auth import get_current_user
from onboard.utils.ids import serialize_doc

router = APIRouter(tags=["Activity Logs"])


@router.get("/activity-logs", response_model=List[ActivityLogResponse])
async def get_activity_logs(
    current_user: dict = Depends(get_current_user),
    activity: ActivityLogger = Depends(get_activity_logger),
):
    """The caller's latest 100 actions, newest first."""

    return serialize_doc(await activity.recent(current_user["_id"], limit=100))
