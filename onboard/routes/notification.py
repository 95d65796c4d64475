# ========================================
# onboard/routes/notification.py
# ========================================

import logging

from fastapi import APIRouter, Depends, Query, WebSocket, status
from starlette.websockets import WebSocketDisconnect

from onboard.dependencies import get_dispatcher
from onboard.schemas.notification import NotificationPage
from onboard.services.notification_service import NotificationDispatcher
from onboard.utils.auth import get_current_user, user_from_token
from onboard.utils.ids import serialize_doc, to_object_id

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notifications"])


# ✅ 1. LIST MY NOTIFICATIONS
@router.get("/notifications", response_model=NotificationPage)
async def get_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    unread_only: bool = Query(False),
    current_user: dict = Depends(get_current_user),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Newest first. Reminders for sessions starting soon are created on the way in."""

    await dispatcher.check_upcoming_sessions(current_user["_id"])

    result = await dispatcher.list_notifications(current_user["_id"], page, limit, unread_only)
    result["notifications"] = serialize_doc(result["notifications"])
    return result


# ✅ 2. MARK ALL AS READ
@router.patch("/notifications/mark-all-read")
async def mark_all_notifications_read(
    current_user: dict = Depends(get_current_user),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    updated = await dispatcher.mark_all_read(current_user["_id"])
    return {"success": True, "message": "All notifications marked as read", "updated_count": updated}


# ✅ 3. MARK ONE AS READ
@router.patch("/notifications/{notification_id}/read")
async def mark_notification_read(
    notification_id: str,
    current_user: dict = Depends(get_current_user),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    await dispatcher.mark_read(current_user["_id"], to_object_id(notification_id, "notification ID"))
    return {"success": True, "message": "Notification marked as read"}


# ===========================
# REAL-TIME CHANNEL
# ===========================

@router.websocket("/ws/notifications")
async def notifications_socket(websocket: WebSocket, token: str = Query(...)):
    """Join the caller's room; notifications arrive as ``{"event", "data"}`` frames."""

    user = await user_from_token(websocket.app.state.db, token)
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    manager = websocket.app.state.channel
    user_id = str(user["_id"])
    await manager.connect(user_id, websocket)
    try:
        # client frames are ignored, the loop only waits for the disconnect
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("User %s disconnected", user_id)
    finally:
        manager.disconnect(user_id, websocket)
