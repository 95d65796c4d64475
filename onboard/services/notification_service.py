import asyncio
import logging
import math
from datetime import timedelta
from typing import List, Optional

from bson import ObjectId
from fastapi.encoders import jsonable_encoder
from pymongo.errors import DuplicateKeyError, PyMongoError

from onboard.errors import ForbiddenError, NotFoundError
from onboard.models.application import SELECTED
from onboard.models.notification import Notification
from onboard.models.user import JOB_SEEKER, ORGANIZATION
from onboard.realtime import RealtimeChannel
from onboard.utils.dates import utcnow
from onboard.utils.ids import serialize_doc

logger = logging.getLogger(__name__)

NEW_SESSION_TITLE = "New Job Opportunity"
REMINDER_TITLE = "Upcoming Session Reminder"


class NotificationDispatcher:
    """Stores notifications and pushes them to the addressed user.

    The stored record is the source of truth. Real-time delivery is best
    effort: push failures are logged and never reach the caller.
    """

    def __init__(
        self,
        db,
        channel: RealtimeChannel,
        reminder_window_minutes: int = 30,
        broadcast_batch_size: int = 100,
    ):
        self.db = db
        self.channel = channel
        self.reminder_window = timedelta(minutes=reminder_window_minutes)
        self.broadcast_batch_size = max(broadcast_batch_size, 1)

    async def notify(
        self,
        user_id: ObjectId,
        type: str,
        title: str,
        message: str,
        session_id: Optional[ObjectId] = None,
    ) -> dict:
        notification = Notification(
            user=user_id, type=type, title=title, message=message, session=session_id
        ).to_mongo()
        result = await self.db.notifications.insert_one(notification)
        notification["_id"] = result.inserted_id

        await self._push(notification)
        return notification

    async def notify_once(
        self,
        user_id: ObjectId,
        type: str,
        title: str,
        message: str,
        session_id: ObjectId,
    ) -> Optional[dict]:
        """Create the notification unless an identical one already exists.

        Keyed on (user, type, session, title, message) through an upsert.
        The unique reminder index makes a racing second upsert fail instead
        of inserting again. Returns the new notification, or None when it
        already existed.
        """
        notification = Notification(
            user=user_id, type=type, title=title, message=message, session=session_id
        ).to_mongo()
        key = {field: notification[field] for field in ("user", "type", "session", "title", "message")}
        try:
            result = await self.db.notifications.update_one(
                key,
                {"$setOnInsert": {"read": notification["read"], "created_at": notification["created_at"]}},
                upsert=True,
            )
        except DuplicateKeyError:
            logger.debug("Reminder for user %s on session %s already exists", user_id, session_id)
            return None
        if result.upserted_id is None:
            return None

        notification["_id"] = result.upserted_id
        await self._push(notification)
        return notification

    async def _push(self, notification: dict):
        payload = jsonable_encoder(serialize_doc(notification))
        try:
            await self.channel.send_to_user(str(notification["user"]), "notification", payload)
        except Exception:
            logger.warning(
                "Real-time push failed for user %s", notification["user"], exc_info=True
            )

    # ===========================
    # SESSION BROADCAST
    # ===========================

    async def broadcast_new_session(self, session: dict, organization: Optional[dict]) -> int:
        """Notify every active job seeker about a new session.

        Returns the number of notifications created. One recipient failing
        does not stop the others.
        """
        job_seekers = await self.db.users.find(
            {"role": JOB_SEEKER, "is_active": True}, {"_id": 1}
        ).to_list(None)

        company_name = ((organization or {}).get("company_info") or {}).get("company_name")
        message = f"{company_name or 'An organization'} posted a new opportunity: {session['title']}"

        failed = 0
        # At most broadcast_batch_size inserts and pushes in flight at once
        for start in range(0, len(job_seekers), self.broadcast_batch_size):
            batch = job_seekers[start:start + self.broadcast_batch_size]
            results = await asyncio.gather(
                *[
                    self.notify(
                        job_seeker["_id"], "session_update", NEW_SESSION_TITLE, message, session["_id"]
                    )
                    for job_seeker in batch
                ],
                return_exceptions=True,
            )
            for job_seeker, result in zip(batch, results):
                if isinstance(result, Exception):
                    failed += 1
                    logger.error(
                        "Could not notify job seeker %s about session %s: %s",
                        job_seeker["_id"], session["_id"], result,
                    )

        sent = len(job_seekers) - failed
        logger.info(
            "Sent new session notifications for %s to %d job seekers (%d failed)",
            session["_id"], sent, failed,
        )
        return sent

    async def broadcast_detached(self, session: dict, organization: Optional[dict]):
        """Background-task entry point: the outcome only shows up in the logs."""
        try:
            await self.broadcast_new_session(session, organization)
        except Exception:
            logger.exception("Session broadcast for %s aborted", session.get("_id"))

    # ===========================
    # REMINDERS
    # ===========================

    async def check_upcoming_sessions(self, user_id: ObjectId) -> List[dict]:
        """Emit one reminder per associated session starting soon.

        Safe to call on every poll: a reminder already sent is not sent again.
        """
        try:
            return await self._create_reminders(user_id)
        except PyMongoError:
            logger.exception("Error checking upcoming sessions for user %s", user_id)
            return []

    async def _create_reminders(self, user_id: ObjectId) -> List[dict]:
        user = await self.db.users.find_one({"_id": user_id}, {"role": 1})
        if not user:
            return []

        if user["role"] == JOB_SEEKER:
            applications = await self.db.applications.find(
                {"job_seeker": user_id, "status": SELECTED}, {"session": 1}
            ).to_list(None)
            session_ids = [app["session"] for app in applications]
        elif user["role"] == ORGANIZATION:
            sessions = await self.db.sessions.find({"organization": user_id}, {"_id": 1}).to_list(None)
            session_ids = [s["_id"] for s in sessions]
        else:
            session_ids = []

        if not session_ids:
            return []

        now = utcnow()
        upcoming = await self.db.sessions.find({
            "_id": {"$in": session_ids},
            "start_date": {"$gt": now, "$lte": now + self.reminder_window},
            "status": "Active",
        }).to_list(None)

        created = []
        for session in upcoming:
            message = f'Your session "{session["title"]}" starts soon at {session["start_date"]:%H:%M}!'
            reminder = await self.notify_once(user_id, "reminder", REMINDER_TITLE, message, session["_id"])
            if reminder:
                created.append(reminder)
        return created

    # ===========================
    # INBOX
    # ===========================

    async def list_notifications(
        self, user_id: ObjectId, page: int = 1, limit: int = 10, unread_only: bool = False
    ) -> dict:
        query = {"user": user_id}
        if unread_only:
            query["read"] = False

        total = await self.db.notifications.count_documents(query)
        unread_count = await self.db.notifications.count_documents({"user": user_id, "read": False})

        notifications = await self.db.notifications.find(query).sort(
            [("created_at", -1), ("_id", -1)]
        ).skip((page - 1) * limit).limit(limit).to_list(limit)

        return {
            "notifications": notifications,
            "total": total,
            "unread_count": unread_count,
            "page": page,
            "total_pages": math.ceil(total / limit) if limit else 0,
        }

    async def mark_read(self, user_id: ObjectId, notification_id: ObjectId):
        notification = await self.db.notifications.find_one({"_id": notification_id})
        if not notification:
            raise NotFoundError("Notification not found")
        if notification["user"] != user_id:
            raise ForbiddenError("Not authorized")

        await self.db.notifications.update_one({"_id": notification_id}, {"$set": {"read": True}})

    async def mark_all_read(self, user_id: ObjectId) -> int:
        result = await self.db.notifications.update_many(
            {"user": user_id, "read": False}, {"$set": {"read": True}}
        )
        return result.modified_count
