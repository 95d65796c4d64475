"""Capacity & status engine.

The only code allowed to change an application's status. Every transition
moves the session counters in the same step:

* ``current_applications`` counts applications in ``Selected`` and never
  exceeds ``capacity`` when an application is moved into ``Selected``;
* ``applicant_stats`` holds one counter per status and sums to the number
  of applications on the session.

Counter changes are single ``$inc`` updates with a conditional filter, so
concurrent approvals on one session cannot both pass the capacity check.
"""

import logging
from typing import Dict, List, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from onboard.errors import (
    CapacityExceededError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from onboard.models.application import (
    APPLICATION_STATUSES,
    PENDING,
    SELECTED,
    Application,
    stats_key,
)
from onboard.models.user import ORGANIZATION, display_name
from onboard.schemas.status import to_external
from onboard.services.activity_logger import ActivityLogger
from onboard.services.events import emit_event
from onboard.services.notification_service import NotificationDispatcher
from onboard.utils.dates import utcnow

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "dateApplied": ("date_applied", 1),
    "-dateApplied": ("date_applied", -1),
}


def counter_patch(old_status: str, new_status: str) -> Dict[str, int]:
    """``$inc`` document for moving one application from old to new status."""
    patch = {stats_key(old_status): -1, stats_key(new_status): 1}
    if new_status == SELECTED and old_status != SELECTED:
        patch["current_applications"] = 1
    elif old_status == SELECTED and new_status != SELECTED:
        patch["current_applications"] = -1
    return patch


def _inverse(patch: Dict[str, int]) -> Dict[str, int]:
    return {key: -value for key, value in patch.items()}


class ApplicationService:
    def __init__(self, db, dispatcher: NotificationDispatcher, activity: ActivityLogger):
        self.db = db
        self.dispatcher = dispatcher
        self.activity = activity

    # ===========================
    # SUBMISSION (job seeker)
    # ===========================

    async def submit_application(self, job_seeker_id: ObjectId, session_id: ObjectId) -> dict:
        session = await self.db.sessions.find_one({"_id": session_id})
        if not session:
            raise NotFoundError("Session not found")

        if session.get("is_private"):
            raise ForbiddenError(
                "This session is private and not available for public applications."
            )

        if session["registration_deadline"] < utcnow():
            raise ConflictError("Registration deadline has passed for this session.")

        if session.get("current_applications", 0) >= session["capacity"]:
            raise ConflictError("This session is at full capacity.")

        organization = await self.db.users.find_one(
            {"_id": session["organization"]}, {"company_info": 1}
        )
        application = Application(
            job_seeker=job_seeker_id,
            session=session_id,
            status=PENDING,
            organization_name=display_name(organization),
        ).to_mongo()

        # The unique (job_seeker, session) index is the duplicate guard
        try:
            result = await self.db.applications.insert_one(application)
        except DuplicateKeyError:
            raise ConflictError("You have already applied to this session.")
        application["_id"] = result.inserted_id

        try:
            counted = await self.db.sessions.update_one(
                {"_id": session_id}, {"$inc": {stats_key(PENDING): 1}}
            )
        except PyMongoError:
            await self.db.applications.delete_one({"_id": application["_id"]})
            raise
        if counted.matched_count == 0:
            await self.db.applications.delete_one({"_id": application["_id"]})
            raise NotFoundError("Session not found")

        await self.activity.log(
            job_seeker_id, "job_seeker", "APPLICATION_SUBMIT", "application", application["_id"],
            {"session": str(session_id)},
        )
        await emit_event("session_applied", {
            "user_id": str(job_seeker_id),
            "session_id": str(session_id),
        })
        return application

    # ===========================
    # STATUS TRANSITIONS (organization)
    # ===========================

    async def update_application_status(
        self, actor_org_id: ObjectId, application_id: ObjectId, new_status: str
    ) -> dict:
        if new_status not in APPLICATION_STATUSES:
            raise ValidationError(
                [f"status must be one of: {', '.join(APPLICATION_STATUSES)}"],
                message="Invalid status.",
            )

        application = await self.db.applications.find_one({"_id": application_id})
        if not application:
            raise NotFoundError("Application not found")

        session = await self.db.sessions.find_one({"_id": application["session"]})
        if not session:
            raise NotFoundError("Session not found")

        if session["organization"] != actor_org_id:
            raise ForbiddenError(
                "Access denied. You can only manage applications for your own sessions."
            )

        old_status = application["status"]
        if old_status == new_status:
            return application

        patch = counter_patch(old_status, new_status)
        await self._apply_counters(session, old_status, new_status, patch)

        now = utcnow()
        changes = {"status": new_status, "status_updated_at": now, "updated_by": actor_org_id}
        try:
            # Compare-and-set on the old status: a concurrent transition of the
            # same application must not be counted twice
            result = await self.db.applications.update_one(
                {"_id": application_id, "status": old_status}, {"$set": changes}
            )
        except PyMongoError:
            await self._revert_counters(session["_id"], patch)
            raise
        if result.matched_count == 0:
            await self._revert_counters(session["_id"], patch)
            raise ConflictError("Application status was changed concurrently. Please retry.")

        application.update(changes)

        await emit_event("application_status_updated", {
            "application_id": str(application_id),
            "old_status": old_status,
            "new_status": new_status,
        })
        await self.activity.log(
            actor_org_id, ORGANIZATION, "APPLICATION_STATUS_UPDATE", "application", application_id,
            {"from": old_status, "to": new_status},
        )
        await self._notify_applicant(application, session, new_status)
        return application

    async def _apply_counters(self, session: dict, old_status: str, new_status: str, patch: Dict[str, int]):
        query = {"_id": session["_id"]}
        entering_selected = new_status == SELECTED and old_status != SELECTED

        if entering_selected:
            if session.get("current_applications", 0) >= session["capacity"]:
                raise CapacityExceededError("Cannot approve. Session is at full capacity.")
            # Increment only while still below the capacity we checked against
            query["capacity"] = session["capacity"]
            query["current_applications"] = {"$lt": session["capacity"]}

        updated = await self.db.sessions.find_one_and_update(
            query,
            {"$inc": patch, "$set": {"updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is not None:
            return updated

        latest = await self.db.sessions.find_one({"_id": session["_id"]})
        if latest is None:
            raise NotFoundError("Session not found")
        if entering_selected and latest.get("current_applications", 0) >= latest["capacity"]:
            raise CapacityExceededError("Cannot approve. Session is at full capacity.")
        raise ConflictError("Session was modified concurrently. Please retry.")

    async def _revert_counters(self, session_id: ObjectId, patch: Dict[str, int]):
        try:
            await self.db.sessions.update_one({"_id": session_id}, {"$inc": _inverse(patch)})
        except PyMongoError:
            logger.critical(
                "Could not revert counters %s on session %s; counters need repair",
                patch, session_id, exc_info=True,
            )
            raise

    async def _notify_applicant(self, application: dict, session: dict, new_status: str):
        message = (
            f'Your application for "{session["title"]}" is now {to_external(new_status)}.'
        )
        try:
            await self.dispatcher.notify(
                application["job_seeker"], "status_change", "Application Status Updated",
                message, session["_id"],
            )
        except PyMongoError:
            logger.exception("Could not notify applicant about application %s", application["_id"])

    # ===========================
    # LISTINGS
    # ===========================

    async def list_job_seeker_applications(
        self, job_seeker_id: ObjectId, sort: Optional[str] = None, limit: Optional[int] = None
    ) -> List[dict]:
        field, direction = SORT_FIELDS.get(sort or "-dateApplied", SORT_FIELDS["-dateApplied"])
        cursor = self.db.applications.find({"job_seeker": job_seeker_id}).sort(field, direction)
        if limit and limit > 0:
            cursor = cursor.limit(limit)
        applications = await cursor.to_list(None)

        sessions = await self._sessions_by_id(app["session"] for app in applications)
        for app in applications:
            session = sessions.get(app["session"])
            app["session_title"] = session["title"] if session else "Untitled Session"
        return applications

    async def list_organization_applications(
        self,
        org_id: ObjectId,
        status: Optional[str] = None,
        sort: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[dict]:
        own_sessions = await self.db.sessions.find(
            {"organization": org_id}, {"_id": 1, "title": 1}
        ).to_list(None)
        titles = {s["_id"]: s["title"] for s in own_sessions}

        query = {"session": {"$in": list(titles)}}
        if status and status != "All":
            query["status"] = status

        field, direction = SORT_FIELDS.get(sort or "-dateApplied", SORT_FIELDS["-dateApplied"])
        cursor = self.db.applications.find(query).sort(field, direction)
        if limit and limit > 0:
            cursor = cursor.limit(limit)
        applications = await cursor.to_list(None)

        seeker_ids = list({app["job_seeker"] for app in applications})
        seekers = await self.db.users.find(
            {"_id": {"$in": seeker_ids}}, {"password": 0}
        ).to_list(None)
        seekers_by_id = {user["_id"]: user for user in seekers}

        for app in applications:
            seeker = seekers_by_id.get(app["job_seeker"])
            app["session_title"] = titles.get(app["session"], "Untitled Session")
            app["job_seeker_name"] = display_name(seeker, default="Job Seeker")
            app["applicant_details"] = {
                "email": seeker.get("email") if seeker else None,
                "personal_info": seeker.get("personal_info") if seeker else None,
            }
        return applications

    async def session_applicants(self, org_id: ObjectId, session_id: ObjectId) -> List[dict]:
        """Applications of one owned session, each with its ``job_seeker_doc``."""
        session = await self.db.sessions.find_one({"_id": session_id}, {"organization": 1})
        if not session:
            raise NotFoundError("Session not found")
        if session["organization"] != org_id:
            raise ForbiddenError("Not authorized to export this session")

        applications = await self.db.applications.find({"session": session_id}).sort(
            "date_applied", 1
        ).to_list(None)
        seekers = await self.db.users.find(
            {"_id": {"$in": [app["job_seeker"] for app in applications]}}, {"password": 0}
        ).to_list(None)
        by_id = {user["_id"]: user for user in seekers}
        for app in applications:
            app["job_seeker_doc"] = by_id.get(app["job_seeker"])
        return applications

    async def _sessions_by_id(self, session_ids) -> Dict[ObjectId, dict]:
        ids = list(set(session_ids))
        if not ids:
            return {}
        sessions = await self.db.sessions.find({"_id": {"$in": ids}}).to_list(None)
        return {s["_id"]: s for s in sessions}
