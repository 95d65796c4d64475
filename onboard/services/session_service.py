import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId

from onboard.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from onboard.models.application import SELECTED
from onboard.models.session import Session
from onboard.models.user import JOB_SEEKER, ORGANIZATION, display_name
from onboard.services.activity_logger import ActivityLogger
from onboard.utils.dates import utcnow

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "createdAt": ("created_at", 1),
    "-createdAt": ("created_at", -1),
    "startDate": ("start_date", 1),
    "-startDate": ("start_date", -1),
}


def _check_dates(doc: Dict[str, Any]):
    errors = []
    if doc["end_date"] < doc["start_date"]:
        errors.append("end_date must not be before start_date")
    if doc["registration_deadline"] > doc["end_date"]:
        errors.append("registration_deadline must not be after end_date")
    if errors:
        raise ValidationError(errors)


class SessionService:
    """Organization-side session management."""

    def __init__(self, db, activity: ActivityLogger):
        self.db = db
        self.activity = activity

    async def create_session(self, organization: dict, data: Dict[str, Any]) -> dict:
        if organization.get("is_active") is False:
            raise ForbiddenError("Access denied. Organization account is closed.")

        session = Session(organization=organization["_id"], **data).to_mongo()
        session["current_applications"] = 0
        _check_dates(session)

        result = await self.db.sessions.insert_one(session)
        session["_id"] = result.inserted_id

        await self.activity.log(
            organization["_id"], ORGANIZATION, "SESSION_CREATED", "session", session["_id"],
            {"title": session["title"]},
        )
        logger.info("Organization %s created session %s", organization["_id"], session["_id"])
        return session

    async def get_owned_session(self, org_id: ObjectId, session_id: ObjectId, action: str = "manage") -> dict:
        session = await self.db.sessions.find_one({"_id": session_id})
        if not session:
            raise NotFoundError("Session not found")
        if session["organization"] != org_id:
            raise ForbiddenError(f"Access denied. You can only {action} your own sessions.")
        return session

    async def update_session(self, org_id: ObjectId, session_id: ObjectId, changes: Dict[str, Any]) -> dict:
        session = await self.get_owned_session(org_id, session_id, action="edit")

        if not changes:
            return session

        merged = {**session, **changes}
        _check_dates(merged)

        update = dict(changes)
        update["updated_at"] = utcnow()
        query = {"_id": session_id}
        if "capacity" in changes:
            # Never shrink below the applications already selected
            query["current_applications"] = {"$lte": changes["capacity"]}

        result = await self.db.sessions.update_one(query, {"$set": update})
        if result.matched_count == 0:
            if "capacity" not in changes:
                raise NotFoundError("Session not found")
            raise ConflictError(
                "Capacity cannot be lower than the number of approved applications."
            )

        await self.activity.log(
            org_id, ORGANIZATION, "SESSION_UPDATED", "session", session_id,
            {"changes": sorted(changes)},
        )
        return await self.db.sessions.find_one({"_id": session_id})

    async def delete_session(self, org_id: ObjectId, session_id: ObjectId) -> int:
        """Delete a session with its applications and wishlist entries.

        Returns the number of applications removed.
        """
        await self.get_owned_session(org_id, session_id, action="delete")

        await self.db.sessions.delete_one({"_id": session_id})
        removed = await self.db.applications.delete_many({"session": session_id})
        await self.db.wishlists.delete_many({"session": session_id})

        await self.activity.log(
            org_id, ORGANIZATION, "SESSION_DELETED", "session", session_id,
            {"applications_removed": removed.deleted_count},
        )
        return removed.deleted_count

    async def list_organization_sessions(
        self, org_id: ObjectId, sort: Optional[str] = None, limit: Optional[int] = None
    ) -> List[dict]:
        field, direction = SORT_FIELDS.get(sort or "-createdAt", SORT_FIELDS["-createdAt"])
        cursor = self.db.sessions.find({"organization": org_id}).sort(field, direction)
        if limit and limit > 0:
            cursor = cursor.limit(limit)
        return await cursor.to_list(None)

    async def calendar_sessions(self, user: dict) -> List[dict]:
        if user["role"] == JOB_SEEKER:
            approved = await self.db.applications.find(
                {"job_seeker": user["_id"], "status": SELECTED}, {"session": 1}
            ).to_list(None)
            sessions = await self.db.sessions.find({
                "_id": {"$in": [app["session"] for app in approved]},
                "status": {"$ne": "Cancelled"},
            }).to_list(None)
        else:
            sessions = await self.db.sessions.find({"organization": user["_id"]}).to_list(None)

        org_ids = list({s["organization"] for s in sessions})
        orgs = await self.db.users.find({"_id": {"$in": org_ids}}, {"company_info": 1}).to_list(None)
        names = {org["_id"]: display_name(org) for org in orgs}

        return [
            {
                "id": str(s["_id"]),
                "title": s["title"],
                "start": s["start_date"],
                "end": s["end_date"],
                "extended_props": {
                    "description": s.get("description"),
                    "location": s.get("location", ""),
                    "status": s.get("status"),
                    "is_private": s.get("is_private", False),
                    "organization_name": names.get(s["organization"], "Organization"),
                },
            }
            for s in sessions
        ]
