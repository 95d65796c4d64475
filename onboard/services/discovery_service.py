import math
import re
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from bson import ObjectId

from onboard.errors import NotFoundError
from onboard.models.user import JOB_SEEKER
from onboard.services.session_service import SORT_FIELDS
from onboard.utils.dates import to_naive_utc, utcnow

DEFAULT_SORT = "-createdAt"


def split_tags(tags) -> List[str]:
    if not tags:
        return []
    if isinstance(tags, str):
        tags = tags.split(",")
    return [t.strip() for t in tags if t and t.strip()]


class DiscoveryService:
    """Viewer-aware session listings for job seekers.

    Private, inactive and past-deadline sessions never appear in discovery.
    """

    def __init__(self, db, page_size: int = 12):
        self.db = db
        self.page_size = page_size

    def build_query(
        self,
        search: Optional[str] = None,
        tags=None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        location: Optional[str] = None,
    ) -> dict:
        query = {
            "is_private": False,
            "status": "Active",
            "registration_deadline": {"$gte": utcnow()},
        }

        if search:
            pattern = re.escape(search.strip())
            query["$or"] = [
                {"title": {"$regex": pattern, "$options": "i"}},
                {"description": {"$regex": pattern, "$options": "i"}},
                {"tags": {"$regex": pattern, "$options": "i"}},
            ]

        tag_list = split_tags(tags)
        if tag_list:
            query["tags"] = {"$in": tag_list}

        date_range = {}
        if start_date:
            date_range["$gte"] = to_naive_utc(start_date)
        if end_date:
            date_range["$lte"] = to_naive_utc(end_date)
        if date_range:
            query["start_date"] = date_range

        if location:
            query["location"] = {"$regex": re.escape(location.strip()), "$options": "i"}

        return query

    async def discover_sessions(
        self,
        viewer: Optional[dict] = None,
        search: Optional[str] = None,
        tags=None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        location: Optional[str] = None,
        sort: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> dict:
        page = max(page or 1, 1)
        limit = limit if limit and limit > 0 else self.page_size
        field, direction = SORT_FIELDS.get(sort or DEFAULT_SORT, SORT_FIELDS[DEFAULT_SORT])

        query = self.build_query(search, tags, start_date, end_date, location)
        total = await self.db.sessions.count_documents(query)

        sessions = await self.db.sessions.find(query).sort(
            [(field, direction), ("_id", direction)]
        ).skip((page - 1) * limit).limit(limit).to_list(limit)

        await self.annotate(sessions, viewer)

        return {
            "data": sessions,
            "pagination": {
                "current_page": page,
                "total_pages": math.ceil(total / limit),
                "total_sessions": total,
                "has_more": page * limit < total,
            },
        }

    async def get_session_details(self, session_id: ObjectId, viewer: Optional[dict] = None) -> dict:
        session = await self.db.sessions.find_one({"_id": session_id})
        if not session:
            raise NotFoundError("Session not found")
        await self.annotate([session], viewer)
        return session

    async def annotate(self, sessions: List[dict], viewer: Optional[dict]):
        """Attach organization info and the viewer's apply/wishlist state in place."""
        organizations = await self._organizations(s["organization"] for s in sessions)
        applied: Dict[ObjectId, str] = {}
        wished = set()

        if viewer and viewer.get("role") == JOB_SEEKER and sessions:
            session_ids = [s["_id"] for s in sessions]
            applications = await self.db.applications.find(
                {"job_seeker": viewer["_id"], "session": {"$in": session_ids}},
                {"session": 1, "status": 1},
            ).to_list(None)
            applied = {app["session"]: app["status"] for app in applications}

            wishlist = await self.db.wishlists.find(
                {"job_seeker": viewer["_id"], "session": {"$in": session_ids}},
                {"session": 1},
            ).to_list(None)
            wished = {item["session"] for item in wishlist}

        for session in sessions:
            org = organizations.get(session["organization"]) or {}
            company = org.get("company_info") or {}
            session["organization_info"] = {
                "id": str(session["organization"]),
                "company_name": company.get("company_name") or "Organization",
                "logo_url": company.get("logo_url") or "",
            }
            session["has_applied"] = session["_id"] in applied
            session["application_status"] = applied.get(session["_id"])
            session["is_in_wishlist"] = session["_id"] in wished

    async def _organizations(self, org_ids: Iterable[ObjectId]) -> Dict[ObjectId, dict]:
        ids = list(set(org_ids))
        if not ids:
            return {}
        orgs = await self.db.users.find(
            {"_id": {"$in": ids}}, {"company_info": 1, "email": 1}
        ).to_list(None)
        return {org["_id"]: org for org in orgs}
