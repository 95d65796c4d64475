from typing import List

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from onboard.errors import ConflictError, NotFoundError
from onboard.models.wishlist import Wishlist


class WishlistService:
    """Session bookmarks. Touches no counters."""

    def __init__(self, db):
        self.db = db

    async def add(self, job_seeker_id: ObjectId, session_id: ObjectId) -> dict:
        session = await self.db.sessions.find_one({"_id": session_id})
        if not session:
            raise NotFoundError("Session not found")

        item = Wishlist(job_seeker=job_seeker_id, session=session_id).to_mongo()
        try:
            result = await self.db.wishlists.insert_one(item)
        except DuplicateKeyError:
            raise ConflictError("Session is already in your wishlist.")
        item["_id"] = result.inserted_id
        item["session_doc"] = session
        return item

    async def remove(self, job_seeker_id: ObjectId, session_id: ObjectId):
        result = await self.db.wishlists.delete_one({"job_seeker": job_seeker_id, "session": session_id})
        if result.deleted_count == 0:
            raise NotFoundError("Session not found in wishlist")

    async def list_items(self, job_seeker_id: ObjectId) -> List[dict]:
        items = await self.db.wishlists.find({"job_seeker": job_seeker_id}).sort(
            "created_at", -1
        ).to_list(None)

        session_ids = [item["session"] for item in items]
        sessions = await self.db.sessions.find({"_id": {"$in": session_ids}}).to_list(None)
        by_id = {s["_id"]: s for s in sessions}

        # Skip bookmarks whose session has since been deleted
        result = []
        for item in items:
            session = by_id.get(item["session"])
            if session:
                item["session_doc"] = session
                result.append(item)
        return result
