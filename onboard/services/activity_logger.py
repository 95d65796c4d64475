import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo.errors import PyMongoError

from onboard.models.activity_log import ActivityLog

logger = logging.getLogger(__name__)


class ActivityLogger:
    """Append-only audit trail of user actions."""

    def __init__(self, db):
        self.db = db

    async def log(
        self,
        user_id: ObjectId,
        actor_role: str,
        action: str,
        target_type: str,
        target_id: ObjectId,
        meta: Optional[Dict[str, Any]] = None,
    ):
        entry = ActivityLog(
            user=user_id,
            actor_role=actor_role,
            action=action,
            target_type=target_type,
            target_id=target_id,
            meta=meta or {},
        )
        try:
            await self.db.activity_logs.insert_one(entry.to_mongo())
        except PyMongoError:
            # audit failures are logged, not raised
            logger.exception("Failed to log activity %s for user %s", action, user_id)

    async def recent(self, user_id: ObjectId, limit: int = 100) -> List[dict]:
        cursor = self.db.activity_logs.find({"user": user_id}).sort("created_at", -1).limit(limit)
        return await cursor.to_list(limit)
