from datetime import datetime
from typing import Any, Dict, Literal

from pydantic import Field

from onboard.utils.dates import utcnow
from .base import MongoBaseModel, PyObjectId


class ActivityLog(MongoBaseModel):
    user: PyObjectId
    action: str
    actor_role: Literal["job_seeker", "organization", "system"]
    target_type: str
    target_id: PyObjectId
    meta: Dict[str, Any] = {}
    created_at: datetime = Field(default_factory=utcnow)
