from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel


class ActivityLogResponse(BaseModel):
    id: str
    action: str
    actor_role: str
    target_type: str
    target_id: str
    meta: Dict[str, Any] = {}
    created_at: datetime
