from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from onboard.utils.dates import utcnow
from .base import MongoBaseModel, PyObjectId

NotificationType = Literal["application", "status_change", "session_update", "reminder"]


class Notification(MongoBaseModel):
    user: PyObjectId
    type: NotificationType
    title: Optional[str] = None
    message: str
    session: Optional[PyObjectId] = None
    read: bool = False
    created_at: datetime = Field(default_factory=utcnow)
