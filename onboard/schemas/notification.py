from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: str
    type: str
    title: Optional[str] = None
    message: str
    session: Optional[str] = None
    read: bool = False
    created_at: datetime


class NotificationPage(BaseModel):
    notifications: List[NotificationResponse]
    total: int
    unread_count: int
    page: int
    total_pages: int
