from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from onboard.utils.dates import utcnow
from .base import MongoBaseModel, PyObjectId


class ApplicantStats(BaseModel):
    pending: int = 0
    shortlisted: int = 0
    selected: int = 0
    rejected: int = 0


class Session(MongoBaseModel):
    title: str
    description: str
    start_date: datetime
    end_date: datetime
    registration_deadline: datetime
    organization: PyObjectId
    status: Literal["Active", "Completed", "Cancelled", "Closed"] = "Active"
    capacity: int = Field(default=50, ge=1)
    current_applications: int = Field(default=0, ge=0)
    is_private: bool = False
    location: str = ""
    tags: List[str] = []
    applicant_stats: ApplicantStats = Field(default_factory=ApplicantStats)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


def session_is_open(session: dict, now: Optional[datetime] = None) -> bool:
    now = now or utcnow()
    return (
        session.get("status") == "Active"
        and session["registration_deadline"] >= now
        and session.get("current_applications", 0) < session["capacity"]
    )
