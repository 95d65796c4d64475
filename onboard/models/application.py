from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from onboard.utils.dates import utcnow
from .base import MongoBaseModel, PyObjectId

PENDING = "Pending"
SHORTLISTED = "Shortlisted"
SELECTED = "Selected"
REJECTED = "Rejected"

APPLICATION_STATUSES = (PENDING, SHORTLISTED, SELECTED, REJECTED)


class Application(MongoBaseModel):
    job_seeker: PyObjectId
    session: PyObjectId
    status: Literal["Pending", "Shortlisted", "Selected", "Rejected"] = PENDING
    organization_name: str
    date_applied: datetime = Field(default_factory=utcnow)
    status_updated_at: Optional[datetime] = None
    updated_by: Optional[PyObjectId] = None


def stats_key(status: str) -> str:
    """Dotted path of the applicant_stats counter for ``status``."""
    return f"applicant_stats.{status.lower()}"
