from datetime import datetime

from pydantic import Field

from onboard.utils.dates import utcnow
from .base import MongoBaseModel, PyObjectId


class Wishlist(MongoBaseModel):
    job_seeker: PyObjectId
    session: PyObjectId
    created_at: datetime = Field(default_factory=utcnow)
