# ========================================
# onboard/schemas/session.py
# ========================================

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from onboard.models.session import session_is_open
from onboard.schemas.status import to_external
from onboard.utils.dates import to_naive_utc
from onboard.utils.ids import serialize_doc

SessionStatus = Literal["Active", "Completed", "Cancelled", "Closed"]


def _clean_tags(value):
    if value is None:
        return value
    if isinstance(value, str):
        value = value.split(",")
    # Tags are a set: trim, drop empties, keep first occurrence
    seen = []
    for tag in value:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


# 1. Input: Create Session
class SessionCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    start_date: datetime
    end_date: datetime
    registration_deadline: datetime
    capacity: int = Field(default=50, ge=1)
    location: str = ""
    tags: Union[List[str], str] = []
    is_private: bool = False
    status: SessionStatus = "Active"

    @field_validator("start_date", "end_date", "registration_deadline")
    @classmethod
    def normalize_dates(cls, value):
        return to_naive_utc(value)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, value):
        return _clean_tags(value)


# 2. Input: Update Session (partial)
class SessionUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    registration_deadline: Optional[datetime] = None
    capacity: Optional[int] = Field(default=None, ge=1)
    location: Optional[str] = None
    tags: Optional[Union[List[str], str]] = None
    is_private: Optional[bool] = None
    status: Optional[SessionStatus] = None

    @field_validator("start_date", "end_date", "registration_deadline")
    @classmethod
    def normalize_dates(cls, value):
        return to_naive_utc(value)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, value):
        return _clean_tags(value)


# 3. Output: Session
class ApplicantStatsResponse(BaseModel):
    pending: int = 0
    shortlisted: int = 0
    selected: int = 0
    rejected: int = 0


class SessionResponse(BaseModel):
    id: str
    title: str
    description: str
    start_date: datetime
    end_date: datetime
    registration_deadline: datetime
    organization: str
    status: str
    capacity: int
    current_applications: int = 0
    is_private: bool = False
    location: str = ""
    tags: List[str] = []
    applicant_stats: ApplicantStatsResponse = ApplicantStatsResponse()
    is_open: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# 4. Output: Session as seen by a viewer
class OrganizationInfo(BaseModel):
    id: str
    company_name: str
    logo_url: str = ""


class SessionViewResponse(SessionResponse):
    organization_info: Optional[OrganizationInfo] = None
    has_applied: bool = False
    application_status: Optional[str] = None
    is_in_wishlist: bool = False

    @field_validator("application_status")
    @classmethod
    def external_status(cls, value):
        return to_external(value)


class Pagination(BaseModel):
    """Rendered as currentPage / totalPages / totalSessions / hasMore."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current_page: int
    total_pages: int
    total_sessions: int
    has_more: bool


class DiscoverResponse(BaseModel):
    success: bool = True
    data: List[SessionViewResponse]
    pagination: Pagination


class CalendarEvent(BaseModel):
    id: str
    title: str
    start: datetime
    end: datetime
    extended_props: Dict[str, Any] = {}


def present_session(session: dict) -> dict:
    """Stored session -> response payload, with the derived ``is_open``."""
    data = serialize_doc(session)
    data["is_open"] = session_is_open(session)
    return data
