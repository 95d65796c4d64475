# ========================================
# onboard/schemas/application.py
# ========================================

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from onboard.schemas.status import to_external


# 1. Input: Create Application
class ApplicationCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")


# 2. Input: Update Status
class ApplicationStatusUpdate(BaseModel):
    status: str  # Pending, Shortlisted, Approved, Rejected


# 3. Output: Application
class ApplicationResponse(BaseModel):
    id: str
    job_seeker: str
    session: str
    status: str
    organization_name: Optional[str] = None
    date_applied: datetime
    status_updated_at: Optional[datetime] = None

    @field_validator("status")
    @classmethod
    def external_status(cls, value):
        return to_external(value)


class ApplicationResult(BaseModel):
    success: bool = True
    message: str
    data: ApplicationResponse


# 4. Output: Job seeker's own applications
class MyApplicationItem(BaseModel):
    id: str
    session: str
    session_title: str
    date_applied: datetime
    status: str
    organization_name: Optional[str] = None

    @field_validator("status")
    @classmethod
    def external_status(cls, value):
        return to_external(value)


# 5. Output: Applications received by an organization
class OrganizationApplicationItem(BaseModel):
    id: str
    session: str
    session_title: str
    date_applied: datetime
    status: str
    job_seeker: str
    job_seeker_name: str
    applicant_details: Dict[str, Any] = {}

    @field_validator("status")
    @classmethod
    def external_status(cls, value):
        return to_external(value)
