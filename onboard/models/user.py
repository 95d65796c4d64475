from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field

from onboard.utils.dates import utcnow
from .base import MongoBaseModel

JOB_SEEKER = "job_seeker"
ORGANIZATION = "organization"


class PersonalInfo(BaseModel):
    full_name: Optional[str] = None
    phone_number: Optional[str] = None
    bio: Optional[str] = None
    skills: List[str] = []


class CompanyInfo(BaseModel):
    company_name: Optional[str] = None
    industry: Optional[str] = None
    logo_url: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None


class User(MongoBaseModel):
    email: EmailStr
    password: str
    role: Literal["job_seeker", "organization"]
    personal_info: Optional[PersonalInfo] = None
    company_info: Optional[CompanyInfo] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)


def display_name(user: Optional[dict], default: str = "Organization") -> str:
    """Company name for organizations, full name or email for job seekers."""
    if not user:
        return default
    company = (user.get("company_info") or {}).get("company_name")
    if company:
        return company
    person = (user.get("personal_info") or {}).get("full_name")
    return person or user.get("email") or default
