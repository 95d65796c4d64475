from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field

from onboard.models.user import CompanyInfo, PersonalInfo


# 1. For Registration (Input)
class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    role: Literal["job_seeker", "organization"]
    personal_info: Optional[PersonalInfo] = None
    company_info: Optional[CompanyInfo] = None


# 2. For Login (Input)
class UserLogin(BaseModel):
    email: str
    password: str


# 3. For Responses (Output)
class UserResponse(BaseModel):
    id: str
    email: EmailStr
    role: str
    is_active: bool = True
    personal_info: Optional[PersonalInfo] = None
    company_info: Optional[CompanyInfo] = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str
