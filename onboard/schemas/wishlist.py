from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from onboard.schemas.session import SessionViewResponse


class WishlistCreate(BaseModel):
    """Schema for bookmarking a session"""
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")


class WishlistItemResponse(BaseModel):
    id: str
    created_at: datetime
    session: SessionViewResponse
