from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field

from taskboard.models.user import Theme

# Printable ASCII without spaces
PASSWORD_PATTERN = r"^[!-~]+$"


class UserSummary(BaseModel):
    """Display-safe view of a user"""
    id: int
    name: str
    avatar_url: str

    class Config:
        from_attributes = True


class UserResponse(UserSummary):
    email: EmailStr
    theme: Theme


class ThemeUpdate(BaseModel):
    theme: Theme


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=32)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8, max_length=64, pattern=PASSWORD_PATTERN)


class AvatarResponse(BaseModel):
    avatar_url: str


class HelpRequest(BaseModel):
    email: EmailStr
    message: str = Field(..., min_length=10)


class UserIdsRequest(BaseModel):
    user_ids: List[int]
