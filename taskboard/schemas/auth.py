from pydantic import BaseModel, EmailStr, Field

from taskboard.schemas.user import UserResponse, PASSWORD_PATTERN


class UserCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=32)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=64, pattern=PASSWORD_PATTERN)


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthResponse(TokenResponse):
    user: UserResponse


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class MessageResponse(BaseModel):
    message: str
