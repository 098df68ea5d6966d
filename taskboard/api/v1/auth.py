from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core import get_settings
from taskboard.core.exceptions import AuthorizationError
from taskboard.db.database import get_async_session
from taskboard.schemas.auth import (
    UserCreate,
    UserLogin,
    TokenResponse,
    AuthResponse,
    RefreshTokenRequest,
    MessageResponse,
)
from taskboard.services.security_service import SecurityService
from taskboard.services.user_service import UserService
from taskboard.services.oauth_service import OAuthService
from taskboard.logs import debug_logger

settings = get_settings()

# Create router
router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_async_session)
):
    """
    Register a new user and open their first session
    """
    user = await UserService.create(
        db,
        name=user_data.name,
        email=user_data.email,
        password=user_data.password,
    )

    tokens = await SecurityService.start_session(db, user)
    return {**tokens, "user": user}


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_async_session)
):
    """
    Login with email and password

    Unknown email and wrong password get the same answer.
    """
    user = await SecurityService.authenticate_user(
        db, credentials.email, credentials.password
    )

    if not user:
        debug_logger.warning(f"Failed login attempt for {credentials.email}")
        raise AuthorizationError("Invalid email or password")

    tokens = await SecurityService.start_session(db, user)
    return {**tokens, "user": user}


@router.post("/refresh-token", response_model=TokenResponse)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    db: AsyncSession = Depends(get_async_session)
):
    """
    Issue a new token pair for the session of a refresh token
    """
    tokens = await SecurityService.refresh_tokens(db, refresh_data.refresh_token)

    if not tokens:
        raise AuthorizationError("Invalid refresh token")

    return tokens


@router.post("/logout", response_model=MessageResponse)
async def logout(
    refresh_data: RefreshTokenRequest,
    db: AsyncSession = Depends(get_async_session)
):
    """
    Close the session of a refresh token; its tokens stop working
    """
    closed = await SecurityService.logout(db, refresh_data.refresh_token)

    if not closed:
        raise AuthorizationError("Invalid refresh token")

    return {"message": "Logout successful"}


@router.get("/google")
async def google_auth():
    """Redirect to Google's consent screen"""
    return RedirectResponse(OAuthService.build_google_auth_url())


@router.get("/google-redirect")
async def google_redirect(
    code: Optional[str] = None,
    db: AsyncSession = Depends(get_async_session)
):
    """
    Finish Google sign-in and hand the tokens to the frontend
    """
    profile = await OAuthService.exchange_code_for_profile(code)

    user = await UserService.find_or_create_google_user(
        db,
        email=profile.email,
        name=profile.name,
        avatar_url=profile.picture,
        google_id=profile.google_id,
    )
    tokens = await SecurityService.start_session(db, user)
    payload = SecurityService.verify_token(tokens["access_token"])

    params = urlencode({
        "token": tokens["access_token"],
        "refreshToken": tokens["refresh_token"],
        "sid": payload["sid"],
    })
    return RedirectResponse(f"{settings.FRONTEND_URL}/auth/callback?{params}")
