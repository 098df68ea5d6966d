from typing import List
from fastapi import APIRouter, BackgroundTasks, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core.exceptions import NotFoundError
from taskboard.db.database import get_async_session
from taskboard.schemas.auth import MessageResponse
from taskboard.schemas.user import (
    UserResponse,
    UserSummary,
    ThemeUpdate,
    ProfileUpdate,
    HelpRequest,
    UserIdsRequest,
)
from taskboard.services.user_service import UserService
from taskboard.services.avatar_service import AvatarService
from taskboard.services.mail_service import queue_help_email
from taskboard.api.dependencies.auth import get_current_user
from taskboard.models.user import User

# Create router
router = APIRouter(prefix="/users", tags=["users"])


@router.get("/current", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """
    Get current user information
    """
    return current_user


@router.patch("/theme", response_model=UserResponse)
async def update_theme(
    theme_data: ThemeUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user)
):
    """
    Switch the interface theme of the current user
    """
    return await UserService.update_theme(db, current_user.id, theme_data.theme)


@router.patch("/avatar", response_model=UserResponse)
async def update_avatar(
    avatar: UploadFile = File(...),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user)
):
    """
    Upload a new avatar for the current user
    """
    avatar_url = await AvatarService.store(avatar, current_user.id)
    return await UserService.update_avatar(db, current_user.id, avatar_url)


@router.patch("/profile", response_model=UserResponse)
async def update_profile(
    profile_data: ProfileUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user)
):
    """
    Update name, email or password of the current user
    """
    return await UserService.update_profile(
        db,
        current_user.id,
        name=profile_data.name,
        email=profile_data.email,
        password=profile_data.password,
    )


@router.post("/help-request", response_model=MessageResponse, status_code=status.HTTP_202_ACCEPTED)
async def help_request(
    help_data: HelpRequest,
    background_tasks: BackgroundTasks
):
    """
    Send a message to the support team
    """
    queue_help_email(background_tasks, help_data.email, help_data.message)
    return {"message": "Help request received"}


@router.get("/details-by-email/{email}", response_model=UserSummary)
async def get_user_by_email(
    email: str,
    db: AsyncSession = Depends(get_async_session),
    _: User = Depends(get_current_user)
):
    """
    Look up a user's public details, used to find someone to invite
    """
    user = await UserService.get_by_email(db, email)
    if not user:
        raise NotFoundError("User not found")
    return user


@router.post("/get-users-by-ids", response_model=List[UserSummary])
async def get_users_by_ids(
    ids_data: UserIdsRequest,
    db: AsyncSession = Depends(get_async_session),
    _: User = Depends(get_current_user)
):
    """
    Resolve collaborator ids to public details, in the order requested
    """
    return await UserService.get_many(db, ids_data.user_ids)
