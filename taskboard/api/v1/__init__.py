from fastapi import APIRouter
from taskboard.api.v1.auth import router as auth_router
from taskboard.api.v1.users import router as users_router
from taskboard.api.v1.boards import router as boards_router
from taskboard.api.v1.columns import router as columns_router
from taskboard.api.v1.cards import router as cards_router
from taskboard.api.v1.invitations import router as invitations_router

# Create main API router
api_router = APIRouter(prefix="/api")

# Include routers
api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(boards_router)
api_router.include_router(columns_router)
api_router.include_router(cards_router)
api_router.include_router(invitations_router)
