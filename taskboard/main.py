from contextlib import asynccontextmanager
from typing import AsyncGenerator
import os
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from alembic.config import Config
from alembic import command
from starlette.concurrency import run_in_threadpool

from taskboard.db import init_db
from taskboard.core import get_settings
from taskboard.core.error_handlers import register_exception_handlers
from taskboard.api.v1 import api_router
from taskboard.core.middleware import RequestLoggingMiddleware
from taskboard.logs.server_log import api_logger
from taskboard.logs import debug_logger

# Get application settings
settings = get_settings()


def run_migrations() -> None:
    # Alembic config file lives next to the package
    alembic_cfg = Config(os.path.join(Path(__file__).parent.parent, "alembic.ini"))
    command.upgrade(alembic_cfg, "head")


# Lifespan event handler
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    if settings.RUN_MIGRATIONS:
        try:
            # env.py drives its own event loop, keep it off ours
            await run_in_threadpool(run_migrations)
            await init_db()
            api_logger.info("Database migrations applied and initialized successfully")
        except Exception:
            debug_logger.log_exception("Error applying migrations")
            raise

    yield


# Initialize FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="API for TaskPro boards with columns, cards and shared access",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
    max_age=3600,
)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)

# Include API router
app.include_router(api_router)

# Uploaded avatars
Path(settings.MEDIA_DIR).mkdir(parents=True, exist_ok=True)
app.mount("/media", StaticFiles(directory=settings.MEDIA_DIR), name="media")


@app.get("/")
async def root(request: Request):
    """Health check endpoint"""
    api_logger.info(f"Received health check request: {request.method} {request.url}")
    return {"message": f"{settings.PROJECT_NAME} is running"}


if __name__ == "__main__":
    import uvicorn

    api_logger.info("Server starting on http://0.0.0.0:8000")

    uvicorn.run(
        "taskboard.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info"
    )
