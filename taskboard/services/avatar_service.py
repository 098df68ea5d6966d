import shutil
import uuid
from pathlib import Path

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from taskboard.core import get_settings
from taskboard.core.exceptions import ValidationError
from taskboard.logs import debug_logger

settings = get_settings()

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}
MEDIA_URL_PREFIX = "/media"


class AvatarService:
    """Stores uploaded avatars

    The upload is first written to a temporary file, then transferred to
    permanent storage. The temporary file is removed whatever the outcome.
    """

    @staticmethod
    def _write_temp(upload: UploadFile, temp_path: Path) -> None:
        temp_path.parent.mkdir(parents=True, exist_ok=True)
        upload.file.seek(0)
        with temp_path.open("wb") as buffer:
            shutil.copyfileobj(upload.file, buffer)

    @staticmethod
    def _transfer(temp_path: Path, target_path: Path) -> None:
        target_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(temp_path, target_path)

    @staticmethod
    def _release(temp_path: Path) -> None:
        temp_path.unlink(missing_ok=True)

    @staticmethod
    async def store(upload: UploadFile, user_id: int) -> str:
        """Persist an avatar and return its public URL"""
        extension = ALLOWED_CONTENT_TYPES.get(upload.content_type or "")
        if not extension:
            raise ValidationError("avatar: Only JPEG, PNG, GIF or WEBP images are allowed")

        file_name = f"avatar-{user_id}-{uuid.uuid4().hex}{extension}"
        temp_path = settings.upload_tmp_dir / file_name
        target_path = settings.avatar_dir / file_name

        try:
            await run_in_threadpool(AvatarService._write_temp, upload, temp_path)
            await run_in_threadpool(AvatarService._transfer, temp_path, target_path)
        finally:
            await run_in_threadpool(AvatarService._release, temp_path)
            debug_logger.debug(f"Released temporary upload {temp_path}")

        return f"{MEDIA_URL_PREFIX}/avatars/{file_name}"
