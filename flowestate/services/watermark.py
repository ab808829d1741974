"""
Watermark asset and settings service.
Stores the agent's corner logo and transparent watermark image; compositing happens client-side.
"""

from typing import Dict
from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from flowestate.models.agent import Agent, WatermarkPosition, WatermarkSize
from flowestate.repositories.agent import AgentRepository
from flowestate.schemas.watermark import WatermarkSettingsUpdate
from flowestate.services.storage import StorageService, WATERMARKS_BUCKET
from flowestate.utils.exceptions import BadRequestError, UnsupportedFileTypeError
from flowestate.utils.file_utils import FileValidator
from flowestate.utils.slugs import now_millis

logger = logging.getLogger(__name__)

MIN_OPACITY, MAX_OPACITY = 0, 100
MIN_SCALE, MAX_SCALE = 30, 70


class WatermarkService:

    def __init__(self, db_session: AsyncSession, storage: StorageService = None):
        self.db = db_session
        self.storage = storage or StorageService()
        self.agent_repo = AgentRepository(db_session)

    async def _read(self, file: UploadFile) -> bytes:
        if file is None:
            raise BadRequestError("No file provided")
        content = await file.read()
        FileValidator.validate_file_size(len(content), FileValidator.LOGO_MAX_SIZE)
        return content

    def _remove(self, url: str) -> None:
        if url:
            self.storage.delete_urls(WATERMARKS_BUCKET, [url])

    async def upload_logo(self, agent: Agent, file: UploadFile) -> str:
        """
        Replace the corner logo.

        Raises:
            UnsupportedFileTypeError: If the file is not an image
            FileSizeExceededError: If the file exceeds 2 MB
        """
        content_type = file.content_type if file else None
        if file is not None and not (content_type or "").startswith("image/"):
            raise UnsupportedFileTypeError(content_type or "unknown", ["image/*"])
        content = await self._read(file)

        self._remove(agent.watermark_logo)
        extension = FileValidator.extension_for(file.filename, content_type, default="png")
        url = await self.storage.upload(WATERMARKS_BUCKET, f"{agent.id}/logo_{now_millis()}.{extension}", content)
        await self.agent_repo.update(agent.id, {"watermark_logo": url})

        logger.info(f"Agent {agent.email} uploaded a watermark logo")
        return url

    async def upload_transparent(self, agent: Agent, file: UploadFile) -> str:
        """
        Replace the transparent watermark image.

        Raises:
            UnsupportedFileTypeError: If the file is not a PNG
            FileSizeExceededError: If the file exceeds 2 MB
        """
        if file is not None and file.content_type != "image/png":
            raise UnsupportedFileTypeError(file.content_type or "unknown", ["image/png"])
        content = await self._read(file)

        self._remove(agent.watermark_image)
        url = await self.storage.upload(WATERMARKS_BUCKET, f"{agent.id}/logo_watermark_{now_millis()}.png", content)
        await self.agent_repo.update(agent.id, {"watermark_image": url})

        logger.info(f"Agent {agent.email} uploaded a transparent watermark")
        return url

    async def delete_logo(self, agent: Agent) -> None:
        self._remove(agent.watermark_logo)
        await self.agent_repo.update(agent.id, {"watermark_logo": None}, exclude_none=False)

    async def delete_transparent(self, agent: Agent) -> None:
        """Remove the watermark image and turn the watermark off."""
        self._remove(agent.watermark_image)
        await self.agent_repo.update(
            agent.id,
            {"watermark_image": None, "use_watermark": False},
            exclude_none=False
        )

    async def update_settings(self, agent: Agent, settings: WatermarkSettingsUpdate) -> Dict:
        """
        Update watermark preferences; omitted fields keep their value.

        Raises:
            BadRequestError: On an unknown position or size, or opacity/scale out of range
        """
        updates = {}
        if settings.position is not None:
            try:
                updates["watermark_position"] = WatermarkPosition(settings.position)
            except ValueError:
                raise BadRequestError("Invalid position")
        if settings.size is not None:
            try:
                updates["watermark_size"] = WatermarkSize(settings.size)
            except ValueError:
                raise BadRequestError("Invalid size")
        if settings.opacity is not None:
            if not MIN_OPACITY <= settings.opacity <= MAX_OPACITY:
                raise BadRequestError(f"Opacity must be between {MIN_OPACITY} and {MAX_OPACITY}")
            updates["watermark_opacity"] = settings.opacity
        if settings.scale is not None:
            if not MIN_SCALE <= settings.scale <= MAX_SCALE:
                raise BadRequestError(f"Scale must be between {MIN_SCALE} and {MAX_SCALE}")
            updates["watermark_scale"] = settings.scale
        if settings.use_corner_logo is not None:
            updates["use_corner_logo"] = settings.use_corner_logo
        if settings.use_watermark is not None:
            updates["use_watermark"] = settings.use_watermark

        updated = await self.agent_repo.update(agent.id, updates)
        return updated.watermark_settings()
