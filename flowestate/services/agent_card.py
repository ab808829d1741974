"""
Agent business card service.
"""

from typing import Any, Dict, Optional, Tuple
from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from flowestate.models.agent import Agent
from flowestate.models.agent_card import AgentCard, MAX_BIO_LENGTH
from flowestate.repositories.agent import AgentRepository
from flowestate.repositories.agent_card import AgentCardRepository
from flowestate.schemas.agent_card import AgentCardUpdate
from flowestate.services.storage import StorageService, AGENT_CARDS_BUCKET
from flowestate.utils.exceptions import BadRequestError, NotFoundError
from flowestate.utils.file_utils import FileValidator
from flowestate.utils.slugs import now_millis

logger = logging.getLogger(__name__)

PHOTO_KINDS = ("profile", "cover")
PHOTO_TYPES = ["image/jpeg", "image/jpg", "image/png", "image/webp"]


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


class AgentCardService:

    def __init__(self, db_session: AsyncSession, storage: Optional[StorageService] = None):
        self.db = db_session
        self.storage = storage or StorageService()
        self.card_repo = AgentCardRepository(db_session)
        self.agent_repo = AgentRepository(db_session)

    async def get_own(self, agent: Agent) -> Tuple[Optional[AgentCard], Agent]:
        return await self.card_repo.get_by_agent(agent.id), agent

    async def get_public(self, username: str) -> Tuple[Optional[AgentCard], Agent]:
        """
        Card of an agent by public username.

        Raises:
            NotFoundError: If no agent has the username
        """
        agent = await self.agent_repo.get_by_username(username.lower())
        if not agent:
            raise NotFoundError("Agent", username)
        return await self.card_repo.get_by_agent(agent.id), agent

    async def update(self, agent: Agent, data: AgentCardUpdate) -> AgentCard:
        """
        Create or replace the agent's card.

        Raises:
            BadRequestError: If display_name is blank or a bio is too long
        """
        if not _clean(data.display_name):
            raise BadRequestError("Display name is required")
        if data.bio and len(data.bio) > MAX_BIO_LENGTH:
            raise BadRequestError(f"Bio cannot exceed {MAX_BIO_LENGTH} characters")
        if data.bio_en and len(data.bio_en) > MAX_BIO_LENGTH:
            raise BadRequestError(f"English bio cannot exceed {MAX_BIO_LENGTH} characters")

        card_data: Dict[str, Any] = {
            field: _clean(value) for field, value in data.model_dump().items()
        }

        existing = await self.card_repo.get_by_agent(agent.id)
        if existing:
            card = await self.card_repo.update(existing.id, card_data, exclude_none=False)
        else:
            card = await self.card_repo.create({"agent_id": agent.id, **card_data})

        logger.info(f"Agent {agent.email} saved their business card")
        return card

    async def upload_photo(self, agent: Agent, kind: str, file: UploadFile) -> str:
        """
        Store the card's profile or cover photo.

        Args:
            agent: Card owner
            kind: "profile" or "cover"
            file: Uploaded image

        Returns:
            Public URL with a cache-busting suffix

        Raises:
            BadRequestError: If the file is missing, the kind is unknown or the agent has no username
            UnsupportedFileTypeError: If the file is not JPEG, PNG or WebP
            FileSizeExceededError: If the file exceeds 5 MB
        """
        if file is None:
            raise BadRequestError("No file provided")
        if kind not in PHOTO_KINDS:
            raise BadRequestError('Invalid type, must be "profile" or "cover"')
        if not agent.username:
            raise BadRequestError("Set a username before uploading card photos")

        FileValidator.validate_mime_type(file.content_type, PHOTO_TYPES)
        content = await file.read()
        FileValidator.validate_file_size(len(content), FileValidator.PHOTO_MAX_SIZE)

        url = await self.storage.upload(AGENT_CARDS_BUCKET, f"{agent.username}/{kind}.jpg", content)
        return f"{url}?t={now_millis()}"
