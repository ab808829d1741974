"""
Upload token repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from flowestate.repositories.base import BaseRepository
from flowestate.models.upload_token import UploadToken
from datetime import datetime
from typing import Optional, List
import uuid
import logging

logger = logging.getLogger(__name__)


class UploadTokenRepository(BaseRepository[UploadToken]):
    """Repository for upload capability tokens."""

    def __init__(self, db: AsyncSession):
        super().__init__(UploadToken, db)

    async def get_by_token(self, token: str) -> Optional[UploadToken]:
        return await self.get_by_field("token", token)

    async def list_usable(self, agent_id: uuid.UUID, now: datetime) -> List[UploadToken]:
        """
        Get an agent's active, unexpired tokens, newest first.

        Args:
            agent_id: UUID of the agent
            now: Reference time for expiry

        Returns:
            List of tokens
        """
        try:
            query = (
                select(UploadToken)
                .where(
                    UploadToken.agent_id == agent_id,
                    UploadToken.is_active.is_(True),
                    UploadToken.expires_at > now,
                )
                .order_by(UploadToken.created_at.desc())
            )
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to list upload tokens for agent {agent_id}: {e}")
            raise

    async def deactivate(self, token_id: uuid.UUID, agent_id: uuid.UUID) -> bool:
        """
        Revoke a token that belongs to the agent.

        Returns:
            True if a token was revoked
        """
        try:
            stmt = (
                update(UploadToken)
                .where(UploadToken.id == token_id, UploadToken.agent_id == agent_id)
                .values(is_active=False)
            )
            result = await self.db.execute(stmt)
            await self.db.commit()
            return result.rowcount > 0
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to revoke upload token {token_id}: {e}")
            raise

    async def increment_used(self, token_id: uuid.UUID) -> None:
        try:
            stmt = (
                update(UploadToken)
                .where(UploadToken.id == token_id)
                .values(used_count=UploadToken.used_count + 1)
                .execution_options(synchronize_session=False)
            )
            await self.db.execute(stmt)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to record use of upload token {token_id}: {e}")
            raise
