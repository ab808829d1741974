"""
Agent repository for account lookups and quota counter updates.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from flowestate.repositories.base import BaseRepository
from flowestate.models.agent import Agent
from typing import Optional
import uuid
import logging

logger = logging.getLogger(__name__)


class AgentRepository(BaseRepository[Agent]):
    """Repository for agent accounts."""

    def __init__(self, db: AsyncSession):
        super().__init__(Agent, db)

    async def get_by_email(self, email: str) -> Optional[Agent]:
        """
        Get agent by email address (case-insensitive).

        Args:
            email: Email address to search for

        Returns:
            Agent if found, None otherwise
        """
        try:
            query = select(Agent).where(func.lower(Agent.email) == email.lower())
            result = await self.db.execute(query)
            agent = result.scalar_one_or_none()
            logger.debug(f"Agent lookup by email {email}: {'found' if agent else 'not found'}")
            return agent
        except Exception as e:
            logger.error(f"Failed to get agent by email {email}: {e}")
            raise

    async def get_by_username(self, username: str) -> Optional[Agent]:
        return await self.get_by_field("username", username)

    async def get_by_subscription_id(self, subscription_id: str) -> Optional[Agent]:
        return await self.get_by_field("paypal_subscription_id", subscription_id)

    async def username_taken(self, username: str, exclude_id: Optional[uuid.UUID] = None) -> bool:
        """
        Check whether another agent already uses a username.

        Args:
            username: Username to check
            exclude_id: Agent to ignore (the one renaming itself)

        Returns:
            True if the username belongs to a different agent
        """
        try:
            query = select(func.count(Agent.id)).where(Agent.username == username)
            if exclude_id:
                query = query.where(Agent.id != exclude_id)
            result = await self.db.execute(query)
            return (result.scalar() or 0) > 0
        except Exception as e:
            logger.error(f"Failed to check username {username}: {e}")
            raise

    async def increment_properties_this_month(self, agent_id: uuid.UUID) -> None:
        """Add one to the pro plan monthly counter."""
        try:
            stmt = (
                update(Agent)
                .where(Agent.id == agent_id)
                .values(properties_this_month=Agent.properties_this_month + 1)
                .execution_options(synchronize_session=False)
            )
            await self.db.execute(stmt)
            await self.db.commit()
            logger.debug(f"Incremented monthly property counter for agent {agent_id}")
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to increment property counter for agent {agent_id}: {e}")
            raise
