"""
Agent card repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from flowestate.repositories.base import BaseRepository
from flowestate.models.agent_card import AgentCard
from typing import Optional
import uuid


class AgentCardRepository(BaseRepository[AgentCard]):

    def __init__(self, db: AsyncSession):
        super().__init__(AgentCard, db)

    async def get_by_agent(self, agent_id: uuid.UUID) -> Optional[AgentCard]:
        return await self.get_by_field("agent_id", agent_id)
