"""
Custom field repository scoped to an agent and a (property_type, listing_type) combination.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from flowestate.repositories.base import BaseRepository
from flowestate.models.custom_field import CustomField
from flowestate.models.property import PropertyType, ListingType
from typing import Optional, List
import uuid
import logging

logger = logging.getLogger(__name__)


class CustomFieldRepository(BaseRepository[CustomField]):
    """Repository for agent-defined listing attributes."""

    def __init__(self, db: AsyncSession):
        super().__init__(CustomField, db)

    async def get_owned(self, field_id: uuid.UUID, agent_id: uuid.UUID) -> Optional[CustomField]:
        try:
            query = select(CustomField).where(CustomField.id == field_id, CustomField.agent_id == agent_id)
            result = await self.db.execute(query)
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get custom field {field_id} for agent {agent_id}: {e}")
            raise

    async def list_for_agent(self, agent_id: uuid.UUID) -> List[CustomField]:
        """
        Get every field of an agent grouped by combination.

        Args:
            agent_id: UUID of the agent

        Returns:
            Fields ordered by property type, listing type and display order
        """
        return await self.get_multi(
            limit=None,
            filters={"agent_id": agent_id},
            order_by=["property_type", "listing_type", "display_order"]
        )

    async def list_for_combination(
        self,
        agent_id: uuid.UUID,
        property_type: PropertyType,
        listing_type: ListingType
    ) -> List[CustomField]:
        return await self.get_multi(
            limit=None,
            filters={"agent_id": agent_id, "property_type": property_type, "listing_type": listing_type},
            order_by=["display_order"]
        )

    async def count_for_combination(
        self,
        agent_id: uuid.UUID,
        property_type: PropertyType,
        listing_type: ListingType
    ) -> int:
        return await self.count(
            {"agent_id": agent_id, "property_type": property_type, "listing_type": listing_type}
        )

    async def name_exists(
        self,
        agent_id: uuid.UUID,
        property_type: PropertyType,
        listing_type: ListingType,
        field_name: str,
        exclude_id: Optional[uuid.UUID] = None
    ) -> bool:
        """
        Check whether a combination already has a field with this name.

        Args:
            agent_id: UUID of the agent
            property_type: Combination property type
            listing_type: Combination listing type
            field_name: Trimmed field name
            exclude_id: Field to ignore (the one being renamed)

        Returns:
            True if another field in the combination has the same name
        """
        try:
            query = select(func.count(CustomField.id)).where(
                CustomField.agent_id == agent_id,
                CustomField.property_type == property_type,
                CustomField.listing_type == listing_type,
                CustomField.field_name == field_name,
            )
            if exclude_id:
                query = query.where(CustomField.id != exclude_id)
            result = await self.db.execute(query)
            return (result.scalar() or 0) > 0
        except Exception as e:
            logger.error(f"Failed to check custom field name '{field_name}': {e}")
            raise
