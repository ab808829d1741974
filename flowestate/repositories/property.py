"""
Property repository for listing lookups, slug probing and view counting.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from flowestate.repositories.base import BaseRepository
from flowestate.models.property import Property, PropertyStatus
from typing import Optional, List, Sequence
import uuid
import logging

logger = logging.getLogger(__name__)


class PropertyRepository(BaseRepository[Property]):
    """
    Repository for property listings.
    Ownership filters are applied here so services never load another agent's rows by accident.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)

    async def get_by_slug(self, slug: str) -> Optional[Property]:
        return await self.get_by_field("slug", slug)

    async def get_owned(self, property_id: uuid.UUID, agent_id: uuid.UUID) -> Optional[Property]:
        """
        Get a property only if it belongs to the agent.

        Args:
            property_id: UUID of the property
            agent_id: UUID of the expected owner

        Returns:
            Property if found and owned, None otherwise
        """
        try:
            query = select(Property).where(Property.id == property_id, Property.agent_id == agent_id)
            result = await self.db.execute(query)
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get property {property_id} for agent {agent_id}: {e}")
            raise

    async def list_for_agent(
        self,
        agent_id: uuid.UUID,
        statuses: Optional[Sequence[PropertyStatus]] = None
    ) -> List[Property]:
        """
        Get an agent's properties, newest first.

        Args:
            agent_id: UUID of the owner
            statuses: Optional status filter

        Returns:
            List of properties
        """
        filters = {"agent_id": agent_id}
        if statuses:
            filters["status"] = list(statuses)
        return await self.get_multi(limit=None, filters=filters, order_by=["-created_at"])

    async def count_for_agent(self, agent_id: uuid.UUID) -> int:
        return await self.count({"agent_id": agent_id})

    async def slugs_with_prefix(self, prefix: str) -> List[str]:
        """
        Get every slug that starts with the prefix.

        Args:
            prefix: Slug prefix to look up

        Returns:
            Matching slugs
        """
        try:
            escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            query = select(Property.slug).where(Property.slug.like(f"{escaped}%", escape="\\"))
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to look up slugs with prefix {prefix}: {e}")
            raise

    async def increment_views(self, property_id: uuid.UUID) -> None:
        """Add one to the view counter, leaving updated_at as it was."""
        try:
            stmt = (
                update(Property)
                .where(Property.id == property_id)
                .values(views=Property.views + 1, updated_at=Property.updated_at)
                .execution_options(synchronize_session=False)
            )
            await self.db.execute(stmt)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to increment views for property {property_id}: {e}")
            raise

    async def list_with_orphaned_videos(self) -> List[Property]:
        """
        Properties that reference uploaded videos but have no published video URL.

        Returns:
            Properties to clean up
        """
        try:
            result = await self.db.execute(select(Property))
            return [
                prop for prop in result.scalars().all()
                if prop.mux_upload_ids and not prop.video_urls
            ]
        except Exception as e:
            logger.error(f"Failed to list properties with orphaned videos: {e}")
            raise

