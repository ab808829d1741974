"""
Currency repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from flowestate.repositories.base import BaseRepository
from flowestate.models.currency import Currency
from typing import Optional, List
import logging

logger = logging.getLogger(__name__)


class CurrencyRepository(BaseRepository[Currency]):

    def __init__(self, db: AsyncSession):
        super().__init__(Currency, db)

    async def list_active(self) -> List[Currency]:
        """Active currencies, default first, then by code."""
        try:
            query = (
                select(Currency)
                .where(Currency.is_active.is_(True))
                .order_by(Currency.is_default.desc(), Currency.code.asc())
            )
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to list currencies: {e}")
            raise

    async def get_by_code(self, code: str) -> Optional[Currency]:
        return await self.get_by_field("code", code.upper())
