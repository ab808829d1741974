"""
Currency catalog service.
"""

from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from flowestate.models.currency import Currency
from flowestate.repositories.currency import CurrencyRepository

logger = logging.getLogger(__name__)

# (code, symbol, name, is_default)
DEFAULT_CURRENCIES = (
    ("USD", "$", "US Dollar", True),
    ("CRC", "₡", "Costa Rican Colón", False),
)


class CurrencyService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.currency_repo = CurrencyRepository(db_session)

    async def list_currencies(self) -> Tuple[List[Currency], Optional[Currency]]:
        """
        Active currencies and the default one.

        Returns:
            Tuple of (currencies default-first then by code, default currency or None)
        """
        currencies = await self.currency_repo.list_active()
        default = next((currency for currency in currencies if currency.is_default), None)
        return currencies, default

    async def seed_defaults(self) -> List[Currency]:
        """
        Insert the built-in currencies that are missing.

        Returns:
            Newly created currencies
        """
        missing = []
        for code, symbol, name, is_default in DEFAULT_CURRENCIES:
            if not await self.currency_repo.get_by_code(code):
                missing.append({
                    "code": code,
                    "symbol": symbol,
                    "name": name,
                    "is_default": is_default,
                    "is_active": True,
                })

        if not missing:
            return []

        created = await self.currency_repo.bulk_create(missing)
        logger.info(f"Seeded currencies: {', '.join(c.code for c in created)}")
        return created
