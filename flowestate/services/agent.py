"""
Agent service for profile, preferences, plan status, public portfolio and CSV export.
"""

from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
import csv
import io
import uuid
import logging

from flowestate.config import get_settings
from flowestate.models.agent import Agent, USERNAME_PATTERN
from flowestate.models.currency import Currency
from flowestate.models.property import Property, PORTFOLIO_STATUSES
from flowestate.repositories.agent import AgentRepository
from flowestate.repositories.currency import CurrencyRepository
from flowestate.repositories.property import PropertyRepository
from flowestate.schemas.agent import ProfileUpdate
from flowestate.utils.dates import as_utc, utc_now
from flowestate.utils.exceptions import APIException, BadRequestError, NotFoundError

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ("es", "en")

CSV_COLUMNS = [
    "Title",
    "Description",
    "Price",
    "Address",
    "City",
    "State",
    "Zip",
    "Bedrooms",
    "Bathrooms",
    "Sqft",
    "Type",
    "Status",
    "Views",
    "Public Link",
    "Photo URLs",
    "Created",
]


def _blank(value) -> str:
    return "" if value is None else str(value)


class AgentService:
    """Agent account operations."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.settings = get_settings()
        self.agent_repo = AgentRepository(db_session)
        self.currency_repo = CurrencyRepository(db_session)
        self.property_repo = PropertyRepository(db_session)

    async def update_profile(self, agent: Agent, profile: ProfileUpdate) -> Agent:
        """
        Update the public handle and contact details.

        Args:
            agent: Agent being edited
            profile: New profile values

        Returns:
            Updated agent

        Raises:
            BadRequestError: If the username is malformed or already taken
        """
        if not USERNAME_PATTERN.match(profile.username):
            raise BadRequestError("Username must be 3-30 characters of lowercase letters, numbers or underscores")

        if await self.agent_repo.username_taken(profile.username, exclude_id=agent.id):
            raise BadRequestError("This username is already taken")

        try:
            updated = await self.agent_repo.update(
                agent.id,
                {
                    "username": profile.username,
                    "full_name": profile.full_name,
                    "phone": profile.phone,
                    "brokerage": profile.brokerage,
                },
                exclude_none=False
            )
        except Exception as e:
            logger.error(f"Failed to update profile of agent {agent.id}: {e}")
            raise BadRequestError(f"Failed to update profile: {str(e)}")

        logger.info(f"Agent {agent.email} updated profile, username {profile.username}")
        return updated

    async def update_currency(self, agent: Agent, currency_id: Optional[uuid.UUID]) -> Currency:
        """
        Set the agent's default listing currency.

        Raises:
            BadRequestError: If no currency is given or it is unknown or inactive
        """
        if not currency_id:
            raise BadRequestError("currency_id is required")

        currency = await self.currency_repo.get_by_id(currency_id)
        if not currency or not currency.is_active:
            raise BadRequestError("Invalid or inactive currency")

        await self.agent_repo.update(agent.id, {"default_currency_id": currency.id})
        logger.info(f"Agent {agent.email} default currency set to {currency.code}")
        return currency

    def get_language(self, agent: Agent) -> str:
        return agent.preferred_language or "es"

    async def update_language(self, agent: Agent, language: str) -> str:
        if language not in SUPPORTED_LANGUAGES:
            raise BadRequestError("Language must be 'es' or 'en'")
        await self.agent_repo.update(agent.id, {"preferred_language": language})
        return language

    async def get_portfolio(self, username: str) -> Tuple[Agent, List[Property]]:
        """
        Public portfolio of an agent.

        Args:
            username: Agent's public handle

        Returns:
            Tuple of (agent, active and sold properties newest first)

        Raises:
            NotFoundError: If no agent has the username
        """
        agent = await self.agent_repo.get_by_username(username)
        if not agent:
            raise NotFoundError("Agent", username)
        properties = await self.property_repo.list_for_agent(agent.id, statuses=PORTFOLIO_STATUSES)
        return agent, properties

    async def export_csv(self, agent: Agent) -> Tuple[str, str]:
        """
        Export the agent's properties as CSV.

        Args:
            agent: Agent whose properties are exported

        Returns:
            Tuple of (filename, CSV text)

        Raises:
            BadRequestError: If the agent has no properties
        """
        try:
            properties = await self.property_repo.list_for_agent(agent.id)
            if not properties:
                raise BadRequestError("You have no properties to export")

            app_url = self.settings.app_url.rstrip("/")
            buffer = io.StringIO()
            writer = csv.writer(buffer)
            writer.writerow(CSV_COLUMNS)

            for prop in properties:
                writer.writerow([
                    prop.title,
                    prop.description,
                    _blank(prop.price),
                    _blank(prop.address),
                    _blank(prop.city),
                    _blank(prop.state),
                    _blank(prop.zip_code),
                    _blank(prop.bedrooms),
                    _blank(prop.bathrooms),
                    _blank(prop.sqft),
                    prop.property_type.value,
                    prop.status.value,
                    prop.views or 0,
                    f"{app_url}/p/{prop.slug}",
                    " | ".join(prop.photos or []),
                    as_utc(prop.created_at).date().isoformat() if prop.created_at else "",
                ])

            filename = f"properties-{utc_now().date().isoformat()}.csv"
            logger.info(f"Exported {len(properties)} properties for agent {agent.email}")
            return filename, buffer.getvalue()

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to export properties for agent {agent.id}: {e}")
            raise BadRequestError(f"Failed to export properties: {str(e)}")
