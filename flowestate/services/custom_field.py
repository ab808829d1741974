"""
Custom field service.
Agents define up to five extra listing attributes per property/listing type combination.
"""

from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
import uuid
import logging

from flowestate.models.agent import Agent
from flowestate.models.custom_field import (
    CustomField,
    FieldType,
    DEFAULT_FIELD_ICON,
    MAX_FIELDS_PER_COMBINATION,
    MAX_FIELD_NAME_LENGTH,
)
from flowestate.models.property import PropertyType, ListingType
from flowestate.repositories.custom_field import CustomFieldRepository
from flowestate.schemas.custom_field import CustomFieldCreate, CustomFieldUpdate
from flowestate.services.suggested_fields import suggestions_for
from flowestate.utils.exceptions import (
    APIException,
    BadRequestError,
    InternalServerError,
    NotFoundError,
    ResourceLimitExceededError,
)
from flowestate.utils.slugs import custom_field_key

logger = logging.getLogger(__name__)


def parse_combination(property_type: Optional[str], listing_type: Optional[str]) -> Tuple[PropertyType, ListingType]:
    """
    Validate a property/listing type pair.

    Raises:
        BadRequestError: If either value is missing or unknown
    """
    if not property_type or not listing_type:
        raise BadRequestError("property_type and listing_type are required")
    try:
        return PropertyType(property_type), ListingType(listing_type)
    except ValueError:
        raise BadRequestError("Invalid property type or listing type")


class CustomFieldService:
    """Create, edit, clone and suggest an agent's custom fields."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.field_repo = CustomFieldRepository(db_session)

    def _validate_definition(self, data: CustomFieldCreate) -> Tuple[PropertyType, ListingType, str, FieldType]:
        if not data.property_type or not data.listing_type or not data.field_name or not data.field_type:
            raise BadRequestError("property_type, listing_type, field_name and field_type are required")

        field_name = data.field_name.strip()
        if not field_name:
            raise BadRequestError("field_name cannot be empty")
        if len(field_name) > MAX_FIELD_NAME_LENGTH:
            raise BadRequestError(f"Field name cannot be longer than {MAX_FIELD_NAME_LENGTH} characters")

        try:
            field_type = FieldType(data.field_type)
        except ValueError:
            raise BadRequestError("field_type must be 'text' or 'number'")

        property_type, listing_type = parse_combination(data.property_type, data.listing_type)
        return property_type, listing_type, field_name, field_type

    async def _ensure_room(self, agent_id: uuid.UUID, property_type: PropertyType, listing_type: ListingType) -> int:
        count = await self.field_repo.count_for_combination(agent_id, property_type, listing_type)
        if count >= MAX_FIELDS_PER_COMBINATION:
            raise ResourceLimitExceededError("Custom fields per combination", MAX_FIELDS_PER_COMBINATION)
        return count

    async def create_field(self, data: CustomFieldCreate, agent: Agent) -> CustomField:
        """
        Create a custom field.

        Args:
            data: Field definition
            agent: Owner

        Returns:
            Created field

        Raises:
            BadRequestError: If the definition is invalid, the combination is full
                or the name is already used in the combination
        """
        property_type, listing_type, field_name, field_type = self._validate_definition(data)
        count = await self._ensure_room(agent.id, property_type, listing_type)

        if await self.field_repo.name_exists(agent.id, property_type, listing_type, field_name):
            raise BadRequestError("A field with this name already exists for this combination")

        try:
            field = await self.field_repo.create({
                "agent_id": agent.id,
                "field_key": custom_field_key(),
                "property_type": property_type,
                "listing_type": listing_type,
                "field_name": field_name,
                "field_name_en": (data.field_name_en or "").strip() or field_name,
                "field_type": field_type,
                "placeholder": (data.placeholder or "").strip() or f"Ej: {field_name}",
                "icon": data.icon or DEFAULT_FIELD_ICON,
                "display_order": count,
            })
        except Exception as e:
            logger.error(f"Failed to create custom field for agent {agent.id}: {e}")
            raise InternalServerError("Failed to create custom field")

        logger.info(f"Custom field {field.field_key} created for {property_type.value}/{listing_type.value}")
        return field

    async def list_fields(self, agent: Agent) -> List[CustomField]:
        return await self.field_repo.list_for_agent(agent.id)

    async def update_field(self, field_id: uuid.UUID, data: CustomFieldUpdate, agent: Agent) -> CustomField:
        """
        Update a custom field definition. The field key never changes.

        Raises:
            NotFoundError: If the agent has no such field
            BadRequestError: If the definition is invalid or the name clashes
        """
        property_type, listing_type, field_name, field_type = self._validate_definition(data)

        field = await self.field_repo.get_owned(field_id, agent.id)
        if not field:
            raise NotFoundError("Custom field", str(field_id))

        if await self.field_repo.name_exists(agent.id, property_type, listing_type, field_name, exclude_id=field_id):
            raise BadRequestError("A field with this name already exists for this combination")

        try:
            updated = await self.field_repo.update(field_id, {
                "property_type": property_type,
                "listing_type": listing_type,
                "field_name": field_name,
                "field_name_en": (data.field_name_en or "").strip() or field_name,
                "field_type": field_type,
                "placeholder": (data.placeholder or "").strip() or field.placeholder,
                "icon": data.icon or field.icon,
            })
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update custom field {field_id}: {e}")
            raise BadRequestError(f"Failed to update custom field: {str(e)}")

        logger.info(f"Custom field {field.field_key} updated")
        return updated

    async def delete_field(self, field_id: uuid.UUID, agent: Agent) -> None:
        field = await self.field_repo.get_owned(field_id, agent.id)
        if not field:
            raise NotFoundError("Custom field", str(field_id))
        await self.field_repo.delete(field_id)
        logger.info(f"Custom field {field.field_key} deleted")

    async def clone_field(
        self,
        field_id: uuid.UUID,
        target_property_type: Optional[str],
        target_listing_type: Optional[str],
        agent: Agent
    ) -> CustomField:
        """
        Copy a field into another combination under a new key.

        Args:
            field_id: Field to copy
            target_property_type: Destination property type
            target_listing_type: Destination listing type
            agent: Owner

        Returns:
            The new field

        Raises:
            BadRequestError: If the target is invalid, full, or already has the name
            NotFoundError: If the agent has no such field
        """
        property_type, listing_type = parse_combination(target_property_type, target_listing_type)

        original = await self.field_repo.get_owned(field_id, agent.id)
        if not original:
            raise NotFoundError("Custom field", str(field_id))

        count = await self._ensure_room(agent.id, property_type, listing_type)
        if await self.field_repo.name_exists(agent.id, property_type, listing_type, original.field_name):
            raise BadRequestError("A field with this name already exists in the target combination")

        clone = await self.field_repo.create({
            "agent_id": agent.id,
            "field_key": custom_field_key(),
            "property_type": property_type,
            "listing_type": listing_type,
            "field_name": original.field_name,
            "field_name_en": original.field_name_en,
            "field_type": original.field_type,
            "placeholder": original.placeholder,
            "icon": original.icon,
            "display_order": count,
        })
        logger.info(f"Custom field {original.field_key} cloned to {property_type.value}/{listing_type.value}")
        return clone

    async def suggest_fields(
        self,
        property_type: Optional[str],
        listing_type: Optional[str],
        language: str,
        agent: Agent
    ) -> List[CustomField]:
        """
        Seed an empty combination with the built-in suggestions.

        Args:
            property_type: Combination property type
            listing_type: Combination listing type
            language: "es" for Spanish names and placeholders, anything else for English
            agent: Owner

        Returns:
            Created fields in display order

        Raises:
            BadRequestError: If the combination already has fields
        """
        prop_type, list_type = parse_combination(property_type, listing_type)

        if await self.field_repo.count_for_combination(agent.id, prop_type, list_type) > 0:
            raise BadRequestError("Fields already exist for this combination")

        suggestions = suggestions_for(prop_type.value, list_type.value)
        if not suggestions:
            raise NotFoundError("Suggested fields", f"{prop_type.value}/{list_type.value}")

        fields = await self.field_repo.bulk_create([
            {
                "agent_id": agent.id,
                "field_key": custom_field_key(),
                "property_type": prop_type,
                "listing_type": list_type,
                "field_name": suggestion.field_name(language),
                "field_name_en": suggestion.name_en,
                "field_type": FieldType(suggestion.field_type),
                "placeholder": suggestion.placeholder(language),
                "icon": suggestion.icon,
                "display_order": index,
            }
            for index, suggestion in enumerate(suggestions)
        ])

        logger.info(f"Added {len(fields)} suggested fields for {prop_type.value}/{list_type.value}")
        return sorted(fields, key=lambda field: field.display_order)
