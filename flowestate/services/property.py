"""
Property service for managing listings with plan limits, ownership rules and AI-assisted content.
Handles CRUD, duplication, translation, photo upload, audio transcription and listing generation.
"""

from typing import Optional, List, Dict, Any, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import UploadFile
import asyncio
import re
import uuid
import logging

from flowestate.config import get_settings
from flowestate.models.agent import Agent
from flowestate.models.custom_field import FieldType
from flowestate.models.property import (
    Property,
    PropertyType,
    ListingType,
    PropertyStatus,
    UPDATABLE_FIELDS,
    COPYABLE_FIELDS,
)
from flowestate.repositories.agent import AgentRepository
from flowestate.repositories.custom_field import CustomFieldRepository
from flowestate.repositories.property import PropertyRepository
from flowestate.schemas.property import PropertyCreate, PropertyUpdate
from flowestate.services.ai import AIService
from flowestate.services.storage import StorageService, PROPERTY_PHOTOS_BUCKET
from flowestate.services.upload_token import UploadTokenService
from flowestate.utils.exceptions import (
    APIException,
    BadRequestError,
    FileSizeExceededError,
    InternalServerError,
    NotFoundError,
    PlanLimitExceededError,
    PropertyOwnershipError,
)
from flowestate.utils.file_utils import FileValidator
from flowestate.utils.principal import Principal
from flowestate.utils.slugs import (
    listing_slug,
    next_numbered_slug,
    now_millis,
    slugify,
    strip_number_suffix,
)

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ("es", "en")

# Columns that may not be written as NULL through an update
NON_NULLABLE_FIELDS = (
    "title",
    "description",
    "property_type",
    "listing_type",
    "status",
    "photos",
    "show_map",
    "custom_fields_data",
)

_YES_NO = re.compile(r"^(sí|si|yes|no)$", re.IGNORECASE)


def should_translate_value(value: str) -> bool:
    """
    Whether a custom field text value is worth sending to the translator.
    Pure numbers, yes/no answers and values of one or two words are kept as they are.
    """
    trimmed = value.strip()
    if trimmed.isdigit() or _YES_NO.match(trimmed):
        return False
    return len(trimmed.split()) > 2


class PropertyService:
    """
    Property service for managing property listings with comprehensive business logic.
    Callers are represented by a Principal so upload token holders share the same code paths.
    """

    MAX_PHOTOS_PER_UPLOAD = 20
    MIN_TRANSCRIPTION_LENGTH = 20

    def __init__(
        self,
        db_session: AsyncSession,
        storage: Optional[StorageService] = None,
        ai: Optional[AIService] = None
    ):
        self.db = db_session
        self.settings = get_settings()
        self.property_repo = PropertyRepository(db_session)
        self.agent_repo = AgentRepository(db_session)
        self.field_repo = CustomFieldRepository(db_session)
        self.token_service = UploadTokenService(db_session)
        self.storage = storage or StorageService()
        self.ai = ai or AIService()

    async def _check_plan_limits(self, agent: Agent) -> None:
        """
        Enforce the listing quota of the agent's plan.

        Raises:
            PlanLimitExceededError: If the agent cannot create another property
        """
        if agent.is_pro:
            limit = self.settings.pro_plan_monthly_limit
            if agent.properties_this_month >= limit:
                raise PlanLimitExceededError(f"You have reached the limit of {limit} properties this month")
            return

        limit = self.settings.free_plan_property_limit
        if await self.property_repo.count_for_agent(agent.id) >= limit:
            raise PlanLimitExceededError(
                f"You have reached the limit of {limit} properties. Upgrade to Pro to create more"
            )

    async def _unique_listing_slug(self, title: str) -> str:
        slug = listing_slug(title)
        if await self.property_repo.get_by_slug(slug):
            slug = next_numbered_slug(slug, await self.property_repo.slugs_with_prefix(slug), always_number=True)
        return slug

    async def create_property(self, property_data: PropertyCreate, principal: Principal) -> Property:
        """
        Create a new listing for the principal's agent.

        Args:
            property_data: Property creation data
            principal: Agent session or upload token holder

        Returns:
            Created property

        Raises:
            BadRequestError: If title or description is missing
            PlanLimitExceededError: If the agent's plan quota is used up
        """
        try:
            title = (property_data.title or "").strip()
            description = (property_data.description or "").strip()
            if not title or not description:
                raise BadRequestError("Title and description are required")

            agent = principal.agent
            await self._check_plan_limits(agent)

            create_data = {
                key: value
                for key, value in property_data.model_dump(exclude_unset=True).items()
                if value is not None
            }
            create_data.update({
                "title": title,
                "description": description,
                "agent_id": agent.id,
                "slug": await self._unique_listing_slug(title),
                "status": PropertyStatus.ACTIVE,
                "views": 0,
            })
            create_data.setdefault("property_type", PropertyType.HOUSE)
            create_data.setdefault("listing_type", ListingType.SALE)
            create_data.setdefault("photos", [])
            create_data.setdefault("show_map", True)
            create_data.setdefault("custom_fields_data", {})
            create_data.setdefault("language", agent.preferred_language or "es")
            if agent.default_currency_id:
                create_data.setdefault("currency_id", agent.default_currency_id)
            if principal.upload_token:
                create_data["upload_token_id"] = principal.upload_token.id

            property_obj = await self.property_repo.create(create_data)

            if principal.upload_token:
                await self.token_service.record_use(principal.upload_token)
            if agent.is_pro:
                await self.agent_repo.increment_properties_this_month(agent.id)
                await self.db.refresh(agent)

            logger.info(f"Property created for agent {agent.email}: {property_obj.slug}")
            return property_obj

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to create property for agent {principal.agent_id}: {e}")
            raise InternalServerError(f"Failed to create property: {str(e)}")

    async def list_properties(self, agent: Agent) -> List[Property]:
        return await self.property_repo.list_for_agent(agent.id)

    async def get_property(self, property_id: uuid.UUID, agent: Agent) -> Property:
        """
        Get one of the agent's properties.

        Raises:
            NotFoundError: If the property doesn't exist or belongs to someone else
        """
        property_obj = await self.property_repo.get_owned(property_id, agent.id)
        if not property_obj:
            raise NotFoundError("Property", str(property_id))
        return property_obj

    async def get_public_property(self, slug: str) -> Property:
        """
        Get a property for its public page and count the visit.

        Args:
            slug: Public identifier of the property

        Returns:
            Property with its agent loaded

        Raises:
            NotFoundError: If no property has the slug
        """
        property_obj = await self.property_repo.get_by_slug(slug)
        if not property_obj:
            raise NotFoundError("Property", slug)

        try:
            await self.property_repo.increment_views(property_obj.id)
        except Exception as e:
            logger.warning(f"Could not count view for property {slug}: {e}")

        return property_obj

    async def _get_for_write(self, property_id: uuid.UUID, agent: Agent) -> Property:
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            raise NotFoundError("Property", str(property_id))
        if property_obj.agent_id != agent.id:
            raise PropertyOwnershipError()
        return property_obj

    async def _removable_photos(self, property_obj: Property, urls: List[str]) -> List[str]:
        """
        Filter photo URLs down to objects this property may delete from storage.
        A photo must be attached to the property, stored under its agent's prefix
        and not referenced by another of the agent's listings.
        """
        attached = set(property_obj.photos or [])
        owner_prefix = f"{property_obj.agent_id}/"

        shared = set()
        for other in await self.property_repo.list_for_agent(property_obj.agent_id):
            if other.id != property_obj.id:
                shared.update(other.photos or [])

        removable = []
        for url in urls:
            key = self.storage.key_from_url(url, PROPERTY_PHOTOS_BUCKET)
            if url not in attached or not key or not key.startswith(owner_prefix):
                logger.warning(f"Skipping delete of photo not owned by property {property_obj.id}: {url}")
                continue
            if url in shared:
                continue
            removable.append(url)
        return removable

    async def update_property(
        self,
        property_id: uuid.UUID,
        update_data: PropertyUpdate,
        principal: Principal
    ) -> Optional[Property]:
        """
        Update a property. Upload token holders may only touch the property their token created.

        Args:
            property_id: UUID of the property
            update_data: Fields to change plus photos to remove from storage
            principal: Agent session or upload token holder

        Returns:
            Updated property, or None when the request carried nothing to write

        Raises:
            NotFoundError: If property doesn't exist
            PropertyOwnershipError: If the caller may not modify it
        """
        try:
            property_obj = await self._get_for_write(property_id, principal.agent)
            if principal.upload_token and property_obj.upload_token_id != principal.upload_token.id:
                raise PropertyOwnershipError()

            values = update_data.model_dump(exclude_unset=True)
            photos_to_delete = values.pop("photos_to_delete", None) or []
            if photos_to_delete:
                removable = await self._removable_photos(property_obj, photos_to_delete)
                deleted = self.storage.delete_urls(PROPERTY_PHOTOS_BUCKET, removable)
                logger.info(f"Removed {len(deleted)}/{len(photos_to_delete)} photos of property {property_id}")

            changes = {
                field: values[field]
                for field in UPDATABLE_FIELDS
                if field in values and not (values[field] is None and field in NON_NULLABLE_FIELDS)
            }
            if not changes:
                return None

            updated = await self.property_repo.update(property_id, changes, exclude_none=False)
            logger.info(f"Property {property_id} updated: {', '.join(sorted(changes))}")
            return updated

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update property {property_id}: {e}")
            raise BadRequestError(f"Failed to update property: {str(e)}")

    async def delete_property(self, property_id: uuid.UUID, agent: Agent) -> None:
        """
        Delete a property and its photos.
        Photos still referenced by another of the agent's listings (duplicates, translations) are kept.

        Raises:
            NotFoundError: If property doesn't exist
            PropertyOwnershipError: If the agent doesn't own it
        """
        try:
            property_obj = await self._get_for_write(property_id, agent)

            orphaned = await self._removable_photos(property_obj, list(property_obj.photos or []))
            if orphaned:
                self.storage.delete_urls(PROPERTY_PHOTOS_BUCKET, orphaned)

            await self.property_repo.delete(property_id)
            logger.info(f"Property {property_obj.slug} deleted by agent {agent.email}")

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to delete property {property_id}: {e}")
            raise BadRequestError(f"Failed to delete property: {str(e)}")

    def _copy_fields(self, original: Property) -> Dict[str, Any]:
        data = {field: getattr(original, field) for field in COPYABLE_FIELDS}
        data.update({
            "agent_id": original.agent_id,
            "title": original.title,
            "photos": list(original.photos or []),
            "custom_fields_data": dict(original.custom_fields_data or {}),
            "status": PropertyStatus.ACTIVE,
            "views": 0,
        })
        return data

    async def duplicate_property(self, property_id: uuid.UUID, agent: Agent) -> Property:
        """
        Copy a listing under the next numbered slug.

        Args:
            property_id: UUID of the property to copy
            agent: Owner of the property

        Returns:
            The new property
        """
        original = await self.get_property(property_id, agent)

        base_slug = strip_number_suffix(original.slug)
        existing = await self.property_repo.slugs_with_prefix(base_slug)
        copy_data = self._copy_fields(original)
        copy_data["slug"] = next_numbered_slug(base_slug, existing, always_number=True)

        try:
            duplicate = await self.property_repo.create(copy_data)
        except Exception as e:
            logger.error(f"Failed to duplicate property {property_id}: {e}")
            raise InternalServerError("Failed to duplicate property")

        logger.info(f"Property {original.slug} duplicated as {duplicate.slug}")
        return duplicate

    async def _translate_custom_fields(self, original: Property, target_language: str) -> Dict[str, Any]:
        values = dict(original.custom_fields_data or {})
        if not values:
            return values

        definitions = await self.field_repo.list_for_combination(
            original.agent_id, original.property_type, original.listing_type
        )
        text_keys = {field.field_key for field in definitions if field.field_type == FieldType.TEXT}

        translated = {}
        for key, value in values.items():
            if key in text_keys and isinstance(value, str) and value.strip() and should_translate_value(value):
                translated[key] = await self.ai.translate_text(value, target_language)
            else:
                translated[key] = value
        return translated

    async def translate_property(
        self,
        property_id: uuid.UUID,
        target_language: str,
        use_ai: bool,
        agent: Agent
    ) -> Property:
        """
        Create a copy of a listing in another language.

        Args:
            property_id: UUID of the property to translate
            target_language: "es" or "en"
            use_ai: Translate the texts; otherwise only the language tag changes
            agent: Owner of the property

        Returns:
            The translated property

        Raises:
            BadRequestError: If the language is not supported
            NotFoundError: If the agent has no such property
        """
        if target_language not in SUPPORTED_LANGUAGES:
            raise BadRequestError("target_language must be 'es' or 'en'")

        original = await self.get_property(property_id, agent)

        try:
            title = original.title
            description = original.description
            address = original.address
            custom_fields_data = dict(original.custom_fields_data or {})

            if use_ai:
                title, description = await asyncio.gather(
                    self.ai.translate_text(original.title, target_language),
                    self.ai.translate_text(original.description, target_language),
                )
                if original.address:
                    address = await self.ai.translate_text(original.address, target_language)
                custom_fields_data = await self._translate_custom_fields(original, target_language)

            base_slug = slugify(title) or listing_slug(title)
            existing = await self.property_repo.slugs_with_prefix(base_slug)

            copy_data = self._copy_fields(original)
            copy_data.update({
                "title": title,
                "description": description,
                "address": address,
                "custom_fields_data": custom_fields_data,
                "language": target_language,
                "slug": next_numbered_slug(base_slug, existing),
            })
            translated = await self.property_repo.create(copy_data)

            logger.info(f"Property {original.slug} translated to {target_language} as {translated.slug}")
            return translated

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to translate property {property_id}: {e}")
            raise InternalServerError("Failed to translate property")

    async def upload_photos(self, files: List[UploadFile], principal: Principal) -> List[str]:
        """
        Store listing photos in the property-photos bucket.
        Oversized or failing files are skipped.

        Args:
            files: Uploaded photos
            principal: Agent session or upload token holder

        Returns:
            Public URLs of the stored photos

        Raises:
            BadRequestError: If no photos or too many photos were sent
            InternalServerError: If none of the photos could be stored
        """
        if not files:
            raise BadRequestError("No photos provided")
        if len(files) > self.MAX_PHOTOS_PER_UPLOAD:
            raise BadRequestError(f"A maximum of {self.MAX_PHOTOS_PER_UPLOAD} photos is allowed")

        timestamp = now_millis()
        urls = []
        for i, file in enumerate(files):
            content = await file.read()
            if not content or len(content) > FileValidator.PHOTO_MAX_SIZE:
                logger.warning(f"Skipping photo {i + 1} ({file.filename}): {len(content)} bytes")
                continue

            extension = FileValidator.extension_for(file.filename, file.content_type)
            key = f"{principal.agent_id}/{timestamp}-{i}.{extension}"
            try:
                urls.append(await self.storage.upload(PROPERTY_PHOTOS_BUCKET, key, content))
            except Exception as e:
                logger.error(f"Failed to store photo {i + 1} ({file.filename}): {e}")

        if not urls:
            raise InternalServerError("None of the photos could be uploaded")

        logger.info(f"Stored {len(urls)}/{len(files)} photos for agent {principal.agent_id}")
        return urls

    async def transcribe_audio(self, audio: Optional[UploadFile]) -> str:
        """
        Transcribe a spoken property description.

        Raises:
            BadRequestError: If no audio was sent
            FileSizeExceededError: If the audio is over 25 MB
        """
        if audio is None:
            raise BadRequestError("Audio file is required")

        content = await audio.read()
        if not content:
            raise BadRequestError("Audio file is empty")
        if len(content) > FileValidator.AUDIO_MAX_SIZE:
            raise FileSizeExceededError(len(content), FileValidator.AUDIO_MAX_SIZE)

        return await self.ai.transcribe(audio.filename or "audio.webm", content)

    async def generate_listing(self, transcription: str) -> Tuple[Dict[str, Any], int]:
        """
        Draft listing fields from a transcription.

        Args:
            transcription: Spoken description of the property

        Returns:
            Tuple of (listing fields with defaults, tokens used)

        Raises:
            BadRequestError: If the transcription is too short
        """
        text = (transcription or "").strip()
        if len(text) < self.MIN_TRANSCRIPTION_LENGTH:
            raise BadRequestError("The transcription is too short")

        data, tokens = await self.ai.generate_listing(text)
        property_data = {
            "title": data.get("title"),
            "description": data.get("description") or "",
            "price": data.get("price") or None,
            "address": data.get("address") or "",
            "city": data.get("city") or "",
            "state": data.get("state") or "",
            "zip_code": data.get("zip_code") or "",
            "bedrooms": data.get("bedrooms") or None,
            "bathrooms": data.get("bathrooms") or None,
            "sqft": data.get("sqft") or None,
            "property_type": data.get("property_type") or PropertyType.HOUSE.value,
        }
        return property_data, tokens
