"""
Flyer service.
Writes an image prompt with the chat model, renders a square PNG and stores it as a public asset.
"""

from typing import Any, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from PIL import Image, UnidentifiedImageError
import httpx
import io
import uuid
import logging

from flowestate.models.agent import Agent
from flowestate.models.property import Property
from flowestate.repositories.property import PropertyRepository
from flowestate.services.ai import AIService
from flowestate.services.storage import StorageService, BUCKETS, PUBLIC_ASSETS_BUCKET
from flowestate.utils.exceptions import (
    APIException,
    BadRequestError,
    ExternalServiceError,
    InternalServerError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


def describe_property(prop: Property) -> str:
    """One-line property description for prompts."""
    parts = [prop.title]
    location = ", ".join(part for part in (prop.city, prop.state) if part)
    if location:
        parts.append(location)
    if prop.price is not None:
        symbol = prop.currency.symbol if prop.currency else "$"
        parts.append(f"{symbol}{float(prop.price):,.0f}")
    return " | ".join(parts)


class FlyerService:
    """Generates marketing images for listings."""

    def __init__(
        self,
        db_session: AsyncSession,
        ai: Optional[AIService] = None,
        storage: Optional[StorageService] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.db = db_session
        self.ai = ai or AIService()
        self.storage = storage or StorageService()
        self.http = http_client
        self.property_repo = PropertyRepository(db_session)

    async def _load_base_image(self, url: str) -> bytes:
        """
        Fetch an image and convert it to PNG for the edit endpoint.
        Images in our own storage are read from disk.
        """
        content = None
        for bucket in BUCKETS:
            key = self.storage.key_from_url(url, bucket)
            if key:
                content = await self.storage.read(bucket, key)
                break

        if content is None:
            if self.http is None:
                raise BadRequestError("Base image must be a stored file")
            try:
                response = await self.http.get(url)
                response.raise_for_status()
            except httpx.HTTPError as e:
                raise ExternalServiceError("Image download", str(e))
            content = response.content

        try:
            with Image.open(io.BytesIO(content)) as img:
                output = io.BytesIO()
                img.convert("RGBA").save(output, format="PNG")
                return output.getvalue()
        except (UnidentifiedImageError, OSError) as e:
            raise BadRequestError(f"Base image is not a valid image: {e}")

    async def generate(
        self,
        agent: Agent,
        instructions: str,
        property_id: Optional[uuid.UUID] = None,
        base_image_url: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Generate and store a flyer image.

        Args:
            agent: Requesting agent
            instructions: Visual style and content instructions
            property_id: Optional listing to feature
            base_image_url: Optional image to edit instead of generating from scratch

        Returns:
            imageUrl, prompt, model, usedBaseImage and requestId

        Raises:
            NotFoundError: If the property is not the agent's
        """
        request_id = str(uuid.uuid4())
        try:
            summary = ""
            if property_id:
                prop = await self.property_repo.get_owned(property_id, agent.id)
                if not prop:
                    raise NotFoundError("Property", str(property_id))
                summary = describe_property(prop)

            base_image = await self._load_base_image(base_image_url) if base_image_url else None

            prompt = await self.ai.write_flyer_prompt(summary, instructions)
            image = await self.ai.generate_image(prompt, base_image=base_image)

            url = await self.storage.upload(PUBLIC_ASSETS_BUCKET, f"artes/{request_id}.png", image)
            logger.info(f"[{request_id}] Flyer generated for agent {agent.email}")

            return {
                "success": True,
                "imageUrl": url,
                "prompt": prompt,
                "model": self.ai.settings.openai_image_model,
                "usedBaseImage": base_image is not None,
                "requestId": request_id,
            }

        except APIException:
            raise
        except Exception as e:
            logger.error(f"[{request_id}] Flyer generation failed: {e}")
            raise InternalServerError(f"Failed to generate flyer: {str(e)}")
