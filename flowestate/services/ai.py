"""
Language model service wrapping the OpenAI API.
Generates listings from transcriptions, translates text, transcribes audio and creates flyer images.
"""

from typing import Any, Dict, List, Optional, Tuple
from openai import AsyncOpenAI, OpenAIError
import base64
import json
import logging

from flowestate.config import get_settings
from flowestate.services.prompts import (
    FLYER_PROMPT_SYSTEM,
    FLYER_PROMPT_TEMPLATE,
    LANGUAGE_NAMES,
    LISTING_PROMPT,
    TRANSLATION_PROMPT,
    build_post_import_prompt,
)
from flowestate.utils.exceptions import (
    ExternalServiceError,
    InternalServerError,
    ServiceUnavailableError,
)

logger = logging.getLogger(__name__)

IMAGE_SIZE = "1024x1024"


class AIService:
    """
    Thin async wrapper around the chat, audio and image endpoints.
    The client is created lazily so the API can start without an OpenAI key.
    """

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        self.settings = get_settings()
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.settings.openai_api_key:
                raise ServiceUnavailableError("AI features are not configured")
            self._client = AsyncOpenAI(api_key=self.settings.openai_api_key)
        return self._client

    async def _chat(
        self,
        messages: List[Dict[str, str]],
        temperature: float,
        json_output: bool = False
    ) -> Tuple[str, int]:
        kwargs: Dict[str, Any] = {
            "model": self.settings.openai_chat_model,
            "messages": messages,
            "temperature": temperature,
        }
        if json_output:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            completion = await self.client.chat.completions.create(**kwargs)
        except OpenAIError as e:
            logger.error(f"OpenAI chat completion failed: {e}")
            raise ExternalServiceError("OpenAI", str(e))

        content = completion.choices[0].message.content
        if not content:
            raise InternalServerError("The language model returned an empty response")

        tokens = completion.usage.total_tokens if completion.usage else 0
        return content, tokens

    @staticmethod
    def _parse_json(content: str) -> Dict[str, Any]:
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"Language model returned invalid JSON: {e}")
            raise InternalServerError("The language model returned invalid JSON")
        if not isinstance(data, dict):
            raise InternalServerError("The language model returned an unexpected payload")
        return data

    async def generate_listing(self, transcription: str) -> Tuple[Dict[str, Any], int]:
        """
        Turn a spoken property description into structured listing data.

        Args:
            transcription: Text of the agent's recording

        Returns:
            Tuple of (raw extracted fields, tokens used)

        Raises:
            InternalServerError: If the model output lacks a title or description
        """
        content, tokens = await self._chat(
            [
                {"role": "system", "content": LISTING_PROMPT},
                {"role": "user", "content": transcription},
            ],
            temperature=0.7,
            json_output=True,
        )

        data = self._parse_json(content)
        if not data.get("title") or not data.get("description"):
            raise InternalServerError("The language model response is incomplete")

        logger.info(f"Generated listing draft using {tokens} tokens")
        return data, tokens

    async def extract_from_post(
        self,
        text: str,
        language: str,
        custom_fields: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """
        Extract listing data from a social media post.

        Args:
            text: Post text
            language: Output language ("es" or "en")
            custom_fields: Agent custom fields the model may fill in

        Returns:
            Listing fields with defaults applied
        """
        content, _ = await self._chat(
            [
                {"role": "system", "content": build_post_import_prompt(language, custom_fields)},
                {"role": "user", "content": text},
            ],
            temperature=0.7,
            json_output=True,
        )

        data = self._parse_json(content)
        return {
            "title": data.get("title") or "Imported property",
            "description": data.get("description") or text,
            "price": data.get("price") or None,
            "address": data.get("address") or "",
            "city": data.get("city") or "",
            "state": data.get("state") or "",
            "zip_code": data.get("zip_code") or "",
            "custom_fields_data": data.get("custom_fields_data") or {},
        }

    async def translate_text(self, text: str, target_language: str) -> str:
        """
        Translate listing text, keeping its real estate tone.

        Args:
            text: Text to translate
            target_language: "es" or "en"

        Returns:
            Translated text
        """
        prompt = TRANSLATION_PROMPT.format(language=LANGUAGE_NAMES[target_language])
        content, _ = await self._chat(
            [
                {"role": "system", "content": prompt},
                {"role": "user", "content": text},
            ],
            temperature=0.3,
        )
        return content.strip()

    async def transcribe(self, filename: str, content: bytes, language: str = "es") -> str:
        """
        Transcribe an audio recording.

        Args:
            filename: Original file name, used for format detection
            content: Audio bytes
            language: Spoken language hint

        Returns:
            Transcribed text
        """
        try:
            transcription = await self.client.audio.transcriptions.create(
                model=self.settings.openai_transcription_model,
                file=(filename, content),
                language=language,
                response_format="text",
            )
        except OpenAIError as e:
            logger.error(f"OpenAI transcription failed: {e}")
            raise ExternalServiceError("OpenAI", str(e))

        text = transcription if isinstance(transcription, str) else getattr(transcription, "text", "")
        logger.info(f"Transcribed {len(content)} bytes of audio into {len(text)} characters")
        return text

    async def write_flyer_prompt(self, property_summary: str, instructions: str) -> str:
        """Ask the chat model for an image prompt describing a flyer."""
        content, _ = await self._chat(
            [
                {"role": "system", "content": FLYER_PROMPT_SYSTEM},
                {
                    "role": "user",
                    "content": FLYER_PROMPT_TEMPLATE.format(
                        property=property_summary or "not specified",
                        instructions=instructions,
                    ),
                },
            ],
            temperature=0.7,
        )
        return content.strip()

    async def generate_image(self, prompt: str, base_image: Optional[bytes] = None) -> bytes:
        """
        Generate a square PNG image.

        Args:
            prompt: Image prompt
            base_image: Optional PNG to edit instead of generating from scratch

        Returns:
            PNG bytes
        """
        try:
            if base_image is not None:
                result = await self.client.images.edit(
                    model=self.settings.openai_image_model,
                    image=("base.png", base_image, "image/png"),
                    prompt=prompt,
                    size=IMAGE_SIZE,
                )
            else:
                result = await self.client.images.generate(
                    model=self.settings.openai_image_model,
                    prompt=prompt,
                    size=IMAGE_SIZE,
                )
        except OpenAIError as e:
            logger.error(f"OpenAI image request failed: {e}")
            raise ExternalServiceError("OpenAI", str(e))

        if not result.data or not result.data[0].b64_json:
            raise InternalServerError("The image model returned no image")

        return base64.b64decode(result.data[0].b64_json)
