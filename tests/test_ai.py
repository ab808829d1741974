"""
Tests for the OpenAI wrapper.
The OpenAI client is replaced with unittest.mock doubles.
"""

import base64
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest
from openai import OpenAIError

from flowestate.services.ai import AIService, IMAGE_SIZE
from flowestate.utils.exceptions import (
    ExternalServiceError,
    InternalServerError,
    ServiceUnavailableError,
)


def completion(content, total_tokens=42):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(total_tokens=total_tokens),
    )


@pytest.fixture
def openai_client():
    client = Mock()
    client.chat.completions.create = AsyncMock()
    client.audio.transcriptions.create = AsyncMock()
    client.images.generate = AsyncMock()
    client.images.edit = AsyncMock()
    return client


@pytest.fixture
def ai(openai_client) -> AIService:
    return AIService(client=openai_client)


class TestAIService:
    """Test prompt calls and response handling."""

    def test_missing_api_key(self, monkeypatch):
        service = AIService()
        monkeypatch.setattr(service.settings, "openai_api_key", None)

        with pytest.raises(ServiceUnavailableError):
            service.client

    async def test_generate_listing(self, ai, openai_client):
        openai_client.chat.completions.create.return_value = completion(
            json.dumps({"title": "Casa Sol", "description": "Tres habitaciones", "price": 250000}), 321
        )

        data, tokens = await ai.generate_listing("Casa de tres habitaciones en Tamarindo")

        assert data["title"] == "Casa Sol"
        assert tokens == 321
        kwargs = openai_client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][1]["content"] == "Casa de tres habitaciones en Tamarindo"

    async def test_generate_listing_incomplete(self, ai, openai_client):
        openai_client.chat.completions.create.return_value = completion(json.dumps({"title": "Casa Sol"}))

        with pytest.raises(InternalServerError):
            await ai.generate_listing("Casa de tres habitaciones en Tamarindo")

    async def test_invalid_json(self, ai, openai_client):
        openai_client.chat.completions.create.return_value = completion("not json")

        with pytest.raises(InternalServerError):
            await ai.generate_listing("Casa de tres habitaciones en Tamarindo")

    async def test_openai_failure(self, ai, openai_client):
        openai_client.chat.completions.create.side_effect = OpenAIError("rate limited")

        with pytest.raises(ExternalServiceError):
            await ai.translate_text("Casa", "en")

    async def test_extract_from_post_defaults(self, ai, openai_client):
        openai_client.chat.completions.create.return_value = completion(json.dumps({"price": 0}))

        data = await ai.extract_from_post("Vendo casa en Nosara con piscina", "es", [])

        assert data["title"] == "Imported property"
        assert data["description"] == "Vendo casa en Nosara con piscina"
        assert data["price"] is None
        assert data["custom_fields_data"] == {}

    async def test_translate_text(self, ai, openai_client):
        openai_client.chat.completions.create.return_value = completion("  Beach house \n")

        assert await ai.translate_text("Casa de playa", "en") == "Beach house"
        assert openai_client.chat.completions.create.call_args.kwargs["temperature"] == 0.3

    async def test_transcribe(self, ai, openai_client):
        openai_client.audio.transcriptions.create.return_value = "Casa con piscina"

        text = await ai.transcribe("nota.webm", b"audio", language="es")

        assert text == "Casa con piscina"
        kwargs = openai_client.audio.transcriptions.create.call_args.kwargs
        assert kwargs["file"] == ("nota.webm", b"audio")
        assert kwargs["response_format"] == "text"

    async def test_generate_image(self, ai, openai_client):
        png = b"\x89PNG\r\n\x1a\nart"
        openai_client.images.generate.return_value = SimpleNamespace(
            data=[SimpleNamespace(b64_json=base64.b64encode(png).decode())]
        )

        assert await ai.generate_image("A flyer") == png
        assert openai_client.images.generate.call_args.kwargs["size"] == IMAGE_SIZE
        openai_client.images.edit.assert_not_called()

    async def test_edit_image(self, ai, openai_client):
        openai_client.images.edit.return_value = SimpleNamespace(
            data=[SimpleNamespace(b64_json=base64.b64encode(b"edited").decode())]
        )

        assert await ai.generate_image("A flyer", base_image=b"base") == b"edited"
        assert openai_client.images.edit.call_args.kwargs["image"] == ("base.png", b"base", "image/png")

    async def test_empty_image_response(self, ai, openai_client):
        openai_client.images.generate.return_value = SimpleNamespace(data=[])

        with pytest.raises(InternalServerError):
            await ai.generate_image("A flyer")
