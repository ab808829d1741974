"""
API tests through the ASGI app: authentication, listings, upload links and the error envelope.
"""

import pytest

from flowestate.config import settings
from flowestate.models.property import PropertyStatus
from flowestate.services.upload_token import UploadTokenService
from tests.conftest import PropertyFactory, auth_headers_for

API = settings.api_v1_prefix
TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"


class TestHealthEndpoints:
    """Test system endpoints."""

    async def test_root(self, client):
        response = await client.get("/")
        assert response.status_code == 200
        assert response.json()["api_prefix"] == API

    async def test_unknown_route_uses_error_envelope(self, client):
        response = await client.get("/nope")

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["code"] == "HTTP_404"
        assert error["request_id"] == response.headers["X-Request-ID"]
        assert error["timestamp"].endswith("Z")


class TestAuthAPI:
    """Test sign-in and session endpoints."""

    async def test_google_sign_in(self, client, http_stub):
        http_stub.on("GET", TOKENINFO_URL, json={"email": "maria@example.com", "name": "María", "sub": "g-1"})

        response = await client.post(f"{API}/auth/google", json={"id_token": "google-token"})

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["expires_in"] == settings.access_token_expire_minutes * 60
        assert data["agent"]["email"] == "maria@example.com"

        session = await client.get(f"{API}/auth/session", headers={"Authorization": f"Bearer {data['access_token']}"})
        assert session.status_code == 200
        assert session.json()["agent"]["email"] == "maria@example.com"

    async def test_session_requires_token(self, client):
        response = await client.get(f"{API}/auth/session")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    async def test_session_with_garbage_token(self, client):
        response = await client.get(f"{API}/auth/session", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401


class TestPropertiesAPI:
    """Test listing endpoints."""

    async def test_create_list_and_get(self, client, auth_headers):
        created = await client.post(
            f"{API}/properties",
            json={"title": "Casa Bonita", "description": "Tres habitaciones", "price": 250000},
            headers=auth_headers
        )

        assert created.status_code == 201
        body = created.json()
        assert body["success"] is True
        assert body["propertyId"].startswith("casa-bonita-")
        assert body["property"]["price"] == 250000

        listed = await client.get(f"{API}/properties", headers=auth_headers)
        assert [p["slug"] for p in listed.json()["properties"]] == [body["propertyId"]]

        fetched = await client.get(f"{API}/properties/{body['property']['id']}", headers=auth_headers)
        assert fetched.status_code == 200
        assert fetched.json()["property"]["title"] == "Casa Bonita"

    async def test_create_requires_credentials(self, client):
        response = await client.post(f"{API}/properties", json={"title": "T", "description": "D"})
        assert response.status_code == 401

    async def test_create_validation_error(self, client, auth_headers):
        response = await client.post(
            f"{API}/properties",
            json={"title": "T", "description": "D", "price": -5},
            headers=auth_headers
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert any("price" in detail["field"] for detail in error["details"])

    async def test_invalid_property_id(self, client, auth_headers):
        response = await client.get(f"{API}/properties/not-a-uuid", headers=auth_headers)
        assert response.status_code == 422

    async def test_public_page_includes_agent(self, client, test_property):
        response = await client.get(f"{API}/properties/public/{test_property.slug}")

        assert response.status_code == 200
        prop = response.json()["property"]
        assert prop["slug"] == test_property.slug
        assert prop["agent"]["username"] == "testagent"
        assert "watermark_position" in prop["agent"]

    async def test_other_agents_property_is_hidden(self, client, test_property, other_agent):
        response = await client.get(f"{API}/properties/{test_property.id}", headers=auth_headers_for(other_agent))

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    async def test_update_nothing(self, client, test_property, auth_headers):
        response = await client.put(f"{API}/properties/{test_property.id}", json={}, headers=auth_headers)
        assert response.json() == {"success": True, "message": "Nothing to update"}

    async def test_update_status(self, client, test_property, auth_headers):
        response = await client.put(
            f"{API}/properties/{test_property.id}", json={"status": "sold"}, headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["property"]["status"] == PropertyStatus.SOLD.value

    async def test_update_by_other_agent_is_forbidden(self, client, test_property, other_agent):
        response = await client.put(
            f"{API}/properties/{test_property.id}", json={"title": "Mine now"}, headers=auth_headers_for(other_agent)
        )
        assert response.status_code == 403

    async def test_duplicate_and_translate(self, client, test_property, auth_headers):
        duplicate = await client.post(f"{API}/properties/{test_property.id}/duplicate", headers=auth_headers)
        assert duplicate.status_code == 201
        assert duplicate.json()["slug"] == "casa-playa-abc123-2"

        translated = await client.post(
            f"{API}/properties/{test_property.id}/translate",
            json={"target_language": "en"},
            headers=auth_headers
        )
        assert translated.status_code == 201
        assert translated.json()["slug"] == "en-test-property"

    async def test_delete(self, client, test_property, auth_headers):
        response = await client.delete(f"{API}/properties/{test_property.id}", headers=auth_headers)
        assert response.status_code == 200

        missing = await client.get(f"{API}/properties/{test_property.id}", headers=auth_headers)
        assert missing.status_code == 404

    async def test_upload_photos_and_serve_them(self, client, auth_headers):
        response = await client.post(
            f"{API}/properties/photos",
            files=[("photos", ("front.jpg", b"jpeg-data", "image/jpeg"))],
            headers=auth_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1

        path = data["urls"][0].replace("http://api.test", "")
        served = await client.get(path)
        assert served.status_code == 200
        assert served.content == b"jpeg-data"

    async def test_transcribe_and_generate(self, client, auth_headers):
        transcription = await client.post(
            f"{API}/properties/transcribe",
            files={"audio": ("note.webm", b"audio", "audio/webm")},
            headers=auth_headers
        )
        assert transcription.status_code == 200
        text = transcription.json()["transcription"]

        generated = await client.post(f"{API}/properties/generate", json={"transcription": text}, headers=auth_headers)
        assert generated.status_code == 200
        assert generated.json()["tokensUsed"] == 321
        assert generated.json()["property"]["title"] == "Casa en Tamarindo"

    async def test_plan_limit_error_code(self, client, test_agent, auth_headers, db_session, monkeypatch):
        monkeypatch.setattr(settings, "free_plan_property_limit", 1)
        await PropertyFactory.create_property(db_session, test_agent.id)

        response = await client.post(
            f"{API}/properties", json={"title": "Two", "description": "Second"}, headers=auth_headers
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "PLAN_LIMIT_EXCEEDED"


class TestUploadTokenFlow:
    """Test the delegated upload flow end to end."""

    async def test_token_creates_one_property_then_can_edit_it(self, client, test_agent, auth_headers):
        issued = await client.post(f"{API}/upload-tokens", headers=auth_headers)
        assert issued.status_code == 201
        token = issued.json()["token"]
        assert issued.json()["url"].endswith(f"/upload/{token}")

        validation = await client.get(f"{API}/upload-tokens/validate", params={"token": token})
        assert validation.json()["valid"] is True
        assert validation.json()["agentName"] == "Test Agent"

        headers = {"X-Upload-Token": token}
        created = await client.post(
            f"{API}/properties", json={"title": "Via link", "description": "From the owner"}, headers=headers
        )
        assert created.status_code == 201
        property_id = created.json()["property"]["id"]

        again = await client.post(
            f"{API}/properties", json={"title": "Another", "description": "Not allowed"}, headers=headers
        )
        assert again.status_code == 401

        edited = await client.put(f"{API}/properties/{property_id}", json={"title": "Fixed typo"}, headers=headers)
        assert edited.status_code == 200
        assert edited.json()["property"]["title"] == "Fixed typo"

        spent = await client.get(f"{API}/upload-tokens/validate", params={"token": token})
        assert spent.json()["valid"] is False

    async def test_token_cannot_edit_other_properties(self, client, test_agent, test_property, db_session):
        upload_token = await UploadTokenService(db_session).generate(test_agent)

        response = await client.put(
            f"{API}/properties/{test_property.id}",
            json={"title": "Edit"},
            headers={"X-Upload-Token": upload_token.token}
        )
        assert response.status_code == 403

    async def test_list_and_revoke(self, client, auth_headers):
        issued = (await client.post(f"{API}/upload-tokens", headers=auth_headers)).json()

        listed = await client.get(f"{API}/upload-tokens", headers=auth_headers)
        assert [t["id"] for t in listed.json()["tokens"]] == [issued["id"]]

        revoked = await client.delete(f"{API}/upload-tokens/{issued['id']}", headers=auth_headers)
        assert revoked.json() == {"success": True}

        validation = await client.get(f"{API}/upload-tokens/validate", params={"token": issued["token"]})
        assert validation.json() == {
            "valid": False,
            "agentId": None,
            "agentName": None,
            "expiresAt": None,
            "error": "Upload token has been revoked",
        }

    async def test_validate_requires_token(self, client):
        response = await client.get(f"{API}/upload-tokens/validate")
        assert response.status_code == 400


class TestAgentAPI:
    """Test agent profile, preferences and public pages."""

    async def test_profile_and_plan(self, client, auth_headers):
        profile = await client.get(f"{API}/agent/profile", headers=auth_headers)
        assert profile.json()["agent"]["username"] == "testagent"

        plan = await client.get(f"{API}/agent/plan", headers=auth_headers)
        assert plan.status_code == 200

    async def test_update_profile_conflict(self, client, auth_headers, other_agent):
        response = await client.put(
            f"{API}/agent/profile", json={"username": other_agent.username}, headers=auth_headers
        )
        assert response.status_code == 400

    async def test_language(self, client, auth_headers):
        updated = await client.put(f"{API}/agent/language", json={"language": "en"}, headers=auth_headers)
        assert updated.json() == {"language": "en"}

        current = await client.get(f"{API}/agent/language", headers=auth_headers)
        assert current.json() == {"language": "en"}

    async def test_currency(self, client, auth_headers, usd):
        response = await client.put(f"{API}/agent/currency", json={"currency_id": str(usd.id)}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["currency"]["code"] == "USD"

        currencies = await client.get(f"{API}/currencies")
        assert currencies.json()["default"]["code"] == "USD"

    async def test_export_csv(self, client, test_property, auth_headers):
        response = await client.get(f"{API}/agent/export", headers=auth_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment; filename=\"properties-" in response.headers["content-disposition"]
        assert test_property.title in response.text

    async def test_portfolio(self, client, test_property):
        response = await client.get(f"{API}/agent/portfolio/testagent")

        assert response.status_code == 200
        assert response.json()["agent"]["username"] == "testagent"
        assert len(response.json()["properties"]) == 1

    async def test_analytics(self, client, test_property, auth_headers):
        response = await client.get(f"{API}/analytics/summary", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["inventory"]["total"] == 1


class TestCustomFieldsAPI:
    """Test custom field endpoints."""

    async def test_create_and_list(self, client, auth_headers):
        created = await client.post(
            f"{API}/custom-fields",
            json={"property_type": "house", "listing_type": "sale", "field_name": "Piscina", "field_type": "text"},
            headers=auth_headers
        )
        assert created.status_code == 201
        assert created.json()["field"]["field_key"].startswith("cf_")

        listed = await client.get(f"{API}/custom-fields", headers=auth_headers)
        assert len(listed.json()["fields"]) == 1

    async def test_suggest(self, client, auth_headers):
        response = await client.post(
            f"{API}/custom-fields/suggest",
            json={"property_type": "house", "listing_type": "sale", "language": "es"},
            headers=auth_headers
        )
        assert response.status_code == 201
        assert response.json()["count"] == 5
        assert response.json()["fields"][0]["field_name"] == "Habitaciones"

    async def test_invalid_type(self, client, auth_headers):
        response = await client.post(
            f"{API}/custom-fields",
            json={"property_type": "house", "listing_type": "sale", "field_name": "X", "field_type": "date"},
            headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "BAD_REQUEST"


class TestBrandingAPI:
    """Test watermark, business card and flyer endpoints."""

    async def test_watermark_settings(self, client, auth_headers):
        response = await client.put(
            f"{API}/watermark/settings",
            json={"position": "top-left", "opacity": 80, "use_watermark": True},
            headers=auth_headers
        )
        assert response.status_code == 200
        settings_data = response.json()["settings"]
        assert settings_data["watermark_position"] == "top-left"
        assert settings_data["watermark_opacity"] == 80
        assert settings_data["use_watermark"] is True

    @pytest.mark.parametrize("payload", [{"position": "middle"}, {"opacity": 101}, {"scale": 20}])
    async def test_watermark_settings_out_of_range(self, client, auth_headers, payload):
        response = await client.put(f"{API}/watermark/settings", json=payload, headers=auth_headers)
        assert response.status_code == 400

    async def test_transparent_watermark_must_be_png(self, client, auth_headers):
        response = await client.post(
            f"{API}/watermark/transparent",
            files={"watermark": ("mark.jpg", b"jpeg", "image/jpeg")},
            headers=auth_headers
        )
        assert response.status_code == 400

    async def test_logo_upload_replaces_previous(self, client, auth_headers, storage, test_agent):
        await client.post(
            f"{API}/watermark/logo", files={"logo": ("logo.png", b"one", "image/png")}, headers=auth_headers
        )
        second = await client.post(
            f"{API}/watermark/logo", files={"logo": ("logo.png", b"two", "image/png")}, headers=auth_headers
        )

        second_url = second.json()["logoUrl"]
        assert f"/media/watermarks/{test_agent.id}/logo_" in second_url
        current = await client.get(f"{API}/watermark", headers=auth_headers)
        assert current.json()["watermark_logo"] == second_url
        served = await client.get(second_url.replace("http://api.test", ""))
        assert served.content == b"two"

    async def test_logo_extension_from_mime_type(self, client, auth_headers):
        response = await client.post(
            f"{API}/watermark/logo", files={"logo": ("logo", b"<svg/>", "image/svg+xml")}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["logoUrl"].endswith(".svg")

    async def test_business_card(self, client, auth_headers):
        saved = await client.put(
            f"{API}/agent-card",
            json={"display_name": "  Test Agent  ", "bio": "Especialista en playa"},
            headers=auth_headers
        )
        assert saved.status_code == 200
        assert saved.json()["card"]["display_name"] == "Test Agent"

        public = await client.get(f"{API}/agent-card/testagent")
        assert public.json()["card"]["bio"] == "Especialista en playa"

    async def test_business_card_requires_name(self, client, auth_headers):
        response = await client.put(f"{API}/agent-card", json={"display_name": " "}, headers=auth_headers)
        assert response.status_code == 400

    async def test_card_photo(self, client, auth_headers):
        response = await client.post(
            f"{API}/agent-card/photo",
            data={"type": "cover"},
            files={"file": ("cover.png", b"png", "image/png")},
            headers=auth_headers
        )
        assert response.status_code == 200
        assert "/media/agent-cards/testagent/cover.jpg?t=" in response.json()["url"]

    async def test_flyer(self, client, test_property, auth_headers, fake_ai):
        response = await client.post(
            f"{API}/flyers",
            json={"instructions": "Modern blue style", "property_id": str(test_property.id)},
            headers=auth_headers
        )

        assert response.status_code == 201
        data = response.json()
        assert data["usedBaseImage"] is False
        assert data["imageUrl"].endswith(f"/media/public-assets/artes/{data['requestId']}.png")
        assert fake_ai.image_prompts == ["Flyer: Modern blue style"]
