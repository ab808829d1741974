"""
Tests for third-party integrations: Facebook pages, Mux video and PayPal billing.
Outbound calls go through the HTTPStub transport.
"""

import asyncio
import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from flowestate.config import settings
from flowestate.models.agent import PlanTier
from flowestate.models.property import Property
from flowestate.repositories.facebook_post import FacebookPostRepository
from flowestate.repositories.property import PropertyRepository
from flowestate.schemas.facebook import ImportPostRequest
from flowestate.services.facebook import FacebookService, build_post_message, count_images
from flowestate.services.mux import MuxService
from flowestate.services.payments import PaymentService
from flowestate.utils.auth import create_oauth_state, verify_oauth_state
from flowestate.utils.exceptions import (
    BadRequestError,
    ExternalServiceError,
    InternalServerError,
    NotFoundError,
    ServiceUnavailableError,
)
from tests.conftest import AgentFactory, PropertyFactory, auth_headers_for

GRAPH = "https://graph.facebook.com/v18.0"
MUX = "https://api.mux.com/video/v1"
PAYPAL = "https://api-m.sandbox.paypal.com"

POST_TEXT = "Hermosa casa de tres habitaciones con piscina y vista al mar en Tamarindo, Guanacaste."


@pytest.fixture
def facebook_service(db_session, http_client, storage, fake_ai) -> FacebookService:
    return FacebookService(db_session, http_client, storage=storage, ai=fake_ai)


@pytest.fixture
async def connected_agent(db_session):
    return await AgentFactory.create_agent(
        db_session,
        username="pageagent",
        facebook_page_id="page-1",
        facebook_page_name="Casas Tamarindo",
        facebook_access_token="page-token",
    )


class TestFacebookConnection:
    """Test the OAuth connection flow."""

    def test_authorization_url(self, facebook_service, test_agent, monkeypatch):
        monkeypatch.setattr(settings, "facebook_app_id", "app-123")

        url = facebook_service.authorization_url(test_agent)

        parsed = urlparse(url)
        query = parse_qs(parsed.query)
        assert url.startswith("https://www.facebook.com/v18.0/dialog/oauth?")
        assert query["client_id"] == ["app-123"]
        assert query["redirect_uri"] == ["http://api.test/api/v1/facebook/callback"]
        assert verify_oauth_state(query["state"][0]) == test_agent.id

    def test_authorization_url_requires_app(self, facebook_service, test_agent, monkeypatch):
        monkeypatch.setattr(settings, "facebook_app_id", None)

        with pytest.raises(ServiceUnavailableError):
            facebook_service.authorization_url(test_agent)

    async def test_callback_connects_first_page(self, facebook_service, test_agent, http_stub):
        http_stub.on("GET", f"{GRAPH}/oauth/access_token", json={"access_token": "user-token"})
        http_stub.on("GET", f"{GRAPH}/me/accounts", json={
            "data": [
                {"id": "page-1", "name": "Casas Tamarindo", "access_token": "page-token"},
                {"id": "page-2", "name": "Otra", "access_token": "other-token"},
            ]
        })

        redirect = await facebook_service.handle_callback("code-1", create_oauth_state(test_agent.id), None)

        assert redirect == "http://app.test/settings/facebook?success=true"
        assert test_agent.facebook_page_id == "page-1"
        assert test_agent.facebook_access_token == "page-token"
        assert test_agent.facebook_connected_at is not None
        accounts_call = http_stub.calls("GET", f"{GRAPH}/me/accounts")[0]
        assert accounts_call.url.params["access_token"] == "user-token"

    async def test_callback_without_pages(self, facebook_service, test_agent, http_stub):
        http_stub.on("GET", f"{GRAPH}/oauth/access_token", json={"access_token": "user-token"})
        http_stub.on("GET", f"{GRAPH}/me/accounts", json={"data": []})

        redirect = await facebook_service.handle_callback("code-1", create_oauth_state(test_agent.id), None)
        assert redirect.endswith("?error=no_pages")

    @pytest.mark.parametrize("code, state, error, outcome", [
        ("code", "state", "access_denied", "error=denied"),
        (None, "state", None, "error=invalid"),
        ("code", "forged-state", None, "error=invalid"),
    ])
    async def test_callback_rejections(self, facebook_service, code, state, error, outcome):
        redirect = await facebook_service.handle_callback(code, state, error)
        assert redirect.endswith(outcome)

    async def test_callback_graph_failure(self, facebook_service, test_agent, http_stub):
        http_stub.on("GET", f"{GRAPH}/oauth/access_token", status_code=400,
                     json={"error": {"message": "Invalid verification code"}})

        redirect = await facebook_service.handle_callback("bad", create_oauth_state(test_agent.id), None)
        assert redirect.endswith("?error=server")

    async def test_disconnect(self, facebook_service, connected_agent):
        await facebook_service.disconnect(connected_agent)

        assert connected_agent.facebook_page_id is None
        assert not connected_agent.has_facebook_page


class TestFacebookPosts:
    """Test listing and importing page posts."""

    def test_count_images(self):
        post = {"attachments": {"data": [{
            "media": {"image": {"src": "https://cdn.fb.test/cover.jpg"}},
            "subattachments": {"data": [{}, {}, {}]},
        }]}}
        assert count_images(post) == 4
        assert count_images({}) == 0

    async def test_list_posts(self, facebook_service, connected_agent, http_stub):
        http_stub.on("GET", f"{GRAPH}/page-1/posts", json={"data": [
            {
                "id": "page-1_1",
                "message": POST_TEXT,
                "full_picture": "https://cdn.fb.test/1.jpg",
                "attachments": {"data": [{"media": {"image": {"src": "https://cdn.fb.test/1.jpg"}}}]},
                "created_time": "2026-02-01T10:00:00+0000",
            },
            {"id": "page-1_2"},
        ]})

        posts = await facebook_service.list_posts(connected_agent)

        assert posts[0]["image_count"] == 1
        assert posts[0]["has_images"] is True
        assert posts[1]["message"] == ""
        assert posts[1]["has_images"] is False

    async def test_list_posts_requires_page(self, facebook_service, test_agent):
        with pytest.raises(BadRequestError):
            await facebook_service.list_posts(test_agent)

    async def test_import_post_keeps_downloaded_images(self, facebook_service, connected_agent, http_stub, storage):
        http_stub.on("GET", f"{GRAPH}/post-1", json={
            "message": POST_TEXT,
            "attachments": {"data": [{
                "media": {"image": {"src": "https://cdn.fb.test/1.jpg"}},
                "subattachments": {"data": [{"media": {"image": {"src": "https://cdn.fb.test/2.jpg"}}}]},
            }]},
        })
        http_stub.on("GET", "https://cdn.fb.test/1.jpg", json=b"jpeg-1")

        result = await facebook_service.import_post(
            connected_agent, ImportPostRequest(post_id="post-1", property_type="condo", listing_type="rent")
        )

        assert result["imageCount"] == 1
        assert result["source"] == "facebook_import"
        prop = result["property"]
        assert prop["title"] == "Condo frente al mar"
        assert prop["listing_type"] == "rent"
        assert "/fb-import-" in prop["photos"][0]
        assert prop["photos"][0].endswith("/img-0.jpg")

    async def test_import_post_with_short_text(self, facebook_service, connected_agent, http_stub):
        http_stub.on("GET", f"{GRAPH}/post-1", json={"message": "Casa en venta"})

        with pytest.raises(BadRequestError):
            await facebook_service.import_post(connected_agent, ImportPostRequest(post_id="post-1"))

    async def test_import_post_without_images(self, facebook_service, connected_agent, http_stub):
        http_stub.on("GET", f"{GRAPH}/post-1", json={"message": POST_TEXT})

        with pytest.raises(BadRequestError):
            await facebook_service.import_post(connected_agent, ImportPostRequest(post_id="post-1"))

    async def test_import_post_when_no_image_downloads(self, facebook_service, connected_agent, http_stub):
        http_stub.on("GET", f"{GRAPH}/post-1", json={
            "message": POST_TEXT,
            "attachments": {"data": [{"media": {"image": {"src": "https://cdn.fb.test/gone.jpg"}}}]},
        })

        with pytest.raises(InternalServerError):
            await facebook_service.import_post(connected_agent, ImportPostRequest(post_id="post-1"))

    async def test_graph_error_payload(self, facebook_service, connected_agent, http_stub):
        http_stub.on("GET", f"{GRAPH}/page-1/posts", json={"error": {"message": "Token expired"}})

        with pytest.raises(ExternalServiceError, match="Token expired"):
            await facebook_service.list_posts(connected_agent)


class TestFacebookPublish:
    """Test publishing a listing as a page post."""

    async def collect(self, facebook_service, agent_id, property_id):
        return [event async for event in facebook_service.publish(agent_id, property_id)]

    def stub_graph(self, http_stub):
        counter = iter(range(1, 100))
        http_stub.on("POST", f"{GRAPH}/page-1/photos",
                     handler=lambda request: httpx.Response(200, json={"id": f"photo-{next(counter)}"}))
        http_stub.on("POST", f"{GRAPH}/page-1/feed", json={"id": "page-1_99"})

    async def test_publish_with_photos(self, facebook_service, connected_agent, http_stub, db_session):
        self.stub_graph(http_stub)
        prop = await PropertyFactory.create_property(
            db_session, connected_agent.id, title="Casa Azul", photos=["http://api.test/media/property-photos/a.jpg"]
        )

        events = await self.collect(facebook_service, connected_agent.id, prop.id)

        assert [e["progress"] for e in events] == [10, 20, 50, 60, 80, 90, 100]
        assert events[-1]["success"] is True
        assert events[-1]["postUrl"] == "https://facebook.com/page-1_99"

        feed = json.loads(http_stub.calls("POST", f"{GRAPH}/page-1/feed")[0].content)
        assert feed["attached_media"] == [{"media_fbid": "photo-1"}]
        assert feed["message"].startswith("🏡 Casa Azul")
        assert "$150,000" in feed["message"]

        records = await FacebookPostRepository(db_session).get_multi(filters={"property_id": prop.id})
        assert records[0].facebook_post_id == "page-1_99"

    async def test_publish_with_ai_flyer(self, facebook_service, db_session, http_stub, fake_ai):
        agent = await AgentFactory.create_agent(
            db_session,
            facebook_page_id="page-1",
            facebook_access_token="page-token",
            fb_ai_enabled=True,
            fb_template="modern",
        )
        self.stub_graph(http_stub)
        prop = await PropertyFactory.create_property(
            db_session, agent.id, photos=["http://api.test/media/property-photos/a.jpg"]
        )

        events = await self.collect(facebook_service, agent.id, prop.id)

        assert events[-1]["success"] is True
        assert len(http_stub.calls("POST", f"{GRAPH}/page-1/photos")) == 2
        assert "template style: modern" in fake_ai.image_prompts[0]

    async def test_publish_without_photos(self, facebook_service, connected_agent, db_session):
        prop = await PropertyFactory.create_property(db_session, connected_agent.id)

        events = await self.collect(facebook_service, connected_agent.id, prop.id)

        assert events[-1] == {"error": "The property has no images", "progress": 0}

    async def test_publish_graph_failure_becomes_error_event(
        self, facebook_service, connected_agent, http_stub, db_session
    ):
        http_stub.on("POST", f"{GRAPH}/page-1/photos", status_code=400,
                     json={"error": {"message": "Permissions error"}})
        prop = await PropertyFactory.create_property(
            db_session, connected_agent.id, photos=["http://api.test/media/property-photos/a.jpg"]
        )

        events = await self.collect(facebook_service, connected_agent.id, prop.id)

        assert events[-1]["progress"] == 0
        assert "Permissions error" in events[-1]["error"]

    async def test_publish_endpoint_streams_events(self, client, test_agent, test_property):
        response = await client.post(
            f"{settings.api_v1_prefix}/facebook/publish",
            json={"property_id": str(test_property.id)},
            headers=auth_headers_for(test_agent)
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        events = [json.loads(line[len("data: "):]) for line in response.text.splitlines() if line.startswith("data: ")]
        assert events[0]["progress"] == 10
        assert events[-1] == {"error": "Facebook is not connected", "progress": 0}

    def test_post_message_without_price(self):
        prop = Property(title="Lote", description="Terreno plano", city=None, state=None, address=None, price=None)
        message = build_post_message(prop)

        assert "📍 Location available" in message
        assert "💰 Price on request" in message


@pytest.fixture
def mux_configured(monkeypatch):
    monkeypatch.setattr(settings, "mux_token_id", "mux-id")
    monkeypatch.setattr(settings, "mux_token_secret", "mux-secret")


@pytest.fixture
def mux(http_client, mux_configured) -> MuxService:
    return MuxService(http_client, poll_interval=0)


class TestMuxService:
    """Test the video API client."""

    async def test_requires_credentials(self, http_client, monkeypatch):
        monkeypatch.setattr(settings, "mux_token_id", None)

        with pytest.raises(ServiceUnavailableError):
            await MuxService(http_client).create_upload()

    async def test_create_upload(self, mux, http_stub):
        http_stub.on("POST", f"{MUX}/uploads", json={"data": {"id": "up-1", "url": "https://storage.mux.test/up-1"}})

        result = await mux.create_upload()

        assert result == {"uploadUrl": "https://storage.mux.test/up-1", "uploadId": "up-1"}
        request = http_stub.calls("POST", f"{MUX}/uploads")[0]
        assert request.headers["authorization"].startswith("Basic ")
        assert json.loads(request.content)["new_asset_settings"]["playback_policy"] == ["public"]

    async def test_upload_status_with_asset(self, mux, http_stub):
        http_stub.on("GET", f"{MUX}/uploads/up-1", json={"data": {"status": "asset_created", "asset_id": "as-1"}})
        http_stub.on("GET", f"{MUX}/assets/as-1", json={"data": {"id": "as-1", "playback_ids": [{"id": "pb-1"}]}})

        assert await mux.get_upload("up-1") == {"status": "asset_created", "assetId": "as-1", "playbackId": "pb-1"}

    async def test_upload_status_waiting(self, mux, http_stub):
        http_stub.on("GET", f"{MUX}/uploads/up-1", json={"data": {"status": "waiting"}})

        assert await mux.get_upload("up-1") == {"status": "waiting", "assetId": None, "playbackId": None}

    async def test_missing_upload(self, mux):
        with pytest.raises(NotFoundError):
            await mux.get_upload("nope")

    async def test_server_error(self, mux, http_stub):
        http_stub.on("POST", f"{MUX}/uploads", status_code=500, json={"error": "boom"})

        with pytest.raises(ExternalServiceError):
            await mux.create_upload()

    async def test_compose_waits_for_assets(self, mux, http_stub):
        states = iter(["preparing", "ready"])
        http_stub.on("GET", f"{MUX}/assets/as-1", handler=lambda request: httpx.Response(
            200, json={"data": {"id": "as-1", "status": next(states), "playback_ids": [{"id": "pb-1"}]}}
        ))
        http_stub.on("GET", f"{MUX}/assets/as-2", json={
            "data": {"id": "as-2", "status": "ready", "playback_ids": [{"id": "pb-2"}]}
        })
        http_stub.on("POST", f"{MUX}/assets", json={"data": {"id": "as-3", "playback_ids": [{"id": "pb-3"}]}})

        result = await mux.compose(["as-1", "as-2"])

        assert result == {"assetId": "as-3", "playbackId": "pb-3"}
        body = json.loads(http_stub.calls("POST", f"{MUX}/assets")[0].content)
        assert body["input"] == [
            {"url": "https://stream.mux.com/pb-1.m3u8"},
            {"url": "https://stream.mux.com/pb-2.m3u8"},
        ]

    async def test_compose_requires_assets(self, mux):
        with pytest.raises(BadRequestError):
            await mux.compose([])

    async def test_compose_errored_asset(self, mux, http_stub):
        http_stub.on("GET", f"{MUX}/assets/as-1", json={"data": {"id": "as-1", "status": "errored"}})

        with pytest.raises(InternalServerError):
            await mux.compose(["as-1"])

    async def test_compose_stops_polling_after_a_failed_asset(self, mux, http_stub):
        http_stub.on("GET", f"{MUX}/assets/bad", json={"data": {"id": "bad", "status": "errored"}})
        http_stub.on("GET", f"{MUX}/assets/slow", json={"data": {"id": "slow", "status": "preparing"}})

        with pytest.raises(InternalServerError):
            await mux.compose(["bad", "slow"])
        for _ in range(5):
            await asyncio.sleep(0)

        assert http_stub.calls("GET", f"{MUX}/assets/slow") == []
        assert http_stub.calls("POST", f"{MUX}/assets") == []

    async def test_wait_times_out(self, mux, http_stub, monkeypatch):
        monkeypatch.setattr(settings, "mux_poll_attempts", 2)
        http_stub.on("GET", f"{MUX}/assets/as-1", json={"data": {"id": "as-1", "status": "preparing"}})

        with pytest.raises(InternalServerError, match="Timed out"):
            await mux.wait_for_asset("as-1")
        assert len(http_stub.calls("GET", f"{MUX}/assets/as-1")) == 2

    async def test_download_url(self, mux, http_stub):
        http_stub.on("GET", f"{MUX}/assets", json={"data": [
            {"id": "as-1", "playback_ids": [{"id": "pb-1"}]},
            {"id": "as-2", "playback_ids": [{"id": "pb-2"}], "static_renditions": {"files": [{"name": "high.mp4"}]}},
        ]})

        assert await mux.download_url("pb-2") == "https://stream.mux.com/pb-2/high.mp4"
        with pytest.raises(NotFoundError):
            await mux.download_url("pb-1")
        with pytest.raises(NotFoundError):
            await mux.download_url("pb-9")

    async def test_cleanup_orphans(self, mux, http_stub, db_session, test_agent):
        orphan = await PropertyFactory.create_property(db_session, test_agent.id, mux_upload_ids=["up-1", "up-2"])
        published = await PropertyFactory.create_property(
            db_session, test_agent.id, mux_upload_ids=["up-3"], video_urls=["https://stream.mux.com/pb.m3u8"]
        )
        http_stub.on("GET", f"{MUX}/uploads/up-1", json={"data": {"asset_id": "as-1"}})
        http_stub.on("DELETE", f"{MUX}/assets/as-1", status_code=204)

        cleaned = await mux.cleanup_orphans(db_session)

        assert cleaned == 1
        assert len(http_stub.calls("DELETE", f"{MUX}/assets/as-1")) == 1
        assert http_stub.calls("GET", f"{MUX}/uploads/up-3") == []
        repo = PropertyRepository(db_session)
        assert (await repo.get_by_id(orphan.id, refresh=True)).mux_upload_ids == []
        assert (await repo.get_by_id(published.id, refresh=True)).mux_upload_ids == ["up-3"]


@pytest.fixture
def paypal_configured(monkeypatch):
    monkeypatch.setattr(settings, "paypal_client_id", "pp-client")
    monkeypatch.setattr(settings, "paypal_client_secret", "pp-secret")
    monkeypatch.setattr(settings, "paypal_plan_id", "P-PRO")


class TestPaymentService:
    """Test PayPal subscriptions and billing webhooks."""

    async def test_requires_configuration(self, db_session, http_client, test_agent, monkeypatch):
        monkeypatch.setattr(settings, "paypal_plan_id", None)

        with pytest.raises(ServiceUnavailableError):
            await PaymentService(db_session, http_client).create_subscription(test_agent)

    async def test_create_subscription(self, db_session, http_client, http_stub, test_agent, paypal_configured):
        http_stub.on("POST", f"{PAYPAL}/v1/oauth2/token", json={"access_token": "pp-access"})
        http_stub.on("POST", f"{PAYPAL}/v1/billing/subscriptions", status_code=201, json={
            "id": "I-SUB1",
            "links": [
                {"rel": "self", "href": f"{PAYPAL}/v1/billing/subscriptions/I-SUB1"},
                {"rel": "approve", "href": "https://www.sandbox.paypal.com/webapps/billing/subscriptions?ba_token=X"},
            ],
        })

        result = await PaymentService(db_session, http_client).create_subscription(test_agent)

        assert result["subscriptionId"] == "I-SUB1"
        assert result["approvalUrl"].startswith("https://www.sandbox.paypal.com/")
        request = http_stub.calls("POST", f"{PAYPAL}/v1/billing/subscriptions")[0]
        assert request.headers["authorization"] == "Bearer pp-access"
        body = json.loads(request.content)
        assert body["plan_id"] == "P-PRO"
        assert body["custom_id"] == "agent@test.com"
        assert body["application_context"]["return_url"] == "http://api.test/api/v1/payments/success"

    async def test_token_failure(self, db_session, http_client, http_stub, test_agent, paypal_configured):
        http_stub.on("POST", f"{PAYPAL}/v1/oauth2/token", status_code=401, json={"error": "invalid_client"})

        with pytest.raises(ExternalServiceError):
            await PaymentService(db_session, http_client).create_subscription(test_agent)

    async def test_activation_and_cancellation(self, db_session, http_client, test_agent):
        service = PaymentService(db_session, http_client)

        await service.handle_webhook({
            "event_type": "BILLING.SUBSCRIPTION.ACTIVATED",
            "resource": {"id": "I-SUB1", "custom_id": "agent@test.com"},
        })
        assert test_agent.plan == PlanTier.PRO
        assert test_agent.paypal_subscription_id == "I-SUB1"
        assert test_agent.plan_started_at is not None

        await service.handle_webhook({
            "event_type": "BILLING.SUBSCRIPTION.CANCELLED",
            "resource": {"id": "I-SUB1"},
        })
        assert test_agent.plan == PlanTier.FREE
        assert test_agent.paypal_subscription_id is None

    async def test_unknown_events_are_acknowledged(self, db_session, http_client):
        result = await PaymentService(db_session, http_client).handle_webhook({"event_type": "PAYMENT.SALE.COMPLETED"})
        assert result == {"success": True}

    def test_success_redirect(self, db_session, http_client):
        service = PaymentService(db_session, http_client)

        assert service.success_redirect("I-SUB1") == "http://app.test/dashboard?success=subscribed"
        assert service.success_redirect(None) == "http://app.test/pricing?error=missing_id"
