"""
Facebook page integration: OAuth connection, post import and listing publication.
All Graph API calls go through one httpx client so tests can swap the transport.
"""

from typing import Any, AsyncIterator, Dict, List, Optional
from urllib.parse import urlencode
from sqlalchemy.ext.asyncio import AsyncSession
import httpx
import uuid
import logging

from flowestate.config import get_settings
from flowestate.models.agent import Agent
from flowestate.models.property import Property
from flowestate.repositories.agent import AgentRepository
from flowestate.repositories.facebook_post import FacebookPostRepository
from flowestate.repositories.property import PropertyRepository
from flowestate.schemas.facebook import AISettingsUpdate, ImportPostRequest
from flowestate.services.ai import AIService
from flowestate.services.flyer import FlyerService
from flowestate.services.storage import StorageService, PROPERTY_PHOTOS_BUCKET
from flowestate.utils.auth import create_oauth_state, verify_oauth_state
from flowestate.utils.dates import utc_now
from flowestate.utils.exceptions import (
    BadRequestError,
    ExternalServiceError,
    InternalServerError,
    ServiceUnavailableError,
)
from flowestate.utils.slugs import now_millis

logger = logging.getLogger(__name__)

OAUTH_SCOPES = "pages_show_list,pages_read_engagement,pages_manage_posts"
POSTS_LIMIT = 20
MIN_POST_TEXT_LENGTH = 50
SETTINGS_PAGE = "/settings/facebook"


def collect_image_urls(post: Dict[str, Any]) -> List[str]:
    """Image URLs of a post's attachments, album photos included."""
    urls = []
    for attachment in (post.get("attachments") or {}).get("data", []):
        src = ((attachment.get("media") or {}).get("image") or {}).get("src")
        if src:
            urls.append(src)
        for sub in (attachment.get("subattachments") or {}).get("data", []):
            sub_src = ((sub.get("media") or {}).get("image") or {}).get("src")
            if sub_src:
                urls.append(sub_src)
    return urls


def count_images(post: Dict[str, Any]) -> int:
    count = 0
    for attachment in (post.get("attachments") or {}).get("data", []):
        if (attachment.get("media") or {}).get("image"):
            count = 1
        count += len((attachment.get("subattachments") or {}).get("data", []))
    return count


def build_post_message(prop: Property) -> str:
    location = ", ".join(part for part in (prop.city, prop.state) if part) or prop.address or "Location available"
    if prop.price is not None:
        symbol = prop.currency.symbol if prop.currency else "$"
        price = f"{symbol}{float(prop.price):,.0f}"
    else:
        price = "Price on request"
    return (
        f"🏡 {prop.title}\n\n"
        f"📍 {location}\n"
        f"💰 {price}\n\n"
        f"{prop.description or ''}\n\n"
        "📞 Contact me for more information!"
    ).strip()


class FacebookService:
    """
    Facebook Graph API operations for an agent's page.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        http_client: httpx.AsyncClient,
        storage: Optional[StorageService] = None,
        ai: Optional[AIService] = None
    ):
        self.db = db_session
        self.http = http_client
        self.settings = get_settings()
        self.storage = storage or StorageService()
        self.ai = ai or AIService()
        self.agent_repo = AgentRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.post_repo = FacebookPostRepository(db_session)

    @property
    def redirect_uri(self) -> str:
        base = self.settings.public_base_url.rstrip("/")
        return f"{base}{self.settings.api_v1_prefix}/facebook/callback"

    def _settings_redirect(self, query: str) -> str:
        return f"{self.settings.app_url.rstrip('/')}{SETTINGS_PAGE}?{query}"

    async def _graph(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        """
        Call the Graph API and return its JSON body.

        Raises:
            ExternalServiceError: On transport errors or a Graph error payload
        """
        url = f"{self.settings.facebook_graph_url.rstrip('/')}/{path.lstrip('/')}"
        try:
            response = await self.http.request(method, url, **kwargs)
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Facebook Graph request {method} {path} failed: {e}")
            raise ExternalServiceError("Facebook", str(e))

        if response.status_code >= 400 or (isinstance(data, dict) and data.get("error")):
            message = (data.get("error") or {}).get("message") if isinstance(data, dict) else None
            logger.error(f"Facebook Graph error on {path}: {message or response.status_code}")
            raise ExternalServiceError("Facebook", message or f"HTTP {response.status_code}")
        return data

    def _require_page(self, agent: Agent) -> None:
        if not agent.has_facebook_page:
            raise BadRequestError("No Facebook page is connected")

    def authorization_url(self, agent: Agent) -> str:
        """
        OAuth dialog URL for connecting a page.

        Raises:
            ServiceUnavailableError: If the Facebook app is not configured
        """
        if not self.settings.facebook_app_id:
            raise ServiceUnavailableError("Facebook integration is not configured")

        query = urlencode({
            "client_id": self.settings.facebook_app_id,
            "redirect_uri": self.redirect_uri,
            "scope": OAUTH_SCOPES,
            "state": create_oauth_state(agent.id),
        })
        return f"{self.settings.facebook_dialog_url}?{query}"

    async def handle_callback(self, code: Optional[str], state: Optional[str], error: Optional[str]) -> str:
        """
        Finish the OAuth flow and connect the agent's first page.

        Args:
            code: Authorization code
            state: Signed state naming the agent
            error: Error reported by Facebook

        Returns:
            URL of the settings page carrying the outcome
        """
        if error:
            logger.warning(f"Facebook authorization denied: {error}")
            return self._settings_redirect("error=denied")
        if not code or not state:
            return self._settings_redirect("error=invalid")

        try:
            agent_id = verify_oauth_state(state)
        except Exception as e:
            logger.warning(f"Rejected Facebook OAuth state: {e}")
            return self._settings_redirect("error=invalid")

        try:
            token_data = await self._graph("GET", "oauth/access_token", params={
                "client_id": self.settings.facebook_app_id,
                "client_secret": self.settings.facebook_app_secret,
                "code": code,
                "redirect_uri": self.redirect_uri,
            })
            pages = (await self._graph("GET", "me/accounts", params={
                "access_token": token_data.get("access_token"),
            })).get("data") or []

            if not pages:
                return self._settings_redirect("error=no_pages")

            page = pages[0]
            updated = await self.agent_repo.update(agent_id, {
                "facebook_page_id": page["id"],
                "facebook_page_name": page.get("name"),
                "facebook_access_token": page["access_token"],
                "facebook_connected_at": utc_now(),
            })
            if not updated:
                return self._settings_redirect("error=invalid")

            logger.info(f"Agent {agent_id} connected Facebook page {page['id']}")
            return self._settings_redirect("success=true")

        except Exception as e:
            logger.error(f"Facebook callback failed: {e}")
            return self._settings_redirect("error=server")

    async def disconnect(self, agent: Agent) -> None:
        await self.agent_repo.update(
            agent.id,
            {
                "facebook_page_id": None,
                "facebook_page_name": None,
                "facebook_access_token": None,
                "facebook_connected_at": None,
            },
            exclude_none=False
        )
        logger.info(f"Agent {agent.email} disconnected Facebook")

    async def update_ai_settings(self, agent: Agent, settings: AISettingsUpdate) -> Agent:
        return await self.agent_repo.update(
            agent.id,
            {
                "fb_ai_enabled": settings.enabled,
                "fb_brand_color_primary": settings.brand_color_primary,
                "fb_brand_color_secondary": settings.brand_color_secondary,
                "fb_template": settings.template,
            },
            exclude_none=False
        )

    async def list_posts(self, agent: Agent) -> List[Dict[str, Any]]:
        """
        Latest posts of the connected page.

        Raises:
            BadRequestError: If no page is connected
        """
        self._require_page(agent)

        data = await self._graph("GET", f"{agent.facebook_page_id}/posts", params={
            "fields": "id,message,full_picture,attachments{media,subattachments},created_time,permalink_url",
            "limit": POSTS_LIMIT,
            "access_token": agent.facebook_access_token,
        })

        posts = []
        for post in data.get("data") or []:
            image_count = count_images(post)
            posts.append({
                "id": post.get("id"),
                "message": post.get("message") or "",
                "thumbnail": post.get("full_picture"),
                "created_time": post.get("created_time"),
                "image_count": image_count,
                "has_images": image_count > 0,
                "permalink_url": post.get("permalink_url"),
            })
        return posts

    async def import_post(self, agent: Agent, request: ImportPostRequest) -> Dict[str, Any]:
        """
        Turn a page post into draft listing data with stored photos.

        Args:
            agent: Agent importing the post
            request: Post ID, target combination, language and custom fields

        Returns:
            property (draft fields plus photos), imageCount and source

        Raises:
            BadRequestError: If the post has too little text or no images
            InternalServerError: If none of the images could be stored
        """
        if not agent.facebook_access_token:
            raise BadRequestError("No Facebook page is connected")

        post = await self._graph("GET", request.post_id, params={
            "fields": "message,attachments{media,subattachments{media}}",
            "access_token": agent.facebook_access_token,
        })

        text = (post.get("message") or "").strip()
        if len(text) < MIN_POST_TEXT_LENGTH:
            raise BadRequestError(f"The post needs at least {MIN_POST_TEXT_LENGTH} characters of text")

        image_urls = collect_image_urls(post)
        if not image_urls:
            raise BadRequestError("The post has no images")

        folder = f"{agent.id}/fb-import-{now_millis()}"
        photos = []
        for i, image_url in enumerate(image_urls):
            try:
                response = await self.http.get(image_url)
                response.raise_for_status()
                photos.append(
                    await self.storage.upload(PROPERTY_PHOTOS_BUCKET, f"{folder}/img-{i}.jpg", response.content)
                )
            except Exception as e:
                logger.error(f"Failed to import image {i + 1}/{len(image_urls)} of post {request.post_id}: {e}")

        if not photos:
            raise InternalServerError("None of the post images could be downloaded")

        property_data = await self.ai.extract_from_post(text, request.language, request.custom_fields)
        property_data.update({
            "property_type": request.property_type,
            "listing_type": request.listing_type,
            "photos": photos,
        })

        logger.info(f"Imported post {request.post_id} with {len(photos)}/{len(image_urls)} images")
        return {
            "success": True,
            "property": property_data,
            "imageCount": len(photos),
            "source": "facebook_import",
        }

    async def publish(self, agent_id: uuid.UUID, property_id: uuid.UUID) -> AsyncIterator[Dict[str, Any]]:
        """
        Publish a listing to the connected page, yielding progress events.

        Args:
            agent_id: Publishing agent
            property_id: Listing to publish

        Yields:
            {"message", "progress"} events, {"error", "progress": 0} on failure,
            and a final event with success and postUrl
        """
        try:
            yield {"message": "Loading listing...", "progress": 10}

            agent = await self.agent_repo.get_by_id(agent_id)
            if not agent or not agent.has_facebook_page:
                yield {"error": "Facebook is not connected", "progress": 0}
                return

            prop = await self.property_repo.get_owned(property_id, agent.id)
            if not prop:
                yield {"error": "Property not found", "progress": 0}
                return

            yield {"message": "Preparing images...", "progress": 20}
            image_urls = list(prop.photos or [])
            if not image_urls:
                yield {"error": "The property has no images", "progress": 0}
                return

            flyer_url = None
            if agent.fb_ai_enabled:
                yield {"message": "Generating AI design...", "progress": 30}
                try:
                    flyer = await FlyerService(self.db, ai=self.ai, storage=self.storage).generate(
                        agent,
                        self._flyer_instructions(agent),
                        property_id=prop.id,
                    )
                    flyer_url = flyer["imageUrl"]
                    image_urls.insert(0, flyer_url)
                    yield {"message": "Design generated", "progress": 50}
                except Exception as e:
                    logger.warning(f"Flyer generation failed, publishing original photos: {e}")
                    yield {"message": "Continuing without AI design...", "progress": 50}
            else:
                yield {"message": "Skipping AI design", "progress": 50}

            yield {"message": "Uploading images to Facebook...", "progress": 60}
            photo_ids = []
            for image_url in image_urls:
                uploaded = await self._graph("POST", f"{agent.facebook_page_id}/photos", json={
                    "url": image_url,
                    "published": False,
                    "access_token": agent.facebook_access_token,
                })
                photo_ids.append(uploaded["id"])

            yield {"message": "Publishing to Facebook...", "progress": 80}
            published = await self._graph("POST", f"{agent.facebook_page_id}/feed", json={
                "message": build_post_message(prop),
                "attached_media": [{"media_fbid": photo_id} for photo_id in photo_ids],
                "access_token": agent.facebook_access_token,
            })

            yield {"message": "Saving record...", "progress": 90}
            record = await self.post_repo.create({
                "property_id": prop.id,
                "agent_id": agent.id,
                "facebook_post_id": published["id"],
                "flyer_url": flyer_url,
                "published_at": utc_now(),
            })

            logger.info(f"Property {prop.slug} published to Facebook as {published['id']}")
            yield {
                "message": "Published successfully!",
                "progress": 100,
                "success": True,
                "postUrl": record.post_url,
            }

        except Exception as e:
            logger.error(f"Facebook publish of property {property_id} failed: {e}")
            detail = getattr(e, "detail", None) or str(e) or "Failed to publish"
            yield {"error": detail, "progress": 0}

    @staticmethod
    def _flyer_instructions(agent: Agent) -> str:
        parts = ["Social media real estate ad"]
        if agent.fb_template:
            parts.append(f"template style: {agent.fb_template}")
        if agent.fb_brand_color_primary:
            parts.append(f"primary brand color {agent.fb_brand_color_primary}")
        if agent.fb_brand_color_secondary:
            parts.append(f"secondary brand color {agent.fb_brand_color_secondary}")
        return ", ".join(parts)
