"""
Facebook page integration endpoints.
Publishing streams progress to the browser as server-sent events.
"""

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import RedirectResponse, StreamingResponse
from sqlalchemy.ext.asyncio import async_sessionmaker
from typing import Any, AsyncIterator, Dict, Optional
import httpx
import json
import uuid

from flowestate.models.agent import Agent
from flowestate.schemas.error import get_common_error_responses, get_integration_error_responses
from flowestate.schemas.facebook import AISettingsUpdate, ImportPostRequest, PublishRequest
from flowestate.services.ai import AIService
from flowestate.services.facebook import FacebookService
from flowestate.services.storage import StorageService
from flowestate.utils.dependencies import (
    get_ai_service,
    get_current_agent,
    get_facebook_service,
    get_http_client,
    get_session_factory,
    get_storage_service,
)

router = APIRouter(prefix="/facebook", tags=["Facebook"])


@router.get(
    "/auth",
    status_code=status.HTTP_302_FOUND,
    summary="Start Facebook connection",
    description="Redirect to the Facebook OAuth dialog to connect a page."
)
async def start_auth(
    current_agent: Agent = Depends(get_current_agent),
    facebook_service: FacebookService = Depends(get_facebook_service)
) -> RedirectResponse:
    return RedirectResponse(facebook_service.authorization_url(current_agent), status_code=status.HTTP_302_FOUND)


@router.get(
    "/callback",
    status_code=status.HTTP_302_FOUND,
    summary="Facebook OAuth callback",
    description="Finish the OAuth flow and redirect to the settings page with the outcome."
)
async def oauth_callback(
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    facebook_service: FacebookService = Depends(get_facebook_service)
) -> RedirectResponse:
    url = await facebook_service.handle_callback(code, state, error)
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


@router.post("/disconnect", summary="Disconnect Facebook page")
async def disconnect(
    current_agent: Agent = Depends(get_current_agent),
    facebook_service: FacebookService = Depends(get_facebook_service)
) -> Dict[str, Any]:
    await facebook_service.disconnect(current_agent)
    return {"success": True}


@router.put("/ai-settings", summary="Update AI flyer settings")
async def update_ai_settings(
    settings: AISettingsUpdate,
    current_agent: Agent = Depends(get_current_agent),
    facebook_service: FacebookService = Depends(get_facebook_service)
) -> Dict[str, Any]:
    agent = await facebook_service.update_ai_settings(current_agent, settings)
    return {
        "success": True,
        "settings": {
            "enabled": agent.fb_ai_enabled,
            "brand_color_primary": agent.fb_brand_color_primary,
            "brand_color_secondary": agent.fb_brand_color_secondary,
            "template": agent.fb_template,
        },
    }


@router.get(
    "/posts",
    summary="Recent page posts",
    responses={**get_common_error_responses(), **get_integration_error_responses()}
)
async def list_posts(
    current_agent: Agent = Depends(get_current_agent),
    facebook_service: FacebookService = Depends(get_facebook_service)
) -> Dict[str, Any]:
    posts = await facebook_service.list_posts(current_agent)
    return {"success": True, "posts": posts, "count": len(posts)}


@router.post(
    "/import",
    summary="Import a page post as a draft listing",
    description="Download the post images and extract listing fields from its text with AI.",
    responses={**get_common_error_responses(), **get_integration_error_responses()}
)
async def import_post(
    request: ImportPostRequest,
    current_agent: Agent = Depends(get_current_agent),
    facebook_service: FacebookService = Depends(get_facebook_service)
) -> Dict[str, Any]:
    return await facebook_service.import_post(current_agent, request)


async def _publish_events(
    session_factory: async_sessionmaker,
    http_client: httpx.AsyncClient,
    storage: StorageService,
    ai: AIService,
    agent_id: uuid.UUID,
    property_id: uuid.UUID
) -> AsyncIterator[str]:
    async with session_factory() as session:
        facebook_service = FacebookService(session, http_client, storage=storage, ai=ai)
        async for event in facebook_service.publish(agent_id, property_id):
            yield f"data: {json.dumps(event)}\n\n"


@router.post(
    "/publish",
    summary="Publish a listing to the page",
    description="Streams text/event-stream progress events; the last one carries postUrl or an error.",
    response_class=StreamingResponse
)
async def publish(
    request: PublishRequest,
    current_agent: Agent = Depends(get_current_agent),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    http_client: httpx.AsyncClient = Depends(get_http_client),
    storage: StorageService = Depends(get_storage_service),
    ai: AIService = Depends(get_ai_service)
) -> StreamingResponse:
    return StreamingResponse(
        _publish_events(session_factory, http_client, storage, ai, current_agent.id, request.property_id),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"}
    )
