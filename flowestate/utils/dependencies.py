"""
FastAPI dependency injection utilities for authentication, sessions and shared clients.
Provides reusable dependencies for route protection and service construction.
"""

from typing import Optional
from fastapi import Depends, Header, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import httpx

from flowestate.database import get_db, AsyncSessionLocal
from flowestate.models.agent import Agent
from flowestate.services.agent import AgentService
from flowestate.services.agent_card import AgentCardService
from flowestate.services.ai import AIService
from flowestate.services.analytics import AnalyticsService
from flowestate.services.auth import AuthService
from flowestate.services.currency import CurrencyService
from flowestate.services.custom_field import CustomFieldService
from flowestate.services.facebook import FacebookService
from flowestate.services.flyer import FlyerService
from flowestate.services.mux import MuxService
from flowestate.services.payments import PaymentService
from flowestate.services.property import PropertyService
from flowestate.services.storage import StorageService
from flowestate.services.upload_token import UploadTokenService
from flowestate.services.watermark import WatermarkService
from flowestate.utils.exceptions import (
    UnauthorizedError,
    InvalidTokenError,
    TokenExpiredError,
    InvalidUploadTokenError,
)
from flowestate.utils.principal import Principal

HTTP_TIMEOUT_SECONDS = 30.0

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_http_client(request: Request) -> httpx.AsyncClient:
    """
    Shared outbound HTTP client, created on first use and closed at shutdown.
    """
    client = getattr(request.app.state, "http_client", None)
    if client is None:
        client = httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS)
        request.app.state.http_client = client
    return client


def get_session_factory() -> async_sessionmaker:
    """Session factory for work that outlives the request, such as streamed responses."""
    return AsyncSessionLocal


def get_storage_service() -> StorageService:
    return StorageService()


def get_ai_service() -> AIService:
    return AIService()


async def get_auth_service(
    db: AsyncSession = Depends(get_db),
    http_client: httpx.AsyncClient = Depends(get_http_client)
) -> AuthService:
    return AuthService(db, http_client)


async def get_current_agent(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Agent:
    """
    Get the signed-in agent from the session JWT.

    Raises:
        UnauthorizedError: If no token is provided or the agent is gone
        InvalidTokenError: If the token is invalid
        TokenExpiredError: If the token has expired
    """
    if not credentials:
        raise UnauthorizedError("Authentication token required")

    try:
        return await auth_service.get_current_agent(credentials.credentials)
    except (InvalidTokenError, TokenExpiredError, UnauthorizedError):
        raise
    except Exception as e:
        raise UnauthorizedError(f"Authentication failed: {str(e)}")


async def _resolve_principal(
    credentials: Optional[HTTPAuthorizationCredentials],
    upload_token: Optional[str],
    auth_service: AuthService,
    db: AsyncSession,
    require_unspent: bool
) -> Principal:
    if credentials:
        return Principal(await auth_service.get_current_agent(credentials.credentials))

    if not upload_token:
        raise UnauthorizedError("Authentication token or upload token required")

    token = await UploadTokenService(db).authorize(upload_token, require_unspent=require_unspent)
    if not token.agent:
        raise InvalidUploadTokenError("Upload token has no agent")
    return Principal(token.agent, token)


async def get_upload_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_upload_token: Optional[str] = Header(None),
    auth_service: AuthService = Depends(get_auth_service),
    db: AsyncSession = Depends(get_db)
) -> Principal:
    """
    Caller of a request that writes new content: a session, or an upload token
    with a use remaining. The session wins when both are sent.
    """
    return await _resolve_principal(credentials, x_upload_token, auth_service, db, require_unspent=True)


async def get_edit_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_upload_token: Optional[str] = Header(None),
    auth_service: AuthService = Depends(get_auth_service),
    db: AsyncSession = Depends(get_db)
) -> Principal:
    """Caller of an update: a session, or an active unexpired upload token even if spent."""
    return await _resolve_principal(credentials, x_upload_token, auth_service, db, require_unspent=False)


async def get_agent_service(db: AsyncSession = Depends(get_db)) -> AgentService:
    return AgentService(db)


async def get_currency_service(db: AsyncSession = Depends(get_db)) -> CurrencyService:
    return CurrencyService(db)


async def get_property_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    ai: AIService = Depends(get_ai_service)
) -> PropertyService:
    return PropertyService(db, storage=storage, ai=ai)


async def get_custom_field_service(db: AsyncSession = Depends(get_db)) -> CustomFieldService:
    return CustomFieldService(db)


async def get_upload_token_service(db: AsyncSession = Depends(get_db)) -> UploadTokenService:
    return UploadTokenService(db)


async def get_analytics_service(db: AsyncSession = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(db)


async def get_facebook_service(
    db: AsyncSession = Depends(get_db),
    http_client: httpx.AsyncClient = Depends(get_http_client),
    storage: StorageService = Depends(get_storage_service),
    ai: AIService = Depends(get_ai_service)
) -> FacebookService:
    return FacebookService(db, http_client, storage=storage, ai=ai)


async def get_mux_service(http_client: httpx.AsyncClient = Depends(get_http_client)) -> MuxService:
    return MuxService(http_client)


async def get_payment_service(
    db: AsyncSession = Depends(get_db),
    http_client: httpx.AsyncClient = Depends(get_http_client)
) -> PaymentService:
    return PaymentService(db, http_client)


async def get_watermark_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service)
) -> WatermarkService:
    return WatermarkService(db, storage=storage)


async def get_agent_card_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service)
) -> AgentCardService:
    return AgentCardService(db, storage=storage)


async def get_flyer_service(
    db: AsyncSession = Depends(get_db),
    http_client: httpx.AsyncClient = Depends(get_http_client),
    storage: StorageService = Depends(get_storage_service),
    ai: AIService = Depends(get_ai_service)
) -> FlyerService:
    return FlyerService(db, ai=ai, storage=storage, http_client=http_client)
