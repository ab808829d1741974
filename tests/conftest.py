"""
Test configuration and fixtures for the Flow Estate API.
Provides database fixtures, stub integrations, test data factories and common test utilities.
"""

import io
import os
import tempfile

# Settings are read once at import time, so the environment is prepared first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENVIRONMENT"] = "testing"
os.environ["JWT_SECRET_KEY"] = "flowestate-test-secret-key-0123456789abcdef"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="flowestate-uploads-")
os.environ["APP_URL"] = "http://app.test"
os.environ["PUBLIC_BASE_URL"] = "http://api.test"

import uuid
from decimal import Decimal
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import flowestate.models  # noqa: F401
from flowestate.database import Base, get_db
from flowestate.main import app
from flowestate.models.agent import Agent, PlanTier
from flowestate.models.currency import Currency
from flowestate.models.property import Property, PropertyType, ListingType, PropertyStatus
from flowestate.repositories.agent import AgentRepository
from flowestate.repositories.currency import CurrencyRepository
from flowestate.repositories.property import PropertyRepository
from flowestate.services.ai import AIService
from flowestate.services.storage import StorageService
from flowestate.utils.auth import create_access_token
from flowestate.utils.dependencies import (
    get_ai_service,
    get_http_client,
    get_session_factory,
    get_storage_service,
)


TEST_DATABASE_URL = "sqlite+aiosqlite://"

Route = Union[Tuple[int, Any], Callable[[httpx.Request], httpx.Response]]


class HTTPStub:
    """
    Outbound HTTP double for httpx.MockTransport.
    Routes are keyed by method and URL without query string; unknown URLs answer 404.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Route] = {}
        self.requests: List[httpx.Request] = []

    def on(self, method: str, url: str, status_code: int = 200, json: Any = None,
           handler: Optional[Callable[[httpx.Request], httpx.Response]] = None) -> None:
        self.routes[(method.upper(), url)] = handler or (status_code, json)

    def calls(self, method: str, url: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method.upper() and self._url(r) == url]

    @staticmethod
    def _url(request: httpx.Request) -> str:
        return str(request.url.copy_with(query=None))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, self._url(request)))
        if route is None:
            return httpx.Response(404, json={"error": "not mocked"})
        if callable(route):
            return route(request)
        status_code, payload = route
        if isinstance(payload, bytes):
            return httpx.Response(status_code, content=payload)
        return httpx.Response(status_code, json=payload)


class FakeAIService(AIService):
    """AI double returning canned results and recording what it was asked."""

    def __init__(self):
        super().__init__()
        self.listing: Dict[str, Any] = {
            "title": "Casa en Tamarindo",
            "description": "Casa de tres habitaciones cerca de la playa",
            "price": 250000,
            "city": "Tamarindo",
            "bedrooms": 3,
        }
        self.post_data: Dict[str, Any] = {
            "title": "Condo frente al mar",
            "description": "Condo amueblado con piscina",
            "price": 180000,
            "property_type": "condo",
            "listing_type": "sale",
            "custom_fields_data": {},
        }
        self.translations: List[Tuple[str, str]] = []
        self.image_prompts: List[str] = []
        self.base_images: List[Optional[bytes]] = []

    async def generate_listing(self, transcription: str):
        return dict(self.listing), 321

    async def extract_from_post(self, text, language, custom_fields):
        return dict(self.post_data)

    async def translate_text(self, text: str, target_language: str) -> str:
        self.translations.append((text, target_language))
        return f"[{target_language}] {text}"

    async def transcribe(self, filename: str, content: bytes, language: str = "es") -> str:
        return "Casa de tres habitaciones con piscina en Tamarindo"

    async def write_flyer_prompt(self, property_summary: str, instructions: str) -> str:
        prompt = f"Flyer: {instructions}"
        self.image_prompts.append(prompt)
        return prompt

    async def generate_image(self, prompt: str, base_image: Optional[bytes] = None) -> bytes:
        self.base_images.append(base_image)
        return b"\x89PNG\r\n\x1a\nflyer"


@pytest.fixture
async def db_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker:
    return async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


@pytest.fixture
def storage(tmp_path) -> StorageService:
    return StorageService(base_dir=tmp_path / "storage", public_base_url="http://api.test")


@pytest.fixture
def fake_ai() -> FakeAIService:
    return FakeAIService()


@pytest.fixture
def http_stub() -> HTTPStub:
    return HTTPStub()


@pytest.fixture
async def http_client(http_stub: HTTPStub) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(http_stub)) as client:
        yield client


@pytest.fixture
async def client(
    db_session: AsyncSession,
    session_factory: async_sessionmaker,
    storage: StorageService,
    fake_ai: FakeAIService,
    http_client: httpx.AsyncClient
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Async test client with database, storage, AI and outbound HTTP overridden."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_storage_service] = lambda: storage
    app.dependency_overrides[get_ai_service] = lambda: fake_ai
    app.dependency_overrides[get_http_client] = lambda: http_client

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


# Test data factories
class AgentFactory:
    """Factory for creating test agents."""

    @staticmethod
    def create_agent_data(
        email: str = None,
        name: str = "Test Agent",
        username: str = None,
        plan: PlanTier = PlanTier.FREE,
        **overrides
    ) -> dict:
        """Create agent data dictionary."""
        suffix = uuid.uuid4().hex[:8]
        data = {
            "email": email or f"agent{suffix}@example.com",
            "name": name,
            "username": username or f"agent{suffix}",
            "credits": 3,
            "plan": plan,
        }
        data.update(overrides)
        return data

    @staticmethod
    async def create_agent(db_session: AsyncSession, **kwargs) -> Agent:
        """Create a test agent in the database."""
        return await AgentRepository(db_session).create(AgentFactory.create_agent_data(**kwargs))


class PropertyFactory:
    """Factory for creating test properties."""

    @staticmethod
    def create_property_data(
        agent_id: uuid.UUID,
        title: str = "Test Property",
        description: str = "A beautiful test property",
        slug: str = None,
        **overrides
    ) -> dict:
        """Create property data dictionary."""
        data = {
            "agent_id": agent_id,
            "title": title,
            "description": description,
            "slug": slug or f"test-property-{uuid.uuid4().hex[:8]}",
            "price": Decimal("150000.00"),
            "city": "Tamarindo",
            "state": "Guanacaste",
            "property_type": PropertyType.HOUSE,
            "listing_type": ListingType.SALE,
            "status": PropertyStatus.ACTIVE,
            "photos": [],
            "custom_fields_data": {},
        }
        data.update(overrides)
        return data

    @staticmethod
    async def create_property(db_session: AsyncSession, agent_id: uuid.UUID, **kwargs) -> Property:
        """Create a test property in the database."""
        data = PropertyFactory.create_property_data(agent_id, **kwargs)
        return await PropertyRepository(db_session).create(data)


# Common test fixtures
@pytest.fixture
async def usd(db_session: AsyncSession) -> Currency:
    return await CurrencyRepository(db_session).create({
        "code": "USD", "symbol": "$", "name": "US Dollar", "is_default": True, "is_active": True
    })


@pytest.fixture
async def test_agent(db_session: AsyncSession) -> Agent:
    """Create a free-plan test agent."""
    return await AgentFactory.create_agent(db_session, email="agent@test.com", username="testagent")


@pytest.fixture
async def other_agent(db_session: AsyncSession) -> Agent:
    return await AgentFactory.create_agent(db_session, email="other@test.com", username="otheragent")


@pytest.fixture
async def test_property(db_session: AsyncSession, test_agent: Agent) -> Property:
    """Create a test property owned by the test agent."""
    return await PropertyFactory.create_property(db_session, test_agent.id, slug="casa-playa-abc123")


def auth_headers_for(agent: Agent) -> Dict[str, str]:
    """Session bearer header for an agent."""
    token = create_access_token(agent_id=agent.id, email=agent.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(test_agent: Agent) -> Dict[str, str]:
    return auth_headers_for(test_agent)


def create_test_image(format: str = "JPEG", size: Tuple[int, int] = (64, 48)) -> bytes:
    """Create an in-memory test image."""
    image = Image.new("RGB", size, color="red")
    output = io.BytesIO()
    image.save(output, format=format)
    return output.getvalue()
