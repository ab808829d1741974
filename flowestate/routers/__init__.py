"""
API route handlers for the Flow Estate API.
"""

from .auth import router as auth_router
from .agents import router as agents_router
from .currencies import router as currencies_router
from .properties import router as properties_router
from .custom_fields import router as custom_fields_router
from .upload_tokens import router as upload_tokens_router
from .analytics import router as analytics_router
from .facebook import router as facebook_router
from .videos import router as videos_router
from .payments import router as payments_router
from .watermark import router as watermark_router
from .agent_cards import router as agent_cards_router
from .flyers import router as flyers_router
from .media import router as media_router

# Routers mounted under the versioned API prefix
api_routers = [
    auth_router,
    agents_router,
    currencies_router,
    properties_router,
    custom_fields_router,
    upload_tokens_router,
    analytics_router,
    facebook_router,
    videos_router,
    payments_router,
    watermark_router,
    agent_cards_router,
    flyers_router,
]

__all__ = ["api_routers", "media_router"]
