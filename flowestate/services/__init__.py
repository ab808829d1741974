"""
Service layer for business logic implementation.
Each service owns the rules of one area and talks to the database through repositories.
"""

from .auth import AuthService
from .agent import AgentService
from .currency import CurrencyService
from .property import PropertyService
from .custom_field import CustomFieldService
from .upload_token import UploadTokenService
from .analytics import AnalyticsService
from .storage import StorageService
from .ai import AIService
from .facebook import FacebookService
from .mux import MuxService
from .payments import PaymentService
from .watermark import WatermarkService
from .agent_card import AgentCardService
from .flyer import FlyerService
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "AgentService",
    "CurrencyService",
    "PropertyService",
    "CustomFieldService",
    "UploadTokenService",
    "AnalyticsService",
    "StorageService",
    "AIService",
    "FacebookService",
    "MuxService",
    "PaymentService",
    "WatermarkService",
    "AgentCardService",
    "FlyerService",
    "ErrorHandlerService",
]
