"""
Pydantic schemas for request/response validation.
"""

from .auth import GoogleSignInRequest, SessionAgent, SessionResponse, SessionInfo
from .agent import ProfileUpdate, CurrencyUpdate, LanguageUpdate, LanguageResponse, CurrentPlanResponse
from .property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyCreatedResponse,
    PropertyCopyResponse,
    TranslateRequest,
    GenerateRequest,
    PhotoUploadResponse,
    TranscriptionResponse,
)
from .custom_field import CustomFieldCreate, CustomFieldUpdate, CustomFieldClone, SuggestFieldsRequest
from .upload_token import UploadTokenResponse, UploadTokenListResponse, UploadTokenValidation
from .facebook import AISettingsUpdate, ImportPostRequest, PublishRequest
from .video import DirectUploadResponse, UploadStatusResponse, ComposeRequest, ComposeResponse, DownloadResponse
from .watermark import WatermarkSettingsUpdate
from .agent_card import AgentCardUpdate, CardPhotoResponse
from .flyer import FlyerRequest, FlyerResponse
from .error import ErrorDetail, ErrorResponse, APIErrorResponse

__all__ = [
    "GoogleSignInRequest",
    "SessionAgent",
    "SessionResponse",
    "SessionInfo",
    "ProfileUpdate",
    "CurrencyUpdate",
    "LanguageUpdate",
    "LanguageResponse",
    "CurrentPlanResponse",
    "PropertyCreate",
    "PropertyUpdate",
    "PropertyCreatedResponse",
    "PropertyCopyResponse",
    "TranslateRequest",
    "GenerateRequest",
    "PhotoUploadResponse",
    "TranscriptionResponse",
    "CustomFieldCreate",
    "CustomFieldUpdate",
    "CustomFieldClone",
    "SuggestFieldsRequest",
    "UploadTokenResponse",
    "UploadTokenListResponse",
    "UploadTokenValidation",
    "AISettingsUpdate",
    "ImportPostRequest",
    "PublishRequest",
    "DirectUploadResponse",
    "UploadStatusResponse",
    "ComposeRequest",
    "ComposeResponse",
    "DownloadResponse",
    "WatermarkSettingsUpdate",
    "AgentCardUpdate",
    "CardPhotoResponse",
    "FlyerRequest",
    "FlyerResponse",
    "ErrorDetail",
    "ErrorResponse",
    "APIErrorResponse",
]
