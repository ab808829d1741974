"""
Pydantic schemas for agent profile, preferences and plan responses.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional
import uuid


class ProfileUpdate(BaseModel):
    """Profile update request. Empty optional strings are stored as null."""

    username: str = Field(
        ...,
        description="Public handle, 3-30 lowercase letters, numbers or underscores",
        example="maria_realty"
    )
    full_name: Optional[str] = Field(None, max_length=255, example="María Rodríguez")
    phone: Optional[str] = Field(None, max_length=50, example="+506 8888 8888")
    brokerage: Optional[str] = Field(None, max_length=255, example="Costa Homes")

    @field_validator("username")
    @classmethod
    def normalize_username(cls, v):
        return v.strip().lower()

    @field_validator("full_name", "phone", "brokerage")
    @classmethod
    def blank_to_none(cls, v):
        if v is None:
            return None
        v = v.strip()
        return v or None


class CurrencyUpdate(BaseModel):
    """Default currency update request."""

    currency_id: Optional[uuid.UUID] = Field(None, description="ID of an active currency")


class LanguageUpdate(BaseModel):
    """Preferred language update request."""

    language: str = Field(..., description="Language code, es or en", example="en")


class LanguageResponse(BaseModel):
    language: str


class CurrentPlanResponse(BaseModel):
    """Plan and monthly usage of the current agent."""

    plan: str = Field(default="free", example="pro")
    properties_this_month: int = Field(default=0, example=4)
