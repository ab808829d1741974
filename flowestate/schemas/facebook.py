"""
Pydantic schemas for the Facebook page integration.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
import uuid


class AISettingsUpdate(BaseModel):
    """AI flyer preferences used when publishing."""

    enabled: bool = False
    brand_color_primary: Optional[str] = Field(None, max_length=20, example="#0F766E")
    brand_color_secondary: Optional[str] = Field(None, max_length=20, example="#F59E0B")
    template: Optional[str] = Field(None, max_length=50, example="modern")


class ImportPostRequest(BaseModel):
    post_id: str = Field(..., description="Facebook post ID")
    property_type: str = "house"
    listing_type: str = "sale"
    language: str = "es"
    custom_fields: List[Dict[str, Any]] = Field(default_factory=list)


class PublishRequest(BaseModel):
    property_id: uuid.UUID
