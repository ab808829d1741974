"""
Pydantic schemas for the agent business card.
"""

from pydantic import BaseModel, Field
from typing import Optional


class AgentCardUpdate(BaseModel):
    """Bilingual business card content."""

    display_name: Optional[str] = Field(None, max_length=255, example="María Rodríguez")
    brokerage: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = None
    display_name_en: Optional[str] = Field(None, max_length=255)
    brokerage_en: Optional[str] = Field(None, max_length=255)
    bio_en: Optional[str] = None
    facebook_url: Optional[str] = Field(None, max_length=1024)
    instagram_url: Optional[str] = Field(None, max_length=1024)
    profile_photo: Optional[str] = Field(None, max_length=1024)
    cover_photo: Optional[str] = Field(None, max_length=1024)


class CardPhotoResponse(BaseModel):
    success: bool = True
    url: str
    type: str
