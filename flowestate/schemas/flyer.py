"""
Pydantic schemas for AI flyer generation.
"""

from pydantic import BaseModel, Field
from typing import Optional
import uuid


class FlyerRequest(BaseModel):
    instructions: str = Field(..., min_length=1, description="Visual style and content instructions")
    property_id: Optional[uuid.UUID] = None
    base_image_url: Optional[str] = Field(None, description="Stored image to edit instead of starting from scratch")


class FlyerResponse(BaseModel):
    success: bool = True
    imageUrl: str
    prompt: str
    model: str
    usedBaseImage: bool
    requestId: str
