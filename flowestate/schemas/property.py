"""
Pydantic schemas for property requests and responses.
Business rules (required title, plan limits) are checked by the service so they map to 400/403.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from decimal import Decimal
from flowestate.models.property import PropertyType, ListingType, PropertyStatus
import uuid


class PropertyFields(BaseModel):
    """Listing fields shared by create and update requests."""

    title: Optional[str] = Field(None, max_length=255, example="Casa con vista al mar en Tamarindo")
    description: Optional[str] = Field(None, example="Hermosa casa de 3 habitaciones a 5 minutos de la playa...")
    price: Optional[Decimal] = Field(None, ge=0, example=350000)
    currency_id: Optional[uuid.UUID] = None

    address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=120, example="Tamarindo")
    state: Optional[str] = Field(None, max_length=120, example="Guanacaste")
    zip_code: Optional[str] = Field(None, max_length=20)

    property_type: Optional[PropertyType] = None
    listing_type: Optional[ListingType] = None

    photos: Optional[List[str]] = None

    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)
    plus_code: Optional[str] = Field(None, max_length=50)
    show_map: Optional[bool] = None

    custom_fields_data: Optional[Dict[str, Any]] = None


class PropertyCreate(PropertyFields):
    """Schema for creating a property."""

    country: Optional[str] = Field(None, max_length=120)
    bedrooms: Optional[int] = Field(None, ge=0, le=100)
    bathrooms: Optional[Decimal] = Field(None, ge=0, le=100)
    sqft: Optional[int] = Field(None, ge=0)
    language: Optional[str] = Field(None, example="es")
    audio_url: Optional[str] = None
    video_urls: Optional[List[str]] = None
    mux_upload_ids: Optional[List[str]] = None


class PropertyUpdate(PropertyFields):
    """
    Schema for updating a property.
    Only fields present in the request body are written.
    """

    status: Optional[PropertyStatus] = None
    photos_to_delete: List[str] = Field(
        default_factory=list,
        description="Public URLs of photos to remove from storage"
    )


class PropertyCreatedResponse(BaseModel):
    success: bool = True
    propertyId: str = Field(..., description="Slug of the new property")
    property: Dict[str, Any]


class PropertyCopyResponse(BaseModel):
    """Result of duplicating or translating a property."""

    success: bool = True
    newPropertyId: str
    slug: str


class TranslateRequest(BaseModel):
    target_language: str = Field(..., example="en")
    use_ai: bool = True


class GenerateRequest(BaseModel):
    transcription: str = Field("", description="Transcribed voice description of the property")


class PhotoUploadResponse(BaseModel):
    success: bool = True
    urls: List[str]
    count: int


class TranscriptionResponse(BaseModel):
    success: bool = True
    transcription: str
