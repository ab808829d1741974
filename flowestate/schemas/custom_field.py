"""
Pydantic schemas for custom field requests.
Type and length rules are enforced by the service and reported as 400.
"""

from pydantic import BaseModel, Field
from typing import Optional


class CustomFieldCreate(BaseModel):
    """Schema for creating a custom field."""

    property_type: Optional[str] = Field(None, example="house")
    listing_type: Optional[str] = Field(None, example="sale")
    field_name: Optional[str] = Field(None, example="Piscina")
    field_name_en: Optional[str] = Field(None, example="Pool")
    field_type: Optional[str] = Field(None, example="text")
    placeholder: Optional[str] = Field(None, max_length=100)
    icon: Optional[str] = Field(None, max_length=16, example="🏊")


class CustomFieldUpdate(CustomFieldCreate):
    """Schema for updating a custom field; same fields as create."""


class CustomFieldClone(BaseModel):
    target_property_type: Optional[str] = Field(None, example="condo")
    target_listing_type: Optional[str] = Field(None, example="rent")


class SuggestFieldsRequest(BaseModel):
    property_type: Optional[str] = Field(None, example="house")
    listing_type: Optional[str] = Field(None, example="sale")
    language: str = Field("es", example="es")
