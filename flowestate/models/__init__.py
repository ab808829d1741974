"""
Database models for the Flow Estate API.
Includes Agent, Property, CustomField, UploadToken, Currency, AgentCard and FacebookPost.
"""

from flowestate.models.currency import Currency
from flowestate.models.agent import Agent, PlanTier, WatermarkPosition, WatermarkSize
from flowestate.models.upload_token import UploadToken
from flowestate.models.property import Property, PropertyType, ListingType, PropertyStatus
from flowestate.models.custom_field import CustomField, FieldType
from flowestate.models.agent_card import AgentCard
from flowestate.models.facebook_post import FacebookPost

__all__ = [
    "Currency",
    "Agent",
    "PlanTier",
    "WatermarkPosition",
    "WatermarkSize",
    "UploadToken",
    "Property",
    "PropertyType",
    "ListingType",
    "PropertyStatus",
    "CustomField",
    "FieldType",
    "AgentCard",
    "FacebookPost",
]
