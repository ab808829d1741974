"""
Property model for sale and rental listings.
Handles listing content, media references, custom field values and lifecycle status.
"""

from sqlalchemy import String, Text, Integer, Numeric, Boolean, Enum as SQLEnum, ForeignKey, Index, JSON, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from flowestate.database import Base
from decimal import Decimal
import enum
import uuid
from typing import Any, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from flowestate.models.agent import Agent
    from flowestate.models.currency import Currency


class PropertyType(str, enum.Enum):
    """Kind of real estate being listed."""
    HOUSE = "house"
    CONDO = "condo"
    APARTMENT = "apartment"
    LAND = "land"
    COMMERCIAL = "commercial"


class ListingType(str, enum.Enum):
    """Whether the property is offered for sale or for rent."""
    SALE = "sale"
    RENT = "rent"


class PropertyStatus(str, enum.Enum):
    """Lifecycle status of a listing."""
    ACTIVE = "active"
    SOLD = "sold"
    RENTED = "rented"
    INACTIVE = "inactive"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


# Fields an owner (or token holder) may change through an update request
UPDATABLE_FIELDS = (
    "title",
    "description",
    "price",
    "currency_id",
    "address",
    "city",
    "state",
    "zip_code",
    "property_type",
    "listing_type",
    "status",
    "photos",
    "latitude",
    "longitude",
    "plus_code",
    "show_map",
    "custom_fields_data",
)

# Listing content copied when a property is duplicated or translated
COPYABLE_FIELDS = (
    "description",
    "price",
    "currency_id",
    "address",
    "city",
    "state",
    "zip_code",
    "country",
    "bedrooms",
    "bathrooms",
    "sqft",
    "property_type",
    "listing_type",
    "language",
    "photos",
    "audio_url",
    "latitude",
    "longitude",
    "plus_code",
    "show_map",
    "custom_fields_data",
)

# Statuses shown on an agent's public portfolio
PORTFOLIO_STATUSES = (PropertyStatus.ACTIVE, PropertyStatus.SOLD)


class Property(Base):
    """
    Property listing owned by an agent.
    Every listing has a unique slug used for its public page.
    """

    __tablename__ = "properties"

    # Listing content
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Listing title"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Listing description"
    )

    price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=14, scale=2),
        nullable=True,
        comment="Asking price in the listing currency"
    )

    currency_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("currencies.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Location
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    zip_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    latitude: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=10, scale=7),
        nullable=True,
        comment="Latitude coordinate"
    )

    longitude: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=11, scale=7),
        nullable=True,
        comment="Longitude coordinate"
    )

    plus_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    show_map: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Specifications
    bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    bathrooms: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=4, scale=1), nullable=True)
    sqft: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    property_type: Mapped[PropertyType] = mapped_column(
        SQLEnum(PropertyType, name="property_type", values_callable=_enum_values),
        nullable=False,
        default=PropertyType.HOUSE,
        index=True
    )

    listing_type: Mapped[ListingType] = mapped_column(
        SQLEnum(ListingType, name="listing_type", values_callable=_enum_values),
        nullable=False,
        default=ListingType.SALE,
        index=True
    )

    language: Mapped[str] = mapped_column(String(5), nullable=False, default="es")

    # Media
    photos: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    audio_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    video_urls: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    mux_upload_ids: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # Agent-defined attribute values keyed by custom field key
    custom_fields_data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    # Lifecycle
    status: Mapped[PropertyStatus] = mapped_column(
        SQLEnum(PropertyStatus, name="property_status", values_callable=_enum_values),
        nullable=False,
        default=PropertyStatus.ACTIVE,
        index=True
    )

    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    slug: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="Public URL identifier"
    )

    # Ownership
    agent_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("agents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the agent who owns this property"
    )

    upload_token_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("upload_tokens.id", ondelete="SET NULL"),
        nullable=True,
        comment="Upload token that created this property, if any"
    )

    agent: Mapped["Agent"] = relationship("Agent", lazy="selectin")
    currency: Mapped[Optional["Currency"]] = relationship("Currency", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, slug={self.slug})>"

    @property
    def photo_count(self) -> int:
        return len(self.photos or [])

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def validate_coordinates(self) -> None:
        """
        Validate latitude and longitude coordinates.

        Raises:
            ValueError: If coordinates are invalid
        """
        if self.latitude is not None and not (-90 <= self.latitude <= 90):
            raise ValueError("Latitude must be between -90 and 90 degrees")

        if self.longitude is not None and not (-180 <= self.longitude <= 180):
            raise ValueError("Longitude must be between -180 and 180 degrees")

    def to_summary_dict(self) -> dict:
        """Fields shown in the agent's property list."""
        return {
            "id": str(self.id),
            "title": self.title,
            "price": float(self.price) if self.price is not None else None,
            "currency_id": str(self.currency_id) if self.currency_id else None,
            "city": self.city,
            "state": self.state,
            "property_type": self.property_type.value,
            "listing_type": self.listing_type.value,
            "status": self.status.value,
            "photos": list(self.photos or []),
            "views": self.views,
            "slug": self.slug,
            "language": self.language,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def to_dict(self, include_agent: bool = False) -> dict:
        """
        Convert property to dictionary.

        Args:
            include_agent: Whether to include public agent information

        Returns:
            Dictionary representation of property
        """
        result = {
            "id": str(self.id),
            "agent_id": str(self.agent_id),
            "title": self.title,
            "description": self.description,
            "price": float(self.price) if self.price is not None else None,
            "currency_id": str(self.currency_id) if self.currency_id else None,
            "currency": self.currency.to_dict() if self.currency else None,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "country": self.country,
            "bedrooms": self.bedrooms,
            "bathrooms": float(self.bathrooms) if self.bathrooms is not None else None,
            "sqft": self.sqft,
            "property_type": self.property_type.value,
            "listing_type": self.listing_type.value,
            "language": self.language,
            "photos": list(self.photos or []),
            "audio_url": self.audio_url,
            "video_urls": list(self.video_urls or []),
            "latitude": float(self.latitude) if self.latitude is not None else None,
            "longitude": float(self.longitude) if self.longitude is not None else None,
            "plus_code": self.plus_code,
            "show_map": self.show_map,
            "custom_fields_data": dict(self.custom_fields_data or {}),
            "status": self.status.value,
            "views": self.views,
            "slug": self.slug,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

        if include_agent and self.agent:
            agent_info = self.agent.to_public_dict()
            agent_info.update(self.agent.watermark_settings())
            result["agent"] = agent_info

        return result


# Agent dashboards list by owner and recency
agent_created_index = Index(
    "idx_properties_agent_created",
    Property.agent_id,
    Property.created_at.desc()
)

agent_status_index = Index(
    "idx_properties_agent_status",
    Property.agent_id,
    Property.status
)
