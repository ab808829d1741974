"""
Custom field model for agent-defined listing attributes.
Fields are scoped to a (property_type, listing_type) combination per agent.
"""

from sqlalchemy import String, Integer, Enum as SQLEnum, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from flowestate.database import Base
from flowestate.models.property import PropertyType, ListingType
import enum
import uuid
from typing import Optional


MAX_FIELDS_PER_COMBINATION = 5
MAX_FIELD_NAME_LENGTH = 30
DEFAULT_FIELD_ICON = "🏷️"


class FieldType(str, enum.Enum):
    """Value type of a custom field."""
    TEXT = "text"
    NUMBER = "number"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class CustomField(Base):
    """Extra listing attribute defined by an agent."""

    __tablename__ = "custom_fields"

    agent_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("agents.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    field_key: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        comment="Key used in Property.custom_fields_data"
    )

    property_type: Mapped[PropertyType] = mapped_column(
        SQLEnum(PropertyType, name="property_type", values_callable=_enum_values),
        nullable=False
    )

    listing_type: Mapped[ListingType] = mapped_column(
        SQLEnum(ListingType, name="listing_type", values_callable=_enum_values),
        nullable=False
    )

    field_name: Mapped[str] = mapped_column(String(MAX_FIELD_NAME_LENGTH), nullable=False)
    field_name_en: Mapped[Optional[str]] = mapped_column(String(MAX_FIELD_NAME_LENGTH), nullable=True)

    field_type: Mapped[FieldType] = mapped_column(
        SQLEnum(FieldType, name="custom_field_type", values_callable=_enum_values),
        nullable=False,
        default=FieldType.TEXT
    )

    placeholder: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    icon: Mapped[str] = mapped_column(String(16), nullable=False, default=DEFAULT_FIELD_ICON)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<CustomField(key={self.field_key}, name={self.field_name})>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "agent_id": str(self.agent_id),
            "field_key": self.field_key,
            "property_type": self.property_type.value,
            "listing_type": self.listing_type.value,
            "field_name": self.field_name,
            "field_name_en": self.field_name_en,
            "field_type": self.field_type.value,
            "placeholder": self.placeholder,
            "icon": self.icon,
            "display_order": self.display_order,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


combination_index = Index(
    "idx_custom_fields_combination",
    CustomField.agent_id,
    CustomField.property_type,
    CustomField.listing_type,
    CustomField.display_order
)
