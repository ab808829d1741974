"""
Agent model for real-estate professionals.
Holds identity, plan quota counters, branding preferences and Facebook connection data.
"""

from sqlalchemy import String, Text, Integer, Boolean, DateTime, Enum as SQLEnum, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from flowestate.database import Base
from datetime import datetime
import enum
import re
import uuid
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from flowestate.models.currency import Currency


USERNAME_PATTERN = re.compile(r"^[a-z0-9_]{3,30}$")


class PlanTier(str, enum.Enum):
    """Subscription plan of an agent."""
    FREE = "free"
    PRO = "pro"


class WatermarkPosition(str, enum.Enum):
    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"


class WatermarkSize(str, enum.Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Agent(Base):
    """
    Agent account created on first Google sign-in.
    The email is the stable identity; the username is the public handle.
    """

    __tablename__ = "agents"

    # Identity
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="Agent email address, unique identity"
    )

    name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Display name from the identity provider"
    )

    google_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Google account subject identifier"
    )

    username: Mapped[Optional[str]] = mapped_column(
        String(30),
        unique=True,
        nullable=True,
        index=True,
        comment="Public handle used in portfolio URLs"
    )

    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    brokerage: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    profile_photo: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    # Plan and quota counters
    credits: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Remaining listing credits"
    )

    plan: Mapped[PlanTier] = mapped_column(
        SQLEnum(PlanTier, name="plan_tier", values_callable=_enum_values),
        nullable=False,
        default=PlanTier.FREE,
        comment="Subscription plan"
    )

    properties_this_month: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Properties created in the current pro billing period"
    )

    plan_started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    paypal_subscription_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)

    # Facebook page connection
    facebook_page_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    facebook_page_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    facebook_access_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    facebook_connected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    fb_ai_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    fb_brand_color_primary: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    fb_brand_color_secondary: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    fb_template: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Watermark preferences
    watermark_logo: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    watermark_image: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    watermark_position: Mapped[WatermarkPosition] = mapped_column(
        SQLEnum(WatermarkPosition, name="watermark_position", values_callable=_enum_values),
        nullable=False,
        default=WatermarkPosition.BOTTOM_RIGHT
    )
    watermark_size: Mapped[WatermarkSize] = mapped_column(
        SQLEnum(WatermarkSize, name="watermark_size", values_callable=_enum_values),
        nullable=False,
        default=WatermarkSize.MEDIUM
    )
    watermark_opacity: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    watermark_scale: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    use_corner_logo: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    use_watermark: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Locale preferences
    preferred_language: Mapped[str] = mapped_column(String(5), nullable=False, default="es")
    default_currency_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("currencies.id", ondelete="SET NULL"),
        nullable=True
    )

    default_currency: Mapped[Optional["Currency"]] = relationship("Currency", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Agent(id={self.id}, email={self.email}, plan={self.plan})>"

    @property
    def display_name(self) -> str:
        """Name shown to third parties; falls back to a generic label."""
        return self.full_name or self.name or "Agent"

    @property
    def is_pro(self) -> bool:
        return self.plan == PlanTier.PRO

    @property
    def has_facebook_page(self) -> bool:
        return bool(self.facebook_page_id and self.facebook_access_token)

    def validate_username(self) -> None:
        """
        Validate the public username.

        Raises:
            ValueError: If the username has invalid characters or length
        """
        if self.username is not None and not USERNAME_PATTERN.match(self.username):
            raise ValueError("Username must be 3-30 characters of lowercase letters, numbers or underscores")

    def to_session_dict(self) -> dict:
        """Fields carried by a signed-in session."""
        return {
            "id": str(self.id),
            "email": self.email,
            "name": self.name,
            "credits": self.credits,
            "username": self.username,
            "full_name": self.full_name,
            "phone": self.phone,
            "brokerage": self.brokerage,
        }

    def to_public_dict(self) -> dict:
        """Fields that may be shown on public listing and portfolio pages."""
        return {
            "name": self.name,
            "full_name": self.full_name,
            "username": self.username,
            "email": self.email,
            "phone": self.phone,
            "brokerage": self.brokerage,
            "bio": self.bio,
            "profile_photo": self.profile_photo,
        }

    def watermark_settings(self) -> dict:
        return {
            "watermark_logo": self.watermark_logo,
            "watermark_image": self.watermark_image,
            "watermark_position": self.watermark_position.value if self.watermark_position else None,
            "watermark_size": self.watermark_size.value if self.watermark_size else None,
            "watermark_opacity": self.watermark_opacity,
            "watermark_scale": self.watermark_scale,
            "use_corner_logo": self.use_corner_logo,
            "use_watermark": self.use_watermark,
        }

    def to_dict(self) -> dict:
        """
        Convert agent to dictionary.

        Returns:
            Dictionary representation of the agent profile
        """
        result = self.to_session_dict()
        result.update({
            "bio": self.bio,
            "profile_photo": self.profile_photo,
            "plan": self.plan.value if self.plan else PlanTier.FREE.value,
            "properties_this_month": self.properties_this_month,
            "plan_started_at": self.plan_started_at.isoformat() if self.plan_started_at else None,
            "preferred_language": self.preferred_language,
            "default_currency_id": str(self.default_currency_id) if self.default_currency_id else None,
            "facebook_page_id": self.facebook_page_id,
            "facebook_page_name": self.facebook_page_name,
            "facebook_connected_at": self.facebook_connected_at.isoformat() if self.facebook_connected_at else None,
            "fb_ai_enabled": self.fb_ai_enabled,
            "fb_brand_color_primary": self.fb_brand_color_primary,
            "fb_brand_color_secondary": self.fb_brand_color_secondary,
            "fb_template": self.fb_template,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        })
        result.update(self.watermark_settings())
        return result
