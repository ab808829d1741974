"""
Agent business card shown on the public card page.
"""

from sqlalchemy import String, Text, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from flowestate.database import Base
import uuid
from typing import Optional


MAX_BIO_LENGTH = 500


class AgentCard(Base):
    """One card per agent, bilingual."""

    __tablename__ = "agent_cards"

    agent_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("agents.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True
    )

    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    brokerage: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    display_name_en: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    brokerage_en: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    bio_en: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    facebook_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    instagram_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    profile_photo: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    cover_photo: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "agent_id": str(self.agent_id),
            "display_name": self.display_name,
            "brokerage": self.brokerage,
            "bio": self.bio,
            "display_name_en": self.display_name_en,
            "brokerage_en": self.brokerage_en,
            "bio_en": self.bio_en,
            "facebook_url": self.facebook_url,
            "instagram_url": self.instagram_url,
            "profile_photo": self.profile_photo,
            "cover_photo": self.cover_photo,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
