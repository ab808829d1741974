"""
Record of a listing published to a Facebook page.
"""

from sqlalchemy import String, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from flowestate.database import Base
from datetime import datetime
import uuid
from typing import Optional


class FacebookPost(Base):

    __tablename__ = "facebook_posts"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    agent_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("agents.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    facebook_post_id: Mapped[str] = mapped_column(String(255), nullable=False)
    flyer_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    published_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    @property
    def post_url(self) -> str:
        return f"https://facebook.com/{self.facebook_post_id}"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "property_id": str(self.property_id),
            "facebook_post_id": self.facebook_post_id,
            "flyer_url": self.flyer_url,
            "post_url": self.post_url,
            "published_at": self.published_at.isoformat() if self.published_at else None,
        }
