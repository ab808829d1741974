"""
Upload token model.
A capability credential that lets a third party create a property on an agent's behalf.
"""

from sqlalchemy import String, Integer, Boolean, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from flowestate.database import Base
from flowestate.utils.dates import utc_now, as_utc
from datetime import datetime
import uuid
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from flowestate.models.agent import Agent


class UploadToken(Base):
    """Time-limited, use-limited write capability."""

    __tablename__ = "upload_tokens"

    token: Mapped[str] = mapped_column(
        String(128),
        unique=True,
        nullable=False,
        index=True,
        comment="Random hex token presented in X-Upload-Token"
    )

    agent_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("agents.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    used_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_uses: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    agent: Mapped["Agent"] = relationship("Agent", lazy="selectin")

    def __repr__(self) -> str:
        return f"<UploadToken(id={self.id}, agent_id={self.agent_id}, active={self.is_active})>"

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return as_utc(self.expires_at) <= (now or utc_now())

    @property
    def is_used_up(self) -> bool:
        return self.used_count >= self.max_uses

    def invalid_reason(self, require_unspent: bool = True) -> Optional[str]:
        """
        Explain why this token cannot be used, if it cannot.

        Args:
            require_unspent: Whether the use counter must still have room

        Returns:
            Human-readable reason, or None when the token is usable
        """
        if not self.is_active:
            return "Upload token has been revoked"
        if self.is_expired():
            return "Upload token has expired"
        if require_unspent and self.is_used_up:
            return "Upload token has already been used"
        return None

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "token": self.token,
            "expires_at": as_utc(self.expires_at).isoformat(),
            "is_active": self.is_active,
            "used_count": self.used_count,
            "max_uses": self.max_uses,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
