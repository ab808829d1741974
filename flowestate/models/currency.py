"""
Currency reference table.
"""

from sqlalchemy import String, Boolean
from sqlalchemy.orm import Mapped, mapped_column
from flowestate.database import Base


class Currency(Base):
    """A currency listings can be priced in."""

    __tablename__ = "currencies"

    code: Mapped[str] = mapped_column(
        String(3),
        unique=True,
        nullable=False,
        index=True,
        comment="ISO 4217 code"
    )

    symbol: Mapped[str] = mapped_column(String(8), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Currency(code={self.code}, symbol={self.symbol})>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "code": self.code,
            "symbol": self.symbol,
            "name": self.name,
            "is_default": self.is_default,
            "is_active": self.is_active,
        }
