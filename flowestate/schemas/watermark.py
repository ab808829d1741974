"""
Pydantic schemas for watermark settings.
"""

from pydantic import BaseModel, Field
from typing import Optional


class WatermarkSettingsUpdate(BaseModel):
    """Watermark preferences; omitted fields are left unchanged."""

    position: Optional[str] = Field(None, example="bottom-right")
    size: Optional[str] = Field(None, example="medium")
    opacity: Optional[int] = Field(None, example=50)
    scale: Optional[int] = Field(None, example=50)
    use_corner_logo: Optional[bool] = None
    use_watermark: Optional[bool] = None
