"""
Pydantic schemas for upload token responses.
"""

from pydantic import BaseModel, Field
from typing import List, Optional


class UploadTokenResponse(BaseModel):
    """Issued upload token and the link to share with the uploader."""

    id: str
    token: str = Field(..., description="64 hex character capability token")
    url: str = Field(..., description="Public upload page for this token")
    expires_at: str
    is_active: bool = True
    used_count: int = 0
    max_uses: int = 1
    created_at: Optional[str] = None


class UploadTokenListResponse(BaseModel):
    tokens: List[UploadTokenResponse]


class UploadTokenValidation(BaseModel):
    """Result of checking a token from the public upload page."""

    valid: bool
    agentId: Optional[str] = None
    agentName: Optional[str] = None
    expiresAt: Optional[str] = None
    error: Optional[str] = None
