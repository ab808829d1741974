"""
Pydantic schemas for sign-in requests and session responses.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional


class GoogleSignInRequest(BaseModel):
    """Google sign-in request schema."""

    id_token: str = Field(
        ...,
        description="Google ID token obtained by the web client",
        example="eyJhbGciOiJSUzI1NiIsImtpZCI6..."
    )

    @field_validator("id_token")
    @classmethod
    def strip_token(cls, v):
        if not v or not v.strip():
            raise ValueError("id_token cannot be empty")
        return v.strip()


class SessionAgent(BaseModel):
    """Agent fields carried by a session."""

    id: str
    email: str
    name: Optional[str] = None
    credits: int = 0
    username: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    brokerage: Optional[str] = None


class SessionResponse(BaseModel):
    """Session token returned after sign-in."""

    access_token: str = Field(..., description="Session JWT")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Session lifetime in seconds", example=604800)
    agent: SessionAgent


class SessionInfo(BaseModel):
    """Current session information."""

    agent: SessionAgent
