"""
Pydantic schemas for video uploads and composition.
"""

from pydantic import BaseModel, Field
from typing import List, Optional


class DirectUploadResponse(BaseModel):
    uploadUrl: str
    uploadId: str


class UploadStatusResponse(BaseModel):
    status: str
    assetId: Optional[str] = None
    playbackId: Optional[str] = None


class ComposeRequest(BaseModel):
    asset_ids: List[str] = Field(default_factory=list, description="Assets to join, in order")


class ComposeResponse(BaseModel):
    success: bool = True
    assetId: str
    playbackId: Optional[str] = None


class DownloadResponse(BaseModel):
    downloadUrl: str
