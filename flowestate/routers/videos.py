"""
Video endpoints backed by Mux.
"""

from fastapi import APIRouter, Depends, Path, Query

from flowestate.models.agent import Agent
from flowestate.schemas.error import get_error_responses, get_integration_error_responses
from flowestate.schemas.video import (
    ComposeRequest,
    ComposeResponse,
    DirectUploadResponse,
    DownloadResponse,
    UploadStatusResponse,
)
from flowestate.services.mux import MuxService
from flowestate.utils.dependencies import get_current_agent, get_mux_service

router = APIRouter(prefix="/videos", tags=["Videos"], responses=get_integration_error_responses())


@router.post("/uploads", response_model=DirectUploadResponse, summary="Create direct upload")
async def create_upload(
    current_agent: Agent = Depends(get_current_agent),
    mux_service: MuxService = Depends(get_mux_service)
) -> DirectUploadResponse:
    return DirectUploadResponse(**await mux_service.create_upload())


@router.get("/uploads/{upload_id}", response_model=UploadStatusResponse, summary="Direct upload status")
async def get_upload(
    upload_id: str = Path(..., description="Mux upload ID"),
    current_agent: Agent = Depends(get_current_agent),
    mux_service: MuxService = Depends(get_mux_service)
) -> UploadStatusResponse:
    return UploadStatusResponse(**await mux_service.get_upload(upload_id))


@router.post(
    "/compose",
    response_model=ComposeResponse,
    summary="Join clips into one video",
    description="Waits for every clip to finish processing, then creates a concatenated asset.",
    responses=get_error_responses(400)
)
async def compose(
    request: ComposeRequest,
    current_agent: Agent = Depends(get_current_agent),
    mux_service: MuxService = Depends(get_mux_service)
) -> ComposeResponse:
    return ComposeResponse(**await mux_service.compose(request.asset_ids))


@router.get(
    "/download",
    response_model=DownloadResponse,
    summary="Download URL for a video",
    responses=get_error_responses(404)
)
async def download(
    playback_id: str = Query(..., description="Mux playback ID"),
    current_agent: Agent = Depends(get_current_agent),
    mux_service: MuxService = Depends(get_mux_service)
) -> DownloadResponse:
    return DownloadResponse(downloadUrl=await mux_service.download_url(playback_id))
