"""
Watermark asset and settings endpoints.
"""

from fastapi import APIRouter, Depends, File, UploadFile
from typing import Any, Dict, Optional

from flowestate.models.agent import Agent
from flowestate.schemas.error import get_common_error_responses
from flowestate.schemas.watermark import WatermarkSettingsUpdate
from flowestate.services.watermark import WatermarkService
from flowestate.utils.dependencies import get_current_agent, get_watermark_service

router = APIRouter(prefix="/watermark", tags=["Watermark"], responses=get_common_error_responses())


@router.get("", summary="Watermark settings")
async def get_watermark_settings(current_agent: Agent = Depends(get_current_agent)) -> Dict[str, Any]:
    return current_agent.watermark_settings()


@router.post("/logo", summary="Upload corner logo", description="Any image type, up to 2 MB.")
async def upload_logo(
    logo: Optional[UploadFile] = File(None),
    current_agent: Agent = Depends(get_current_agent),
    watermark_service: WatermarkService = Depends(get_watermark_service)
) -> Dict[str, Any]:
    url = await watermark_service.upload_logo(current_agent, logo)
    return {"success": True, "logoUrl": url}


@router.delete("/logo", summary="Delete corner logo")
async def delete_logo(
    current_agent: Agent = Depends(get_current_agent),
    watermark_service: WatermarkService = Depends(get_watermark_service)
) -> Dict[str, Any]:
    await watermark_service.delete_logo(current_agent)
    return {"success": True}


@router.post("/transparent", summary="Upload transparent watermark", description="PNG only, up to 2 MB.")
async def upload_transparent(
    watermark: Optional[UploadFile] = File(None),
    current_agent: Agent = Depends(get_current_agent),
    watermark_service: WatermarkService = Depends(get_watermark_service)
) -> Dict[str, Any]:
    url = await watermark_service.upload_transparent(current_agent, watermark)
    return {"success": True, "watermarkUrl": url}


@router.delete("/transparent", summary="Delete transparent watermark")
async def delete_transparent(
    current_agent: Agent = Depends(get_current_agent),
    watermark_service: WatermarkService = Depends(get_watermark_service)
) -> Dict[str, Any]:
    await watermark_service.delete_transparent(current_agent)
    return {"success": True}


@router.put("/settings", summary="Update watermark settings")
async def update_settings(
    settings: WatermarkSettingsUpdate,
    current_agent: Agent = Depends(get_current_agent),
    watermark_service: WatermarkService = Depends(get_watermark_service)
) -> Dict[str, Any]:
    updated = await watermark_service.update_settings(current_agent, settings)
    return {"success": True, "settings": updated}
