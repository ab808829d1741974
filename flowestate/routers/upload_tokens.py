"""
Upload token endpoints: agents issue and revoke links; the public upload page validates them.
"""

from fastapi import APIRouter, Depends, Path, Query, status
from typing import Any, Dict, Optional
from uuid import UUID

from flowestate.models.agent import Agent
from flowestate.models.upload_token import UploadToken
from flowestate.schemas.error import get_error_responses
from flowestate.schemas.upload_token import (
    UploadTokenListResponse,
    UploadTokenResponse,
    UploadTokenValidation,
)
from flowestate.services.upload_token import UploadTokenService
from flowestate.utils.dependencies import get_current_agent, get_upload_token_service

router = APIRouter(prefix="/upload-tokens", tags=["Upload Tokens"])


def _to_response(upload_token: UploadToken, service: UploadTokenService) -> UploadTokenResponse:
    return UploadTokenResponse(url=service.upload_url(upload_token.token), **upload_token.to_dict())


@router.post(
    "",
    response_model=UploadTokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue upload token",
    description="Create a single-use link that lets someone else add one property for you within 7 days."
)
async def generate_token(
    current_agent: Agent = Depends(get_current_agent),
    token_service: UploadTokenService = Depends(get_upload_token_service)
) -> UploadTokenResponse:
    upload_token = await token_service.generate(current_agent)
    return _to_response(upload_token, token_service)


@router.get("", response_model=UploadTokenListResponse, summary="List usable upload tokens")
async def list_tokens(
    current_agent: Agent = Depends(get_current_agent),
    token_service: UploadTokenService = Depends(get_upload_token_service)
) -> UploadTokenListResponse:
    tokens = await token_service.list_active(current_agent)
    return UploadTokenListResponse(tokens=[_to_response(t, token_service) for t in tokens])


@router.get(
    "/validate",
    response_model=UploadTokenValidation,
    summary="Validate upload token",
    description="Public check used by the upload page before showing the form.",
    responses=get_error_responses(400)
)
async def validate_token(
    token: Optional[str] = Query(None, description="Upload token"),
    token_service: UploadTokenService = Depends(get_upload_token_service)
) -> UploadTokenValidation:
    return UploadTokenValidation(**await token_service.validate_public(token))


@router.delete("/{token_id}", summary="Revoke upload token", responses=get_error_responses(401, 404))
async def revoke_token(
    token_id: UUID = Path(..., description="Upload token ID"),
    current_agent: Agent = Depends(get_current_agent),
    token_service: UploadTokenService = Depends(get_upload_token_service)
) -> Dict[str, Any]:
    await token_service.revoke(current_agent, token_id)
    return {"success": True}
