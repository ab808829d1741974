"""
Agent business card endpoints.
"""

from fastapi import APIRouter, Depends, File, Form, Path, UploadFile
from typing import Any, Dict, Optional

from flowestate.models.agent import Agent
from flowestate.schemas.agent_card import AgentCardUpdate, CardPhotoResponse
from flowestate.schemas.error import get_common_error_responses, get_error_responses
from flowestate.services.agent_card import AgentCardService
from flowestate.utils.dependencies import get_agent_card_service, get_current_agent

router = APIRouter(prefix="/agent-card", tags=["Agent Card"])


@router.get("", summary="My business card")
async def get_own_card(
    current_agent: Agent = Depends(get_current_agent),
    card_service: AgentCardService = Depends(get_agent_card_service)
) -> Dict[str, Any]:
    card, agent = await card_service.get_own(current_agent)
    return {
        "success": True,
        "card": card.to_dict() if card else None,
        "agent": {"username": agent.username},
    }


@router.put("", summary="Save business card", responses=get_common_error_responses())
async def update_card(
    data: AgentCardUpdate,
    current_agent: Agent = Depends(get_current_agent),
    card_service: AgentCardService = Depends(get_agent_card_service)
) -> Dict[str, Any]:
    card = await card_service.update(current_agent, data)
    return {"success": True, "card": card.to_dict()}


@router.post(
    "/photo",
    response_model=CardPhotoResponse,
    summary="Upload card photo",
    description="Profile or cover photo, JPEG, PNG or WebP up to 5 MB.",
    responses=get_common_error_responses()
)
async def upload_photo(
    file: Optional[UploadFile] = File(None),
    type: str = Form(..., description="profile or cover"),
    current_agent: Agent = Depends(get_current_agent),
    card_service: AgentCardService = Depends(get_agent_card_service)
) -> CardPhotoResponse:
    url = await card_service.upload_photo(current_agent, type, file)
    return CardPhotoResponse(url=url, type=type)


@router.get("/{username}", summary="Public business card", responses=get_error_responses(404))
async def get_public_card(
    username: str = Path(..., description="Agent username"),
    card_service: AgentCardService = Depends(get_agent_card_service)
) -> Dict[str, Any]:
    card, agent = await card_service.get_public(username)
    return {
        "success": True,
        "card": card.to_dict() if card else None,
        "agent": {
            "username": agent.username,
            "name": agent.name,
            "full_name": agent.full_name,
            "email": agent.email,
            "phone": agent.phone,
        },
    }
