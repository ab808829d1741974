"""
AI flyer generation endpoint.
"""

from fastapi import APIRouter, Depends, status

from flowestate.models.agent import Agent
from flowestate.schemas.error import get_common_error_responses, get_integration_error_responses
from flowestate.schemas.flyer import FlyerRequest, FlyerResponse
from flowestate.services.flyer import FlyerService
from flowestate.utils.dependencies import get_current_agent, get_flyer_service

router = APIRouter(prefix="/flyers", tags=["Flyers"])


@router.post(
    "",
    response_model=FlyerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Generate flyer image",
    description="Write an image prompt from the instructions and optional listing, then render a 1024x1024 PNG.",
    responses={**get_common_error_responses(), **get_integration_error_responses()}
)
async def generate_flyer(
    request: FlyerRequest,
    current_agent: Agent = Depends(get_current_agent),
    flyer_service: FlyerService = Depends(get_flyer_service)
) -> FlyerResponse:
    result = await flyer_service.generate(
        current_agent,
        request.instructions,
        property_id=request.property_id,
        base_image_url=request.base_image_url
    )
    return FlyerResponse(**result)
