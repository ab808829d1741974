"""
Agent account endpoints: plan, profile, preferences, public portfolio and CSV export.
"""

from fastapi import APIRouter, Depends, Path
from fastapi.responses import Response
from typing import Any, Dict

from flowestate.models.agent import Agent, PlanTier
from flowestate.schemas.agent import (
    CurrencyUpdate,
    CurrentPlanResponse,
    LanguageResponse,
    LanguageUpdate,
    ProfileUpdate,
)
from flowestate.schemas.error import get_common_error_responses, get_error_responses
from flowestate.services.agent import AgentService
from flowestate.utils.dependencies import get_agent_service, get_current_agent

router = APIRouter(prefix="/agent", tags=["Agent"])


@router.get("/plan", response_model=CurrentPlanResponse, summary="Current plan and monthly usage")
async def get_current_plan(current_agent: Agent = Depends(get_current_agent)) -> CurrentPlanResponse:
    return CurrentPlanResponse(
        plan=current_agent.plan.value if current_agent.plan else PlanTier.FREE.value,
        properties_this_month=current_agent.properties_this_month or 0
    )


@router.get("/profile", summary="Full agent profile", responses=get_error_responses(401))
async def get_profile(current_agent: Agent = Depends(get_current_agent)) -> Dict[str, Any]:
    return {"agent": current_agent.to_dict()}


@router.put(
    "/profile",
    summary="Update profile",
    description="Set the public username and contact fields. Empty optional fields are cleared.",
    responses=get_common_error_responses()
)
async def update_profile(
    profile: ProfileUpdate,
    current_agent: Agent = Depends(get_current_agent),
    agent_service: AgentService = Depends(get_agent_service)
) -> Dict[str, Any]:
    agent = await agent_service.update_profile(current_agent, profile)
    return {"success": True, "agent": agent.to_dict()}


@router.put("/currency", summary="Set default currency", responses=get_common_error_responses())
async def update_currency(
    request: CurrencyUpdate,
    current_agent: Agent = Depends(get_current_agent),
    agent_service: AgentService = Depends(get_agent_service)
) -> Dict[str, Any]:
    currency = await agent_service.update_currency(current_agent, request.currency_id)
    return {
        "success": True,
        "message": f"Default currency set to {currency.code}",
        "currency": currency.to_dict(),
    }


@router.get("/language", response_model=LanguageResponse, summary="Preferred language")
async def get_language(
    current_agent: Agent = Depends(get_current_agent),
    agent_service: AgentService = Depends(get_agent_service)
) -> LanguageResponse:
    return LanguageResponse(language=agent_service.get_language(current_agent))


@router.put("/language", response_model=LanguageResponse, summary="Set preferred language")
async def update_language(
    request: LanguageUpdate,
    current_agent: Agent = Depends(get_current_agent),
    agent_service: AgentService = Depends(get_agent_service)
) -> LanguageResponse:
    return LanguageResponse(language=await agent_service.update_language(current_agent, request.language))


@router.get(
    "/export",
    summary="Export properties as CSV",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}, **get_error_responses(400, 401)}
)
async def export_properties(
    current_agent: Agent = Depends(get_current_agent),
    agent_service: AgentService = Depends(get_agent_service)
) -> Response:
    filename, content = await agent_service.export_csv(current_agent)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.get(
    "/portfolio/{username}",
    summary="Public agent portfolio",
    description="Public agent fields with active and sold properties, newest first.",
    responses=get_error_responses(404)
)
async def get_portfolio(
    username: str = Path(..., description="Agent username"),
    agent_service: AgentService = Depends(get_agent_service)
) -> Dict[str, Any]:
    agent, properties = await agent_service.get_portfolio(username)
    return {
        "agent": agent.to_public_dict(),
        "properties": [prop.to_summary_dict() for prop in properties],
    }
