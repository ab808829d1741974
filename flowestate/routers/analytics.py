"""
Dashboard analytics endpoint.
"""

from fastapi import APIRouter, Depends
from typing import Any, Dict

from flowestate.models.agent import Agent
from flowestate.schemas.error import get_error_responses
from flowestate.services.analytics import AnalyticsService
from flowestate.utils.dependencies import get_analytics_service, get_current_agent

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get(
    "/summary",
    summary="Portfolio analytics",
    description="Inventory, distribution, pricing, status, recent activity, top locations and views.",
    responses=get_error_responses(401)
)
async def get_summary(
    current_agent: Agent = Depends(get_current_agent),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
) -> Dict[str, Any]:
    return await analytics_service.get_summary(current_agent)
