"""
PayPal subscription endpoints.
"""

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import RedirectResponse
from typing import Any, Dict, Optional

from flowestate.models.agent import Agent
from flowestate.schemas.error import get_integration_error_responses
from flowestate.services.payments import PaymentService
from flowestate.utils.dependencies import get_current_agent, get_payment_service

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post(
    "/subscriptions",
    status_code=status.HTTP_201_CREATED,
    summary="Start pro subscription",
    description="Create a PayPal subscription and return the approval URL.",
    responses=get_integration_error_responses()
)
async def create_subscription(
    current_agent: Agent = Depends(get_current_agent),
    payment_service: PaymentService = Depends(get_payment_service)
) -> Dict[str, Any]:
    return await payment_service.create_subscription(current_agent)


@router.get("/success", status_code=status.HTTP_302_FOUND, summary="PayPal approval return")
async def subscription_success(
    subscription_id: Optional[str] = Query(None),
    payment_service: PaymentService = Depends(get_payment_service)
) -> RedirectResponse:
    return RedirectResponse(payment_service.success_redirect(subscription_id), status_code=status.HTTP_302_FOUND)


@router.post("/webhook", summary="PayPal billing webhook")
async def webhook(
    event: Dict[str, Any] = Body(...),
    payment_service: PaymentService = Depends(get_payment_service)
) -> Dict[str, bool]:
    return await payment_service.handle_webhook(event)
