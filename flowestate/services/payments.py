"""
PayPal subscription service.
Creates subscriptions for the pro plan and applies billing webhooks to agents.
"""

from typing import Any, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
import httpx
import logging

from flowestate.config import get_settings
from flowestate.models.agent import Agent, PlanTier
from flowestate.repositories.agent import AgentRepository
from flowestate.utils.dates import utc_now
from flowestate.utils.exceptions import ExternalServiceError, ServiceUnavailableError

logger = logging.getLogger(__name__)

BRAND_NAME = "Flow Estate AI"
SUBSCRIPTION_ACTIVATED = "BILLING.SUBSCRIPTION.ACTIVATED"
SUBSCRIPTION_CANCELLED = "BILLING.SUBSCRIPTION.CANCELLED"


class PaymentService:
    """PayPal billing for the pro plan."""

    def __init__(self, db_session: AsyncSession, http_client: httpx.AsyncClient):
        self.db = db_session
        self.http = http_client
        self.settings = get_settings()
        self.agent_repo = AgentRepository(db_session)

    def _ensure_configured(self) -> None:
        if not (self.settings.paypal_client_id and self.settings.paypal_client_secret and self.settings.paypal_plan_id):
            raise ServiceUnavailableError("Payments are not configured")

    async def _access_token(self) -> str:
        try:
            response = await self.http.post(
                f"{self.settings.paypal_api_url}/v1/oauth2/token",
                auth=(self.settings.paypal_client_id, self.settings.paypal_client_secret),
                data={"grant_type": "client_credentials"},
            )
            response.raise_for_status()
            return response.json()["access_token"]
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error(f"PayPal token request failed: {e}")
            raise ExternalServiceError("PayPal", "could not obtain access token")

    async def create_subscription(self, agent: Agent) -> Dict[str, Any]:
        """
        Start a pro plan subscription.

        Args:
            agent: Subscribing agent; their email travels as custom_id

        Returns:
            success, subscriptionId and approvalUrl

        Raises:
            ServiceUnavailableError: If PayPal is not configured
            ExternalServiceError: If PayPal rejects the request
        """
        self._ensure_configured()
        access_token = await self._access_token()

        base = self.settings.public_base_url.rstrip("/")
        try:
            response = await self.http.post(
                f"{self.settings.paypal_api_url}/v1/billing/subscriptions",
                headers={"Authorization": f"Bearer {access_token}"},
                json={
                    "plan_id": self.settings.paypal_plan_id,
                    "application_context": {
                        "brand_name": BRAND_NAME,
                        "user_action": "SUBSCRIBE_NOW",
                        "return_url": f"{base}{self.settings.api_v1_prefix}/payments/success",
                        "cancel_url": f"{self.settings.app_url.rstrip('/')}/pricing",
                    },
                    "custom_id": agent.email,
                },
            )
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"PayPal subscription request failed: {e}")
            raise ExternalServiceError("PayPal", str(e))

        if response.status_code >= 400:
            logger.error(f"PayPal rejected subscription for {agent.email}: {data}")
            raise ExternalServiceError("PayPal", "failed to create subscription")

        approval_url = next(
            (link.get("href") for link in data.get("links", []) if link.get("rel") == "approve"),
            None
        )
        logger.info(f"Created PayPal subscription {data.get('id')} for {agent.email}")
        return {"success": True, "subscriptionId": data.get("id"), "approvalUrl": approval_url}

    def success_redirect(self, subscription_id: Optional[str]) -> str:
        app_url = self.settings.app_url.rstrip("/")
        if not subscription_id:
            return f"{app_url}/pricing?error=missing_id"
        return f"{app_url}/dashboard?success=subscribed"

    async def handle_webhook(self, event: Dict[str, Any]) -> Dict[str, bool]:
        """
        Apply a billing webhook event.

        Activation moves the agent named by custom_id to pro; cancellation
        moves the subscription's agent back to free. Other events are ignored.
        """
        event_type = event.get("event_type")
        resource = event.get("resource") or {}
        logger.info(f"PayPal webhook: {event_type}")

        if event_type == SUBSCRIPTION_ACTIVATED:
            agent = await self.agent_repo.get_by_email(resource.get("custom_id") or "")
            if not agent:
                logger.warning(f"Subscription {resource.get('id')} activated for unknown agent")
            else:
                await self.agent_repo.update(agent.id, {
                    "plan": PlanTier.PRO,
                    "properties_this_month": 0,
                    "plan_started_at": utc_now(),
                    "paypal_subscription_id": resource.get("id"),
                }, exclude_none=False)
                logger.info(f"Pro plan activated for {agent.email}")

        elif event_type == SUBSCRIPTION_CANCELLED:
            agent = await self.agent_repo.get_by_subscription_id(resource.get("id") or "")
            if not agent:
                logger.warning(f"Cancelled subscription {resource.get('id')} matches no agent")
            else:
                await self.agent_repo.update(agent.id, {
                    "plan": PlanTier.FREE,
                    "properties_this_month": 0,
                    "paypal_subscription_id": None,
                }, exclude_none=False)
                logger.info(f"Agent {agent.email} returned to the free plan")

        return {"success": True}
