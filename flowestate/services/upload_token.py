"""
Upload token service.
Issues, lists, revokes and checks the capability tokens that let a third party upload a listing.
"""

from datetime import timedelta
from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
import secrets
import uuid
import logging

from flowestate.config import get_settings
from flowestate.models.agent import Agent
from flowestate.models.upload_token import UploadToken
from flowestate.repositories.upload_token import UploadTokenRepository
from flowestate.utils.dates import utc_now
from flowestate.utils.exceptions import (
    BadRequestError,
    InvalidUploadTokenError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


class UploadTokenService:
    """
    Upload token lifecycle and validation.

    A token is usable while it is active and unexpired. Requests that add new
    content also need an unspent use; creating a property spends one.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.settings = get_settings()
        self.token_repo = UploadTokenRepository(db_session)

    def upload_url(self, token: str) -> str:
        return f"{self.settings.app_url.rstrip('/')}/upload/{token}"

    async def generate(self, agent: Agent) -> UploadToken:
        """
        Issue a new token for the agent.

        Args:
            agent: Agent delegating upload rights

        Returns:
            Created token
        """
        upload_token = await self.token_repo.create({
            "token": secrets.token_hex(TOKEN_BYTES),
            "agent_id": agent.id,
            "expires_at": utc_now() + timedelta(days=self.settings.upload_token_expire_days),
            "max_uses": self.settings.upload_token_max_uses,
        })
        logger.info(f"Upload token {upload_token.id} issued for agent {agent.email}")
        return upload_token

    async def list_active(self, agent: Agent) -> List[UploadToken]:
        return await self.token_repo.list_usable(agent.id, utc_now())

    async def revoke(self, agent: Agent, token_id: uuid.UUID) -> None:
        """
        Revoke one of the agent's tokens.

        Raises:
            NotFoundError: If the agent has no such token
        """
        if not await self.token_repo.deactivate(token_id, agent.id):
            raise NotFoundError("Upload token", str(token_id))
        logger.info(f"Upload token {token_id} revoked by agent {agent.email}")

    async def authorize(self, token: str, require_unspent: bool = True) -> UploadToken:
        """
        Resolve a presented token for a write request.

        Args:
            token: Value of the X-Upload-Token header
            require_unspent: Whether the request needs a remaining use

        Returns:
            The usable token, with its agent loaded

        Raises:
            InvalidUploadTokenError: If the token is unknown, revoked, expired or used up
        """
        upload_token = await self.token_repo.get_by_token(token)
        if not upload_token:
            logger.warning("Rejected unknown upload token")
            raise InvalidUploadTokenError("Invalid upload token")

        reason = upload_token.invalid_reason(require_unspent=require_unspent)
        if reason:
            logger.warning(f"Rejected upload token {upload_token.id}: {reason}")
            raise InvalidUploadTokenError(reason)

        return upload_token

    async def record_use(self, upload_token: UploadToken) -> None:
        await self.token_repo.increment_used(upload_token.id)
        await self.db.refresh(upload_token)
        logger.info(f"Upload token {upload_token.id} spent one use")

    async def validate_public(self, token: Optional[str]) -> Dict[str, Any]:
        """
        Check a token for the public upload page.

        Args:
            token: Token from the upload link

        Returns:
            {"valid": True, "agentId", "agentName"} or {"valid": False, "error"}

        Raises:
            BadRequestError: If no token was given
        """
        if not token:
            raise BadRequestError("Token is required")

        try:
            upload_token = await self.authorize(token, require_unspent=True)
        except InvalidUploadTokenError as e:
            return {"valid": False, "error": e.detail}

        agent = upload_token.agent
        return {
            "valid": True,
            "agentId": str(agent.id),
            "agentName": agent.display_name,
            "expiresAt": upload_token.to_dict()["expires_at"],
        }
