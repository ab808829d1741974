"""
Authentication service for Google sign-in and session token handling.
Creates agent accounts on first sign-in and resolves agents from session JWTs.
"""

from typing import Optional, Tuple, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
import httpx
from flowestate.config import get_settings
from flowestate.repositories.agent import AgentRepository
from flowestate.models.agent import Agent
from flowestate.utils.auth import create_access_token, verify_token
from flowestate.utils.slugs import username_from_email
from flowestate.utils.exceptions import (
    InvalidTokenError,
    TokenExpiredError,
    UnauthorizedError,
    BadRequestError,
    ExternalServiceError,
)
from jose import JWTError, ExpiredSignatureError
import uuid
import logging

logger = logging.getLogger(__name__)

NEW_AGENT_CREDITS = 3


class AuthService:
    """
    Authentication service for managing agent sign-in and sessions.
    Google vouches for the email; the API issues its own session JWT.
    """

    def __init__(self, db_session: AsyncSession, http_client: Optional[httpx.AsyncClient] = None):
        self.db = db_session
        self.http = http_client
        self.settings = get_settings()
        self.agent_repo = AgentRepository(db_session)

    async def verify_google_id_token(self, id_token: str) -> Dict[str, Any]:
        """
        Verify a Google ID token with Google's tokeninfo endpoint.

        Args:
            id_token: ID token obtained by the browser client

        Returns:
            Token claims (email, name, sub, ...)

        Raises:
            InvalidTokenError: If Google rejects the token or the audience is wrong
            ExternalServiceError: If Google cannot be reached
        """
        if not id_token or not id_token.strip():
            raise BadRequestError("id_token is required")

        try:
            response = await self.http.get(self.settings.google_tokeninfo_url, params={"id_token": id_token})
        except httpx.HTTPError as e:
            logger.error(f"Google tokeninfo request failed: {e}")
            raise ExternalServiceError("Google", str(e))

        if response.status_code != 200:
            logger.warning(f"Google rejected ID token with status {response.status_code}")
            raise InvalidTokenError("Invalid Google ID token")

        claims = response.json()

        client_id = self.settings.google_client_id
        if client_id and claims.get("aud") != client_id:
            raise InvalidTokenError("Google ID token was issued for another application")

        if not claims.get("email"):
            raise InvalidTokenError("Google ID token has no email")

        if str(claims.get("email_verified", "true")).lower() != "true":
            raise InvalidTokenError("Google account email is not verified")

        return claims

    async def get_or_create_agent(self, email: str, name: Optional[str], google_id: Optional[str]) -> Agent:
        """
        Find the agent for an email or create it with a generated username.

        Args:
            email: Verified email address
            name: Display name from the identity provider
            google_id: Provider subject identifier

        Returns:
            Existing or newly created agent
        """
        agent = await self.agent_repo.get_by_email(email)
        if agent:
            return agent

        username = username_from_email(email)
        while await self.agent_repo.username_taken(username):
            username = username_from_email(email)

        agent = await self.agent_repo.create({
            "email": email.lower(),
            "name": name,
            "google_id": google_id,
            "username": username,
            "credits": NEW_AGENT_CREDITS,
        })
        logger.info(f"Created agent {agent.email} with {NEW_AGENT_CREDITS} free credits")
        return agent

    async def sign_in_with_google(self, id_token: str) -> Tuple[Agent, str]:
        """
        Sign an agent in with a Google ID token.

        Args:
            id_token: Google ID token

        Returns:
            Tuple of (agent, session token)

        Raises:
            InvalidTokenError: If the ID token is not valid
        """
        try:
            claims = await self.verify_google_id_token(id_token)
            agent = await self.get_or_create_agent(
                email=claims["email"],
                name=claims.get("name"),
                google_id=claims.get("sub"),
            )
            token = create_access_token(agent_id=agent.id, email=agent.email)

            logger.info(f"Agent signed in: {agent.email}")
            return agent, token

        except (InvalidTokenError, BadRequestError, ExternalServiceError):
            raise
        except Exception as e:
            logger.error(f"Google sign-in failed: {e}")
            raise UnauthorizedError(f"Sign-in failed: {str(e)}")

    async def get_current_agent(self, token: str) -> Agent:
        """
        Get the agent named by a session token.

        Args:
            token: Session JWT

        Returns:
            Agent

        Raises:
            TokenExpiredError: If the session has expired
            InvalidTokenError: If the token is invalid
            UnauthorizedError: If the agent no longer exists
        """
        try:
            payload = verify_token(token, token_type="access")
            agent_id = uuid.UUID(payload.agent_id)
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except (JWTError, ValueError) as e:
            raise InvalidTokenError(str(e))

        agent = await self.agent_repo.get_by_id(agent_id)
        if not agent:
            raise UnauthorizedError("Agent account no longer exists")
        return agent
