"""
Authentication API endpoints for Google sign-in and session info.
"""

from fastapi import APIRouter, Depends, status

from flowestate.config import settings
from flowestate.models.agent import Agent
from flowestate.schemas.auth import GoogleSignInRequest, SessionAgent, SessionInfo, SessionResponse
from flowestate.schemas.error import get_auth_error_responses, get_integration_error_responses
from flowestate.services.auth import AuthService
from flowestate.utils.dependencies import get_auth_service, get_current_agent

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/google",
    response_model=SessionResponse,
    status_code=status.HTTP_200_OK,
    summary="Sign in with Google",
    description="Exchange a Google ID token for a session token. The agent is created on first sign-in.",
    responses={**get_auth_error_responses(), **get_integration_error_responses()}
)
async def google_sign_in(
    request: GoogleSignInRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> SessionResponse:
    """
    Sign an agent in with Google.

    Args:
        request: Google ID token
        auth_service: Authentication service

    Returns:
        Session token and session agent fields
    """
    agent, token = await auth_service.sign_in_with_google(request.id_token)
    return SessionResponse(
        access_token=token,
        expires_in=settings.access_token_expire_minutes * 60,
        agent=SessionAgent(**agent.to_session_dict())
    )


@router.get(
    "/session",
    response_model=SessionInfo,
    summary="Current session",
    responses=get_auth_error_responses()
)
async def get_session(current_agent: Agent = Depends(get_current_agent)) -> SessionInfo:
    return SessionInfo(agent=SessionAgent(**current_agent.to_session_dict()))
