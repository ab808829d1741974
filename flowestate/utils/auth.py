"""
Authentication utilities for session JWTs and signed OAuth state values.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from flowestate.config import settings
import uuid


class TokenPayload:
    """JWT session payload structure."""

    def __init__(self, agent_id: str, email: str, exp: datetime):
        self.agent_id = agent_id
        self.email = email
        self.exp = exp

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenPayload":
        """Create TokenPayload from dictionary."""
        return cls(
            agent_id=data["sub"],
            email=data["email"],
            exp=datetime.fromtimestamp(data["exp"], tz=timezone.utc)
        )


def _encode(claims: Dict[str, Any], expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    to_encode = dict(claims)
    to_encode.update({"exp": now + expires_delta, "iat": now})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(
    agent_id: uuid.UUID,
    email: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a session JWT for a signed-in agent.

    Args:
        agent_id: Agent's UUID
        email: Agent's email address
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    return _encode(
        {"sub": str(agent_id), "email": email, "type": "access"},
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )


def verify_token(token: str, token_type: str = "access") -> TokenPayload:
    """
    Verify and decode a session JWT.

    Args:
        token: JWT token string
        token_type: Expected token type

    Returns:
        Decoded TokenPayload

    Raises:
        JWTError: If token is invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm]
        )

        if payload.get("type") != token_type:
            raise JWTError(f"Invalid token type. Expected {token_type}")

        if not payload.get("sub") or not payload.get("email"):
            raise JWTError("Invalid token payload")

        return TokenPayload.from_dict(payload)

    except JWTError:
        raise
    except Exception as e:
        raise JWTError(f"Token validation error: {str(e)}")


def create_oauth_state(agent_id: uuid.UUID, minutes: int = 10) -> str:
    """Signed, short-lived OAuth state naming the agent that started the flow."""
    return _encode({"sub": str(agent_id), "type": "oauth_state"}, timedelta(minutes=minutes))


def verify_oauth_state(state: str) -> uuid.UUID:
    """
    Decode an OAuth state value.

    Args:
        state: Value returned by the provider in the callback

    Returns:
        UUID of the agent that started the flow

    Raises:
        JWTError: If the state is forged, expired or malformed
    """
    payload = jwt.decode(state, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    if payload.get("type") != "oauth_state":
        raise JWTError("Invalid state type")
    try:
        return uuid.UUID(payload["sub"])
    except (KeyError, ValueError) as e:
        raise JWTError(f"Invalid state payload: {e}")
