"""
Utility modules for the Flow Estate API.
"""

from .auth import (
    create_access_token,
    verify_token,
    create_oauth_state,
    verify_oauth_state,
    TokenPayload
)

from .exceptions import (
    APIException,
    ValidationError,
    NotFoundError,
    UnauthorizedError,
    ForbiddenError,
    BadRequestError,
    InternalServerError,
    TokenExpiredError,
    InvalidTokenError,
    InvalidUploadTokenError,
    PropertyOwnershipError,
    PlanLimitExceededError,
    ExternalServiceError,
    ServiceUnavailableError
)

# Dependencies are imported directly where needed to avoid circular imports

__all__ = [
    # Auth utilities
    "create_access_token",
    "verify_token",
    "create_oauth_state",
    "verify_oauth_state",
    "TokenPayload",

    # Exceptions
    "APIException",
    "ValidationError",
    "NotFoundError",
    "UnauthorizedError",
    "ForbiddenError",
    "BadRequestError",
    "InternalServerError",
    "TokenExpiredError",
    "InvalidTokenError",
    "InvalidUploadTokenError",
    "PropertyOwnershipError",
    "PlanLimitExceededError",
    "ExternalServiceError",
    "ServiceUnavailableError",
]
