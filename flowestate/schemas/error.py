"""
Error response schemas for API documentation.
Every error body has the shape {"error": {"code", "message", "timestamp", "request_id", "details"?}}.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Any, Dict


class ErrorDetail(BaseModel):
    """Schema for individual error detail."""

    field: Optional[str] = Field(
        None,
        description="Field name that caused the error",
        example="username"
    )

    message: str = Field(
        ...,
        description="Human-readable error message",
        example="Field required"
    )

    type: Optional[str] = Field(
        None,
        description="Error type identifier",
        example="missing"
    )

    input: Optional[Any] = Field(
        None,
        description="Input value that caused the error"
    )


class ErrorResponse(BaseModel):
    """Schema for standardized error responses."""

    code: str = Field(..., description="Error code identifier", example="NOT_FOUND")
    message: str = Field(..., description="Human-readable error message", example="Property not found")
    timestamp: str = Field(..., description="Error timestamp in ISO format", example="2025-01-01T00:00:00Z")
    request_id: Optional[str] = Field(None, description="Request identifier for tracking", example="abc12345")
    details: Optional[List[ErrorDetail]] = Field(None, description="Field errors for validation failures")


class APIErrorResponse(BaseModel):
    """Schema for API error response wrapper."""

    error: ErrorResponse = Field(..., description="Error information")


def _documented(description: str, examples: Dict[str, tuple]) -> Dict[str, Any]:
    return {
        "description": description,
        "model": APIErrorResponse,
        "content": {
            "application/json": {
                "examples": {
                    name: {
                        "summary": summary,
                        "value": {
                            "error": {
                                "code": code,
                                "message": message,
                                "timestamp": "2025-01-01T00:00:00Z",
                                "request_id": "abc12345",
                            }
                        },
                    }
                    for name, (summary, code, message) in examples.items()
                }
            }
        },
    }


COMMON_ERROR_RESPONSES = {
    400: _documented("Bad Request - Invalid request parameters", {
        "bad_request": ("Bad Request", "BAD_REQUEST", "Title and description are required"),
        "limit": ("Resource Limit", "BAD_REQUEST", "Maximum of 5 custom fields reached"),
    }),
    401: _documented("Unauthorized - Authentication required", {
        "unauthorized": ("Authentication Required", "UNAUTHORIZED", "Authentication required"),
        "token_expired": ("Session Expired", "UNAUTHORIZED", "Token has expired"),
        "upload_token": ("Upload Token Rejected", "UNAUTHORIZED", "Upload token has expired"),
    }),
    403: _documented("Forbidden - Access denied", {
        "ownership": ("Property Ownership", "FORBIDDEN", "You don't have permission to modify this property"),
        "plan_limit": ("Plan Limit", "PLAN_LIMIT_EXCEEDED", "You have reached the limit of 20 properties"),
    }),
    404: _documented("Not Found - Resource does not exist", {
        "not_found": ("Not Found", "NOT_FOUND", "Property not found"),
    }),
    409: _documented("Conflict - Resource already exists", {
        "conflict": ("Conflict", "CONFLICT", "Resource already exists"),
    }),
    422: _documented("Unprocessable Entity - Request validation failed", {
        "validation": ("Validation Error", "VALIDATION_ERROR", "Request validation failed"),
    }),
    500: _documented("Internal Server Error", {
        "internal": ("Internal Error", "INTERNAL_SERVER_ERROR", "An unexpected error occurred"),
    }),
    502: _documented("Bad Gateway - A third-party service failed", {
        "external": ("External Service", "EXTERNAL_SERVICE_ERROR", "OpenAI request failed"),
    }),
    503: _documented("Service Unavailable - Integration not configured", {
        "unavailable": ("Unavailable", "SERVICE_UNAVAILABLE", "AI features are not configured"),
    }),
}


def get_error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """
    Get error response schemas for specific status codes.

    Args:
        status_codes: HTTP status codes to include

    Returns:
        Dictionary of error response schemas
    """
    return {
        code: COMMON_ERROR_RESPONSES[code]
        for code in status_codes
        if code in COMMON_ERROR_RESPONSES
    }


def get_auth_error_responses() -> Dict[int, Dict[str, Any]]:
    """Get authentication and authorization error response schemas."""
    return get_error_responses(401, 403)


def get_common_error_responses() -> Dict[int, Dict[str, Any]]:
    """Get common error response schemas for most endpoints."""
    return get_error_responses(400, 401, 403, 404, 422, 500)


def get_crud_error_responses() -> Dict[int, Dict[str, Any]]:
    """Get error response schemas for CRUD operations."""
    return get_error_responses(400, 401, 403, 404, 409, 422, 500)


def get_integration_error_responses() -> Dict[int, Dict[str, Any]]:
    """Get error response schemas for endpoints backed by a third-party service."""
    return get_error_responses(400, 401, 422, 500, 502, 503)
