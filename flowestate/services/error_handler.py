"""
Error response formatting and logging.
Every error leaves the API as {"error": {code, message, timestamp, request_id, details?}}.
"""

from typing import Any, Dict, List, Optional
from fastapi import Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
import logging
import uuid

from flowestate.utils.dates import utc_now
from flowestate.utils.exceptions import APIException, ValidationError

logger = logging.getLogger(__name__)

# Substrings of driver messages mapped to client-safe explanations
CONSTRAINT_MESSAGES = (
    ("unique", "Duplicate value for unique field"),
    ("foreign key", "Referenced record does not exist"),
    ("not null", "Required field cannot be empty"),
    ("check constraint", "Value does not meet validation requirements"),
)


class ErrorHandlerService:
    """
    Turns exceptions into JSON error responses and logs them at a level
    matching who is at fault: warnings for client errors, errors for ours.
    """

    @staticmethod
    def request_id(request: Optional[Request] = None) -> str:
        """Request ID set by the request middleware, or a fresh one."""
        if request is not None:
            existing = getattr(request.state, "request_id", None)
            if existing:
                return existing
        return uuid.uuid4().hex[:8]

    @staticmethod
    def format_error_response(
        error_code: str,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
        request_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Build the error envelope.

        Args:
            error_code: Machine-readable code such as NOT_FOUND
            message: Human-readable message
            details: Optional per-field details
            request_id: Optional request identifier for tracking

        Returns:
            Error response body
        """
        error: Dict[str, Any] = {
            "code": error_code,
            "message": message,
            "timestamp": utc_now().isoformat().replace("+00:00", "Z"),
        }
        if request_id:
            error["request_id"] = request_id
        if details:
            error["details"] = details
        return {"error": error}

    @classmethod
    def handle_api_exception(cls, exception: APIException, request: Optional[Request] = None) -> JSONResponse:
        request_id = cls.request_id(request)
        log = logger.error if exception.status_code >= 500 else logger.warning
        log(
            f"API Exception [{request_id}]: {exception.error_code} - {exception.detail}",
            extra={"status_code": exception.status_code, "path": request.url.path if request else None}
        )

        details = exception.field_errors if isinstance(exception, ValidationError) else None
        return JSONResponse(
            status_code=exception.status_code,
            content=cls.format_error_response(
                exception.error_code or "API_ERROR",
                exception.detail,
                details=details,
                request_id=request_id
            ),
            headers=exception.headers
        )

    @classmethod
    def handle_validation_error(cls, exception: RequestValidationError, request: Optional[Request] = None) -> JSONResponse:
        """
        Report request validation failures with one detail per field.
        """
        request_id = cls.request_id(request)
        details = [
            {
                "field": " -> ".join(str(loc) for loc in error.get("loc", ())),
                "message": error.get("msg"),
                "type": error.get("type"),
            }
            for error in exception.errors()
        ]
        logger.warning(f"Validation Error [{request_id}]: {len(details)} field errors")

        return JSONResponse(
            status_code=422,
            content=jsonable_encoder(cls.format_error_response(
                "VALIDATION_ERROR",
                "Request validation failed",
                details=details,
                request_id=request_id
            ))
        )

    @classmethod
    def handle_database_error(cls, exception: SQLAlchemyError, request: Optional[Request] = None) -> JSONResponse:
        """
        Integrity violations become 409; any other database failure is a 500
        whose message hides driver details.
        """
        request_id = cls.request_id(request)

        if isinstance(exception, IntegrityError):
            error_code, status_code = "INTEGRITY_ERROR", 409
            message = "Data integrity constraint violation"
            constraint = cls._constraint_message(exception)
            if constraint:
                message = f"Constraint violation: {constraint}"
        else:
            error_code, status_code = "DATABASE_ERROR", 500
            message = "Database operation failed"

        logger.error(f"Database Error [{request_id}]: {error_code} - {exception}", exc_info=True)
        return JSONResponse(
            status_code=status_code,
            content=cls.format_error_response(error_code, message, request_id=request_id)
        )

    @classmethod
    def handle_http_exception(cls, exception: HTTPException, request: Optional[Request] = None) -> JSONResponse:
        request_id = cls.request_id(request)
        logger.warning(f"HTTP Exception [{request_id}]: {exception.status_code} - {exception.detail}")
        return JSONResponse(
            status_code=exception.status_code,
            content=cls.format_error_response(
                f"HTTP_{exception.status_code}",
                str(exception.detail),
                request_id=request_id
            ),
            headers=getattr(exception, "headers", None)
        )

    @classmethod
    def handle_unexpected_error(cls, exception: Exception, request: Optional[Request] = None) -> JSONResponse:
        request_id = cls.request_id(request)
        logger.error(
            f"Unexpected Error [{request_id}]: {type(exception).__name__} - {exception}",
            extra={"path": request.url.path if request else None},
            exc_info=True
        )
        return JSONResponse(
            status_code=500,
            content=cls.format_error_response(
                "INTERNAL_SERVER_ERROR",
                "An unexpected error occurred. Please try again later.",
                request_id=request_id
            )
        )

    @staticmethod
    def _constraint_message(exception: IntegrityError) -> Optional[str]:
        error_msg = str(getattr(exception, "orig", exception)).lower()
        for needle, message in CONSTRAINT_MESSAGES:
            if needle in error_msg:
                return message
        return None
