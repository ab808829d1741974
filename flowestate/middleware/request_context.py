"""
Request context middleware: request IDs, body size limits and access logging.
"""

from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import logging
import time
import uuid

from flowestate.services.error_handler import ErrorHandlerService
from flowestate.utils.exceptions import BadRequestError

logger = logging.getLogger(__name__)

# Twenty 5 MB photos plus multipart overhead
DEFAULT_MAX_REQUEST_SIZE = 110 * 1024 * 1024


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an ID (echoed as X-Request-ID), rejects bodies
    over the size limit and optionally logs each request and response.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_request_size: int = DEFAULT_MAX_REQUEST_SIZE,
        enable_request_logging: bool = True
    ):
        super().__init__(app)
        self.max_request_size = max_request_size
        self.enable_request_logging = enable_request_logging

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        start_time = time.time()

        try:
            self._validate_request_size(request)
        except BadRequestError as exc:
            return ErrorHandlerService.handle_api_exception(exc, request)

        if self.enable_request_logging:
            logger.info(f"Request [{request_id}]: {request.method} {request.url.path}")

        try:
            response = await call_next(request)
        except Exception as exc:
            return ErrorHandlerService.handle_unexpected_error(exc, request)

        if self.enable_request_logging:
            logger.info(
                f"Response [{request_id}]: {response.status_code} - {time.time() - start_time:.3f}s"
            )

        response.headers["X-Request-ID"] = request_id
        return response

    def _validate_request_size(self, request: Request) -> None:
        """
        Raises:
            BadRequestError: If Content-Length is malformed or over the limit
        """
        content_length = request.headers.get("content-length")
        if not content_length:
            return
        try:
            size = int(content_length)
        except ValueError:
            raise BadRequestError("Invalid content-length header")
        if size > self.max_request_size:
            raise BadRequestError(
                f"Request size {size} bytes exceeds maximum allowed size {self.max_request_size} bytes"
            )
