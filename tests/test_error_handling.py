"""
Tests for error handling.
Tests custom exceptions, the request context middleware, and error response formatting.
"""

import json
from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError, OperationalError

from flowestate.middleware import RequestContextMiddleware
from flowestate.services.error_handler import ErrorHandlerService
from flowestate.utils.exceptions import (
    APIException,
    ExternalServiceError,
    InvalidUploadTokenError,
    NotFoundError,
    PlanLimitExceededError,
    ResourceLimitExceededError,
    ValidationError,
)


class TestErrorHandlerService:
    """Test error handler service functionality."""

    def test_format_error_response(self):
        response = ErrorHandlerService.format_error_response(
            error_code="TEST_ERROR",
            message="Test error message",
            details=[{"field": "test", "message": "Test field error"}],
            request_id="test123"
        )

        assert response["error"]["code"] == "TEST_ERROR"
        assert response["error"]["message"] == "Test error message"
        assert response["error"]["request_id"] == "test123"
        assert response["error"]["details"][0]["field"] == "test"
        assert response["error"]["timestamp"].endswith("Z")

    def test_format_error_response_omits_empty_details(self):
        response = ErrorHandlerService.format_error_response("TEST_ERROR", "Message")
        assert "details" not in response["error"]

    def test_handle_api_exception(self):
        exception = ValidationError("Test validation error", field_errors=[{"field": "price", "message": "bad"}])
        response = ErrorHandlerService.handle_api_exception(exception)

        assert response.status_code == 422
        response_data = json.loads(response.body)
        assert response_data["error"]["code"] == "VALIDATION_ERROR"
        assert response_data["error"]["message"] == "Test validation error"
        assert response_data["error"]["details"] == [{"field": "price", "message": "bad"}]

    @pytest.mark.parametrize("exception, status_code, code", [
        (NotFoundError("Property", "abc"), 404, "NOT_FOUND"),
        (InvalidUploadTokenError("Upload token has expired"), 401, "UNAUTHORIZED"),
        (PlanLimitExceededError("Free plan allows 5 properties"), 403, "PLAN_LIMIT_EXCEEDED"),
        (ResourceLimitExceededError("Custom fields per combination", 5), 400, "BAD_REQUEST"),
        (ExternalServiceError("Mux", "HTTP 500"), 502, "EXTERNAL_SERVICE_ERROR"),
        (APIException(418, "Teapot"), 418, "API_ERROR"),
    ])
    def test_status_and_code(self, exception, status_code, code):
        response = ErrorHandlerService.handle_api_exception(exception)

        assert response.status_code == status_code
        assert json.loads(response.body)["error"]["code"] == code

    def test_handle_validation_error(self):
        mock_error = Mock()
        mock_error.errors.return_value = [
            {"loc": ("body", "title"), "msg": "Field required", "type": "missing"},
            {"loc": ("body", "price"), "msg": "Input should be greater than or equal to 0", "type": "greater_than_equal"},
        ]

        response = ErrorHandlerService.handle_validation_error(mock_error)

        assert response.status_code == 422
        details = json.loads(response.body)["error"]["details"]
        assert [d["field"] for d in details] == ["body -> title", "body -> price"]
        assert details[0]["type"] == "missing"

    def test_handle_integrity_error(self):
        error = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: agents.username"))
        response = ErrorHandlerService.handle_database_error(error)

        assert response.status_code == 409
        response_data = json.loads(response.body)
        assert response_data["error"]["code"] == "INTEGRITY_ERROR"
        assert response_data["error"]["message"] == "Constraint violation: Duplicate value for unique field"

    def test_handle_other_database_error_hides_details(self):
        error = OperationalError("SELECT", {}, Exception("database is locked"))
        response = ErrorHandlerService.handle_database_error(error)

        assert response.status_code == 500
        response_data = json.loads(response.body)
        assert response_data["error"]["code"] == "DATABASE_ERROR"
        assert "locked" not in response_data["error"]["message"]

    def test_handle_unexpected_error(self):
        response = ErrorHandlerService.handle_unexpected_error(Exception("secret stack detail"))

        assert response.status_code == 500
        response_data = json.loads(response.body)
        assert response_data["error"]["code"] == "INTERNAL_SERVER_ERROR"
        assert "secret" not in response_data["error"]["message"]


class TestRequestContextMiddleware:
    """Test request IDs, size limits and failure capture."""

    @pytest.fixture
    def test_app(self):
        test_app = FastAPI()
        test_app.add_middleware(RequestContextMiddleware, max_request_size=64, enable_request_logging=False)

        @test_app.exception_handler(APIException)
        async def api_exception_handler(request, exc):
            return ErrorHandlerService.handle_api_exception(exc, request)

        @test_app.get("/test")
        async def test_endpoint():
            return {"message": "success"}

        @test_app.post("/test")
        async def test_post_endpoint(data: dict):
            return {"message": "success", "data": data}

        @test_app.get("/missing")
        async def missing_endpoint():
            raise NotFoundError("Property")

        @test_app.get("/boom")
        async def failing_endpoint():
            raise RuntimeError("boom")

        return test_app

    def test_request_id_header(self, test_app):
        client = TestClient(test_app)

        first = client.get("/test")
        second = client.get("/test")

        assert first.status_code == 200
        assert len(first.headers["X-Request-ID"]) == 8
        assert first.headers["X-Request-ID"] != second.headers["X-Request-ID"]

    def test_error_carries_same_request_id(self, test_app):
        client = TestClient(test_app)

        response = client.get("/missing")

        assert response.status_code == 404
        assert response.json()["error"]["request_id"] == response.headers["X-Request-ID"]

    def test_request_size_validation(self, test_app):
        client = TestClient(test_app)

        response = client.post("/test", json={"description": "x" * 200})

        assert response.status_code == 400
        assert "exceeds maximum allowed size" in response.json()["error"]["message"]

    def test_small_request_passes(self, test_app):
        client = TestClient(test_app)

        response = client.post("/test", json={"a": 1})

        assert response.status_code == 200
        assert response.json()["data"] == {"a": 1}

    def test_unhandled_exception_becomes_500(self, test_app):
        client = TestClient(test_app)

        response = client.get("/boom")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "INTERNAL_SERVER_ERROR"
