"""
Tests for error handling.
Tests custom exceptions, the error envelope, and how the application renders failures.
"""

import pytest
import json
from httpx import AsyncClient
from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from rentals.services.error_handler import ErrorHandlerService
from rentals.utils.exceptions import (
    ValidationError,
    NotFoundError,
    UnauthorizedError,
    ForbiddenError,
    BadRequestError,
    ConflictError,
    DateConflictError,
    BookingStatusTransitionError,
    PropertyNotFoundError,
)
from tests.conftest import assert_error_envelope, auth_headers


class TestErrorHandlerService:
    """Test error handler service functionality."""

    def test_format_error_response(self):
        """Test error response formatting."""
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
        response = ErrorHandlerService.format_error_response("X", "y")
        assert "details" not in response["error"]

    def test_handle_api_exception(self):
        """Test API exception handling."""
        response = ErrorHandlerService.handle_api_exception(ValidationError("Test validation error"))

        assert response.status_code == 422
        body = json.loads(response.body)
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["error"]["message"] == "Test validation error"
        assert body["error"]["request_id"]

    def test_date_conflict_carries_conflicts(self):
        conflicts = [{"type": "blocked", "date": "2030-01-01", "reason": "maintenance"}]
        response = ErrorHandlerService.handle_api_exception(DateConflictError(conflicts))

        assert response.status_code == 400
        body = json.loads(response.body)
        assert body["error"]["code"] == "DATE_CONFLICT"
        assert body["error"]["details"] == conflicts

    def test_handle_validation_error(self):
        """Field paths drop the request section and are joined with arrows."""
        errors = [
            {"loc": ("body", "email"), "msg": "Field required", "type": "missing", "input": None},
            {"loc": ("body", "address", "city"), "msg": "Invalid value", "type": "value_error", "input": "x"},
        ]

        response = ErrorHandlerService.handle_validation_error(errors)

        assert response.status_code == 422
        body = json.loads(response.body)
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert [detail["field"] for detail in body["error"]["details"]] == ["email", "address -> city"]

    def test_handle_integrity_error(self):
        error = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: users.email"))
        response = ErrorHandlerService.handle_database_error(error)

        assert response.status_code == 409
        body = json.loads(response.body)
        assert body["error"]["code"] == "INTEGRITY_ERROR"
        assert "Duplicate value" in body["error"]["message"]

    def test_handle_other_database_error_hides_internals(self):
        error = OperationalError("SELECT secret_table", {}, Exception("connection refused"))
        response = ErrorHandlerService.handle_database_error(error)

        assert response.status_code == 500
        body = json.loads(response.body)
        assert body["error"]["code"] == "DATABASE_ERROR"
        assert "secret_table" not in body["error"]["message"]

    def test_handle_http_exception(self):
        response = ErrorHandlerService.handle_http_exception(StarletteHTTPException(status_code=404, detail="Not Found"))

        assert response.status_code == 404
        assert json.loads(response.body)["error"]["code"] == "HTTP_404"

    def test_handle_unexpected_error(self):
        """Test unexpected error handling."""
        response = ErrorHandlerService.handle_unexpected_error(Exception("Unexpected error"))

        assert response.status_code == 500
        body = json.loads(response.body)
        assert body["error"]["code"] == "INTERNAL_SERVER_ERROR"
        assert "Unexpected error" not in body["error"]["message"]


class TestCustomExceptions:
    """Test custom exception classes."""

    def test_exception_status_codes(self):
        assert NotFoundError("Property", "abc").status_code == 404
        assert UnauthorizedError().status_code == 401
        assert ForbiddenError().status_code == 403
        assert BadRequestError("bad").status_code == 400
        assert ConflictError("dup").status_code == 409

    def test_not_found_message(self):
        assert PropertyNotFoundError("abc").detail == "Property not found with ID: abc"

    def test_unauthorized_sets_bearer_challenge(self):
        assert UnauthorizedError().headers == {"WWW-Authenticate": "Bearer"}

    def test_transition_error_message(self):
        error = BookingStatusTransitionError("completed", "pending")
        assert error.detail == "Cannot change status from completed to pending"


class TestApplicationErrors:
    """Errors rendered by the running application."""

    @pytest.mark.asyncio
    async def test_unknown_route_uses_envelope(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/does-not-exist")
        error = assert_error_envelope(response, 404, "HTTP_404")
        assert response.headers["X-Request-ID"] == error["request_id"]

    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/users/me")
        assert_error_envelope(response, 401, "UNAUTHORIZED")

    @pytest.mark.asyncio
    async def test_invalid_token_is_401(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert_error_envelope(response, 401)

    @pytest.mark.asyncio
    async def test_request_validation_is_422(self, async_client: AsyncClient):
        response = await async_client.post("/api/v1/auth/register", json={"email": "not-an-email"})
        error = assert_error_envelope(response, 422, "VALIDATION_ERROR")
        fields = {detail["field"] for detail in error["details"]}
        assert {"email", "password", "first_name", "last_name"} <= fields

    @pytest.mark.asyncio
    async def test_forbidden_for_wrong_role(self, async_client: AsyncClient, test_guest):
        response = await async_client.get("/api/v1/admin/logs", headers=auth_headers(test_guest))
        assert_error_envelope(response, 403, "FORBIDDEN")

    @pytest.mark.asyncio
    async def test_malformed_uuid_path_is_422(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/properties/not-a-uuid")
        assert_error_envelope(response, 422, "VALIDATION_ERROR")
