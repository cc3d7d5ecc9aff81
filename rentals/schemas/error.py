"""
Error response schemas for API documentation and consistent error formatting.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Any, Dict


class ErrorDetail(BaseModel):
    """Schema for individual error detail."""
    
    field: Optional[str] = Field(None, description="Field name that caused the error", examples=["email"])
    message: Optional[str] = Field(None, description="Human-readable error message")
    type: Optional[str] = Field(None, description="Error type identifier", examples=["value_error"])
    input: Optional[Any] = Field(None, description="Input value that caused the error")
    
    model_config = {"extra": "allow"}


class ErrorResponse(BaseModel):
    code: str = Field(..., description="Error code identifier", examples=["VALIDATION_ERROR"])
    message: str = Field(..., description="Human-readable error message")
    timestamp: str = Field(..., description="Error timestamp in ISO format")
    request_id: Optional[str] = Field(None, description="Request identifier echoed in X-Request-ID")
    details: Optional[List[ErrorDetail]] = None


class APIErrorResponse(BaseModel):
    """Wrapper used for every error body."""
    
    error: ErrorResponse


def _example(code: str, message: str, details: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    error = {
        "code": code,
        "message": message,
        "timestamp": "2030-01-01T00:00:00Z",
        "request_id": "abc12345",
    }
    if details:
        error["details"] = details
    return {"error": error}


def _response(description: str, examples: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "description": description,
        "model": APIErrorResponse,
        "content": {
            "application/json": {
                "examples": {
                    name: {"summary": name.replace("_", " ").title(), "value": value}
                    for name, value in examples.items()
                }
            }
        },
    }


COMMON_ERROR_RESPONSES = {
    400: _response("Bad Request - Invalid request or business rule violation", {
        "bad_request": _example("BAD_REQUEST", "Invalid date format. Use YYYY-MM-DD"),
        "date_conflict": _example(
            "DATE_CONFLICT",
            "Property is not available for the selected dates",
            [{"booking_id": "123e4567-e89b-12d3-a456-426614174000", "check_in_date": "2030-07-02",
              "check_out_date": "2030-07-06", "status": "confirmed"}],
        ),
    }),
    401: _response("Unauthorized - Authentication required", {
        "unauthorized": _example("UNAUTHORIZED", "Authentication token required"),
        "token_expired": _example("UNAUTHORIZED", "Token has expired"),
    }),
    403: _response("Forbidden - Access denied", {
        "forbidden": _example("FORBIDDEN", "Insufficient permissions to manage this booking"),
        "property_ownership": _example("FORBIDDEN", "You don't own this property"),
    }),
    404: _response("Not Found - Resource not found", {
        "not_found": _example("NOT_FOUND", "Property not found with ID: 123e4567-e89b-12d3-a456-426614174000"),
    }),
    409: _response("Conflict - Resource conflict", {
        "conflict": _example("CONFLICT", "You have already reviewed this booking"),
        "integrity_error": _example("INTEGRITY_ERROR", "Constraint violation: Duplicate value for unique field"),
    }),
    422: _response("Unprocessable Entity - Validation error", {
        "validation_error": _example(
            "VALIDATION_ERROR",
            "Request validation failed",
            [{"field": "price_per_night", "message": "Input should be greater than 0", "type": "greater_than"}],
        ),
    }),
    500: _response("Internal Server Error - Unexpected error", {
        "internal_error": _example("INTERNAL_SERVER_ERROR", "An unexpected error occurred. Please try again later."),
    }),
    503: _response("Service Unavailable", {
        "database_unavailable": _example("SERVICE_UNAVAILABLE", "Database is unreachable"),
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
    return get_error_responses(401, 403)


def get_common_error_responses() -> Dict[int, Dict[str, Any]]:
    """Get common error response schemas for most endpoints."""
    return get_error_responses(400, 401, 403, 404, 422, 500)


def get_crud_error_responses() -> Dict[int, Dict[str, Any]]:
    """Get error response schemas for CRUD operations."""
    return get_error_responses(400, 401, 403, 404, 409, 422, 500)
