"""
Custom exception classes for the Vacation Rental API.
Provides structured error handling with appropriate HTTP status codes.
"""

from typing import Any, Dict, Optional, List
from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base for every error the API renders as an error envelope."""
    
    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
        details: Optional[List[Dict[str, Any]]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code
        self.details = details or []


class ValidationError(APIException):
    """Request data failed validation; field errors go into details."""
    
    def __init__(
        self,
        detail: str,
        field_errors: Optional[List[Dict[str, str]]] = None
    ):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code="VALIDATION_ERROR",
            details=field_errors
        )
        self.field_errors = field_errors or []


class NotFoundError(APIException):
    """Requested resource does not exist or is hidden from the caller."""
    
    def __init__(self, resource: str, resource_id: Optional[str] = None):
        detail = f"{resource} not found"
        if resource_id:
            detail += f" with ID: {resource_id}"
        
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="NOT_FOUND"
        )


class UnauthorizedError(APIException):
    """Missing or unusable credentials."""
    
    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="UNAUTHORIZED",
            headers={"WWW-Authenticate": "Bearer"}
        )


class ForbiddenError(APIException):
    """Authenticated, but not allowed to do this."""
    
    def __init__(self, detail: str = "Access forbidden"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code="FORBIDDEN"
        )


class ConflictError(APIException):
    """Write clashes with existing state, such as a duplicate review."""
    
    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code="CONFLICT"
        )


class BadRequestError(APIException):
    """Request breaks a business rule. Domain errors narrow the code."""
    
    def __init__(self, detail: str, error_code: str = "BAD_REQUEST", details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code,
            details=details
        )


class InternalServerError(APIException):
    def __init__(self, detail: str = "Internal server error"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code="INTERNAL_SERVER_ERROR"
        )


# Authentication specific exceptions
class InvalidCredentialsError(UnauthorizedError):
    """Wrong email or password."""
    
    def __init__(self, detail: str = "Invalid email or password"):
        super().__init__(detail)


class TokenExpiredError(UnauthorizedError):
    def __init__(self, detail: str = "Token has expired"):
        super().__init__(detail)


class InvalidTokenError(UnauthorizedError):
    def __init__(self, detail: str = "Invalid token"):
        super().__init__(detail)


class InactiveUserError(ForbiddenError):
    """Account was deactivated or suspended by an admin."""
    
    def __init__(self, detail: str = "User account is inactive"):
        super().__init__(detail)


class InsufficientPermissionsError(ForbiddenError):
    """Role does not allow the action."""
    
    def __init__(self, action: str):
        super().__init__(f"Insufficient permissions to {action}")


# Property specific exceptions
class PropertyNotFoundError(NotFoundError):
    def __init__(self, property_id: str):
        super().__init__("Property", property_id)


class PropertyOwnershipError(ForbiddenError):
    """Only the listing host or an admin may change a property."""
    
    def __init__(self, detail: str = "You don't own this property"):
        super().__init__(detail)


class PropertyStatusError(BadRequestError):
    """Property is not in a state that allows the action, such as booking a draft."""
    
    def __init__(self, detail: str):
        super().__init__(detail)


# Booking specific exceptions
class BookingNotFoundError(NotFoundError):
    def __init__(self, booking_id: str):
        super().__init__("Booking", booking_id)


class BookingStatusTransitionError(BadRequestError):
    """Illegal booking or payment status change."""
    
    def __init__(self, current: str, requested: str, subject: str = "status"):
        super().__init__(f"Cannot change {subject} from {current} to {requested}")


class DateConflictError(BadRequestError):
    """Requested stay overlaps existing bookings or blocked dates."""
    
    def __init__(self, conflicts: List[Dict[str, Any]]):
        super().__init__(
            "Property is not available for the selected dates",
            error_code="DATE_CONFLICT",
            details=conflicts
        )
        self.conflicts = conflicts


class DuplicateResourceError(ConflictError):
    """Unique value already taken, such as an email or amenity name."""
    
    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} with identifier '{identifier}' already exists")


# File upload exceptions
class FileUploadError(BadRequestError):
    """Upload rejected before or while storing it."""
    
    def __init__(self, detail: str):
        super().__init__(f"File upload error: {detail}")


class UnsupportedFileTypeError(BadRequestError):
    def __init__(self, file_type: str, supported_types: List[str]):
        supported = ", ".join(supported_types)
        super().__init__(f"Unsupported file type '{file_type}'. Supported types: {supported}")


class FileSizeExceededError(BadRequestError):
    def __init__(self, size: int, max_size: int):
        super().__init__(f"File size {size} bytes exceeds maximum allowed size {max_size} bytes")


class ServiceUnavailableError(APIException):
    """Raised by the health check when the database is unreachable."""
    
    def __init__(self, detail: str = "Service temporarily unavailable"):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
            error_code="SERVICE_UNAVAILABLE"
        )
