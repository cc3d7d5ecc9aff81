"""
Error handling service for consistent error response formatting and logging.
Every error leaves the API as {"error": {code, message, timestamp, request_id, details?}}.
"""

from typing import Dict, Any, Optional, List, Sequence
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from rentals.utils.exceptions import APIException
from datetime import datetime, timezone
import logging
import uuid

logger = logging.getLogger(__name__)


class ErrorHandlerService:
    """
    Formats exceptions into structured JSON responses.
    The request id comes from the request-context middleware when present.
    """
    
    @staticmethod
    def format_error_response(
        error_code: str,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
        request_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Format error response in a consistent structure.
        
        Args:
            error_code: Error code identifier
            message: Human-readable error message
            details: Optional list of detailed error information
            request_id: Optional request identifier for tracking
            
        Returns:
            Formatted error response dictionary
        """
        response = {
            "error": {
                "code": error_code,
                "message": message,
                "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
                "request_id": request_id,
            }
        }
        
        if details:
            response["error"]["details"] = details
        
        return jsonable_encoder(response)
    
    @staticmethod
    def handle_api_exception(exception: APIException, request: Optional[Request] = None) -> JSONResponse:
        """Handle typed API exceptions raised by services and dependencies."""
        request_id = ErrorHandlerService.get_request_id(request)
        
        logger.warning(
            f"API Exception [{request_id}]: {exception.error_code} - {exception.detail}",
            extra={
                "error_code": exception.error_code,
                "status_code": exception.status_code,
                "request_id": request_id,
                "path": request.url.path if request else None
            }
        )
        
        return JSONResponse(
            status_code=exception.status_code,
            content=ErrorHandlerService.format_error_response(
                error_code=exception.error_code or "API_ERROR",
                message=exception.detail,
                details=exception.details,
                request_id=request_id
            ),
            headers=exception.headers
        )
    
    @staticmethod
    def handle_validation_error(errors: Sequence[Dict[str, Any]], request: Optional[Request] = None) -> JSONResponse:
        """
        Handle request and pydantic validation errors with per-field details.
        
        Args:
            errors: Error dictionaries as returned by ``exc.errors()``
            request: Optional FastAPI request object
        """
        request_id = ErrorHandlerService.get_request_id(request)
        
        validation_details = []
        for error in errors:
            # Drop the leading "body"/"query" segment added by FastAPI
            location = [str(loc) for loc in error.get("loc", ())]
            if len(location) > 1 and location[0] in ("body", "query", "path", "header"):
                location = location[1:]
            validation_details.append({
                "field": " -> ".join(location) or None,
                "message": error.get("msg"),
                "type": error.get("type"),
                "input": error.get("input"),
            })
        
        logger.warning(
            f"Validation Error [{request_id}]: {len(validation_details)} field errors",
            extra={
                "error_count": len(validation_details),
                "request_id": request_id,
                "path": request.url.path if request else None
            }
        )
        
        return JSONResponse(
            status_code=422,
            content=ErrorHandlerService.format_error_response(
                error_code="VALIDATION_ERROR",
                message="Request validation failed",
                details=validation_details,
                request_id=request_id
            )
        )
    
    @staticmethod
    def handle_database_error(exception: SQLAlchemyError, request: Optional[Request] = None) -> JSONResponse:
        """Integrity violations become 409, anything else a 500 without internals."""
        request_id = ErrorHandlerService.get_request_id(request)
        
        if isinstance(exception, IntegrityError):
            error_code = "INTEGRITY_ERROR"
            status_code = 409
            constraint_info = ErrorHandlerService._extract_constraint_info(exception)
            message = f"Constraint violation: {constraint_info}" if constraint_info else "Data integrity constraint violation"
        else:
            error_code = "DATABASE_ERROR"
            status_code = 500
            message = "Database operation failed"
        
        logger.error(
            f"Database Error [{request_id}]: {error_code} - {exception}",
            extra={
                "error_code": error_code,
                "request_id": request_id,
                "path": request.url.path if request else None,
                "exception_type": type(exception).__name__
            },
            exc_info=True
        )
        
        return JSONResponse(
            status_code=status_code,
            content=ErrorHandlerService.format_error_response(
                error_code=error_code,
                message=message,
                request_id=request_id
            )
        )
    
    @staticmethod
    def handle_http_exception(exception: StarletteHTTPException, request: Optional[Request] = None) -> JSONResponse:
        request_id = ErrorHandlerService.get_request_id(request)
        
        logger.warning(
            f"HTTP Exception [{request_id}]: {exception.status_code} - {exception.detail}",
            extra={
                "status_code": exception.status_code,
                "request_id": request_id,
                "path": request.url.path if request else None
            }
        )
        
        return JSONResponse(
            status_code=exception.status_code,
            content=ErrorHandlerService.format_error_response(
                error_code=f"HTTP_{exception.status_code}",
                message=str(exception.detail),
                request_id=request_id
            ),
            headers=getattr(exception, "headers", None)
        )
    
    @staticmethod
    def handle_unexpected_error(exception: Exception, request: Optional[Request] = None) -> JSONResponse:
        """Log the traceback and return a generic 500."""
        request_id = ErrorHandlerService.get_request_id(request)
        
        logger.error(
            f"Unexpected Error [{request_id}]: {type(exception).__name__} - {exception}",
            extra={
                "request_id": request_id,
                "path": request.url.path if request else None,
                "exception_type": type(exception).__name__
            },
            exc_info=exception
        )
        
        return JSONResponse(
            status_code=500,
            content=ErrorHandlerService.format_error_response(
                error_code="INTERNAL_SERVER_ERROR",
                message="An unexpected error occurred. Please try again later.",
                request_id=request_id
            )
        )
    
    @staticmethod
    def get_request_id(request: Optional[Request]) -> str:
        if request is not None:
            request_id = getattr(request.state, "request_id", None)
            if request_id:
                return request_id
        return uuid.uuid4().hex[:8]
    
    @staticmethod
    def _extract_constraint_info(exception: IntegrityError) -> Optional[str]:
        error_msg = str(exception.orig).lower()
        
        if "unique" in error_msg:
            return "Duplicate value for unique field"
        if "foreign key" in error_msg:
            return "Referenced record does not exist"
        if "not null" in error_msg:
            return "Required field cannot be empty"
        if "check constraint" in error_msg:
            return "Value does not meet validation requirements"
        return None
