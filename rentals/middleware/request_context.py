"""
Request context middleware.
Stamps every HTTP request with a short id, enforces the body size limit and logs the outcome.
"""

from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import logging
import time
import uuid

from rentals.services.error_handler import ErrorHandlerService
from rentals.utils.exceptions import BadRequestError

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Assigns ``request.state.request_id`` and echoes it in the X-Request-ID header.
    """
    
    def __init__(
        self,
        app: ASGIApp,
        max_request_size: int = 100 * 1024 * 1024,
        enable_request_logging: bool = True
    ):
        super().__init__(app)
        self.max_request_size = max_request_size
        self.enable_request_logging = enable_request_logging
    
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        
        start_time = time.time()
        
        try:
            self._validate_request_size(request)
            response = await call_next(request)
        except BadRequestError as exc:
            response = ErrorHandlerService.handle_api_exception(exc, request)
        except Exception as exc:
            logger.error(
                f"Unhandled error [{request_id}]: {type(exc).__name__} - {exc}",
                extra={"request_id": request_id, "path": request.url.path, "method": request.method},
                exc_info=True
            )
            response = ErrorHandlerService.handle_unexpected_error(exc, request)
        
        processing_time = time.time() - start_time
        if self.enable_request_logging:
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} ({processing_time * 1000:.1f}ms)",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "processing_time": processing_time,
                }
            )
        
        response.headers["X-Request-ID"] = request_id
        return response
    
    def _validate_request_size(self, request: Request) -> None:
        """
        Raises:
            BadRequestError: If the declared body size exceeds the limit
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
