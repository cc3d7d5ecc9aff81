"""
FastAPI application entry point.
Main application setup and configuration.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from pathlib import Path
from sqlalchemy.exc import SQLAlchemyError
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from rentals.config import settings
from rentals.database import AsyncSessionLocal, test_database_connection, create_tables, close_db_connection
from rentals.routers import (
    auth_router,
    users_router,
    properties_router,
    images_router,
    amenities_router,
    bookings_router,
    messages_router,
    notifications_router,
    favorites_router,
    analytics_router,
    admin_router,
    realtime_router,
)
from rentals.services.amenity import seed_default_amenities
from rentals.services.error_handler import ErrorHandlerService
from rentals.middleware import RequestContextMiddleware
from rentals.utils.exceptions import APIException, ServiceUnavailableError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Creates the schema and seeds the amenity catalogue on startup.
    """
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")
    
    if await test_database_connection():
        await create_tables()
        async with AsyncSessionLocal() as session:
            await seed_default_amenities(session)
    else:
        logger.error("Failed to connect to database on startup")
    
    yield
    
    logger.info("Shutting down application")
    await close_db_connection()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Vacation rental marketplace API.
    
    ## Features
    
    * **Listings**: hosts publish properties with images, amenities and blocked dates
    * **Search**: filter active listings by location, capacity, price, amenities and free dates
    * **Bookings**: availability checks, price quotes, booking lifecycle, payments and refunds
    * **Reviews**: guests review completed stays; ratings roll up to properties and hosts
    * **Messaging**: guest-host conversations with live delivery over WebSocket (`/ws`)
    * **Moderation**: admin approval of listings, booking and review moderation with an audit log
    
    ## Authentication
    
    Use `/api/v1/auth/login` to obtain a JWT token, then send it as `Authorization: Bearer <token>`.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Authentication", "description": "Registration, login and token management"},
        {"name": "Users", "description": "Current account"},
        {"name": "Properties", "description": "Listing search and management"},
        {"name": "Images", "description": "Property image galleries"},
        {"name": "Amenities", "description": "Amenity catalogue"},
        {"name": "Bookings", "description": "Availability, pricing, bookings, payments and reviews"},
        {"name": "Messages", "description": "Conversations and messages"},
        {"name": "Notifications", "description": "In-app notifications"},
        {"name": "Favorites", "description": "Saved properties"},
        {"name": "Analytics", "description": "Dashboards and user administration"},
        {"name": "Admin", "description": "Platform moderation"},
        {"name": "Health", "description": "Service health"},
    ],
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

app.add_middleware(
    RequestContextMiddleware,
    max_request_size=settings.max_file_size * settings.max_files_per_upload,
    enable_request_logging=not settings.is_testing,
)

for api_router in (
    auth_router,
    users_router,
    properties_router,
    images_router,
    amenities_router,
    bookings_router,
    messages_router,
    notifications_router,
    favorites_router,
    analytics_router,
    admin_router,
):
    app.include_router(api_router, prefix=settings.api_v1_prefix)

# The socket endpoint lives outside the API prefix
app.include_router(realtime_router)

Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
app.mount(settings.upload_url_prefix, StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")


# Global exception handlers using ErrorHandlerService
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    return ErrorHandlerService.handle_api_exception(exc, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return ErrorHandlerService.handle_validation_error(exc.errors(), request)


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: PydanticValidationError):
    return ErrorHandlerService.handle_validation_error(exc.errors(), request)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    return ErrorHandlerService.handle_database_error(exc, request)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Covers routing 404s and 405s as well as explicit HTTPExceptions."""
    return ErrorHandlerService.handle_http_exception(exc, request)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    return ErrorHandlerService.handle_unexpected_error(exc, request)


@app.get("/", tags=["Health"])
async def root():
    """Basic API information."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.environment,
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json"
        },
        "api_prefix": settings.api_v1_prefix,
        "websocket": "/ws"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint with database connectivity test.
    Used by Docker health checks and load balancers.
    """
    if not await test_database_connection():
        raise ServiceUnavailableError("Database connection failed")
    
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "rentals.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
