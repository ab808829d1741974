"""
FastAPI application entry point.
Main application setup and configuration.
"""

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
import httpx
import logging

from flowestate.config import settings
from flowestate.database import test_database_connection, close_db_connection, create_tables
from flowestate.middleware import RequestContextMiddleware
from flowestate.routers import api_routers, media_router
from flowestate.services.error_handler import ErrorHandlerService
from flowestate.utils.dependencies import HTTP_TIMEOUT_SECONDS
from flowestate.utils.exceptions import APIException

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Opens the shared HTTP client and checks the database on startup; closes both on shutdown.
    """
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    if not getattr(app.state, "http_client", None):
        app.state.http_client = httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS)

    if settings.is_sqlite and not settings.is_testing:
        await create_tables()

    if not await test_database_connection():
        logger.error("Failed to connect to database on startup")

    yield

    logger.info("Shutting down application")
    await app.state.http_client.aclose()
    app.state.http_client = None
    await close_db_connection()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Backend for real-estate agents publishing property listings.

    ## Features

    * **Listings**: Create, edit, duplicate and translate properties with public pages
    * **AI capture**: Turn a recorded description into a listing draft
    * **Upload links**: Let a third party add a property through a single-use token
    * **Custom fields**: Per-agent fields for each property and listing type
    * **Facebook**: Connect a page, import posts and publish listings
    * **Analytics**: Inventory, pricing and activity dashboards

    ## Authentication

    Sign in through `/api/v1/auth/google` and send the session token as `Bearer <token>`.
    Capture endpoints also accept an `X-Upload-Token` header.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Authentication", "description": "Google sign-in and sessions"},
        {"name": "Agent", "description": "Agent profile, preferences and portfolio"},
        {"name": "Properties", "description": "Listing management and AI capture"},
        {"name": "Custom Fields", "description": "Per-agent custom listing fields"},
        {"name": "Upload Tokens", "description": "Delegated upload links"},
        {"name": "Facebook", "description": "Facebook page integration"},
        {"name": "Health", "description": "System health endpoints"},
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

app.add_middleware(RequestContextMiddleware, enable_request_logging=settings.debug)

for api_router in api_routers:
    app.include_router(api_router, prefix=settings.api_v1_prefix)
app.include_router(media_router)


# Global exception handlers using ErrorHandlerService
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    """Handle custom API exceptions with structured error responses."""
    return ErrorHandlerService.handle_api_exception(exc, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors with detailed field information."""
    return ErrorHandlerService.handle_validation_error(exc, request)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """Handle database errors with appropriate error responses."""
    return ErrorHandlerService.handle_database_error(exc, request)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle plain HTTP exceptions, including unknown routes."""
    return ErrorHandlerService.handle_http_exception(exc, request)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with secure error responses."""
    return ErrorHandlerService.handle_unexpected_error(exc, request)


@app.get("/", tags=["Health"])
async def root():
    """Basic API information."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.environment,
        "status": "healthy",
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json"
        },
        "api_prefix": settings.api_v1_prefix
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint with database connectivity test.
    Used by Docker health checks and load balancers.
    """
    if not await test_database_connection():
        raise HTTPException(status_code=503, detail="Database connection failed")

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
        "flowestate.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
