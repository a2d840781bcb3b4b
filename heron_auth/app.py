"""
FastAPI Application Entry Point
-------------------------------
Main application initialization and configuration.
Registers routers, error handlers and lifecycle handlers.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from heron_auth.api import auth_endpoints, health_endpoints
from heron_auth.auth.identity_gateway import GoogleIdentityVerifier
from heron_auth.auth.rotation_engine import RotationEngine
from heron_auth.auth.token_codec import JwtConfig, TokenCodec
from heron_auth.core.config_manager import settings
from heron_auth.core.database_connection import db_manager
from heron_auth.core.errors import AppError
from heron_auth.core.logger_setup import configure_logger
from heron_auth.psql_db_services.schema import create_schema


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the shared auth components and open the database pool."""
    configure_logger()
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.app_env}, debug: {settings.debug}")

    # Missing key material aborts startup here.
    codec = TokenCodec(JwtConfig.from_settings(settings))

    await db_manager.initialize()
    if settings.database_auto_create_schema:
        await create_schema(db_manager)

    app.state.token_codec = codec
    app.state.rotation_engine = RotationEngine(codec, db_manager)
    app.state.google_verifier = GoogleIdentityVerifier.from_settings(settings)
    if not settings.google_client_id:
        logger.warning("GOOGLE_CLIENT_ID is not set; student sign-in will fail")

    logger.info("[SUCCESS] Application startup complete")

    yield

    logger.info("Shutting down application")
    try:
        await db_manager.close()
        logger.info("Application shutdown complete")
    except Exception as e:
        logger.error(f"Shutdown error: {e}")


# ============================================================================
# ERROR HANDLERS
# ============================================================================


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Serialize an AppError into the response envelope."""
    if settings.is_production:
        logger.error(
            f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}"
        )
    elif exc.is_operational:
        logger.warning(
            f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}"
        )
    else:
        logger.exception(f"{request.method} {request.url.path} -> {exc!r}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path} -> invalid request: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"success": False, "code": "BAD_REQUEST", "message": "Invalid request"},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if settings.is_production:
        logger.error(f"{request.method} {request.url.path} -> unhandled {type(exc).__name__}")
    else:
        logger.exception(f"{request.method} {request.url.path} -> unhandled error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "code": "INTERNAL_SERVER_ERROR",
            "message": "Internal server error",
        },
    )


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Authentication and session management for Heron Wellnest",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

# Register routers
app.include_router(health_endpoints.router)
app.include_router(auth_endpoints.router)


@app.get("/")
async def root():
    """Root endpoint with basic information."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "docs": "/api/docs",
    }
