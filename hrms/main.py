"""
HRMS Leave API - FastAPI application factory.

Docs live at the root (/docs, /openapi.json); the API prefix applies to
routers only. Middleware order: CORS -> CorrelationId -> Logging.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional, Union

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from hrms.core.config import settings
from hrms.core.exceptions import AppException
from hrms.core.limiter import limiter
from hrms.core.logging import setup_logging
from hrms.core.middleware import CorrelationIdMiddleware, LoggingMiddleware
from hrms.core.schemas import ApiResponse
from hrms.database import Database
from hrms.routers.api_router import api_router

# ============================================================================
# LOGGING SETUP
# ============================================================================
setup_logging()
logger = logging.getLogger(__name__)


# ============================================================================
# LIFESPAN MANAGEMENT
# ============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifecycle manager.
    - Startup: connect the data-access handle and ensure the schema
    - Shutdown: dispose the connection pool
    """
    database: Database = app.state.database
    logger.info(f"Starting {settings.app_name} v{settings.version} ({settings.environment})")

    try:
        database.connect()
        database.create_all()
        logger.info("Database initialized successfully")
    except SQLAlchemyError as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    yield

    logger.info("Gracefully shutting down...")
    database.disconnect()


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed payloads map to 400 with one entry per offending field."""
    errors = []
    for error in exc.errors():
        field = error["loc"][-1] if len(error["loc"]) > 0 else "unknown"
        errors.append(f"{field}: {error['msg']}")

    logger.warning(f"Validation Error: {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ApiResponse.fail("Invalid request", errors).to_dict()
    )


async def app_exception_handler(request: Request, exc: AppException):
    """Handle domain-specific application exceptions."""
    logger.warning(f"AppException: {exc.message}", extra={"code": exc.error_code})
    return JSONResponse(
        status_code=exc.status_code,
        content=ApiResponse.fail(exc.message, exc.errors).to_dict()
    )


async def http_exception_handler(request: Request, exc: Union[HTTPException, StarletteHTTPException]):
    """Handle standard HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ApiResponse.fail(exc.detail if isinstance(exc.detail, str) else "Request failed").to_dict(),
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Fallback handler for unhandled server errors."""
    logger.exception("Unhandled server error", extra={"path": request.url.path})
    return JSONResponse(
        status_code=500,
        content=ApiResponse.fail("Internal server error").to_dict()
    )


# ============================================================================
# APPLICATION FACTORY
# ============================================================================
def create_app(database: Optional[Database] = None) -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        description="HRMS leave management: balances, requests, approvals and holidays",
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.database = database or Database(settings.database_url)

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Add in REVERSE order (last added runs first)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[settings.request_id_header, "X-Process-Time"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(api_router, prefix=settings.api_prefix)

    # ------------------------------------------------------------------------
    # OPERATIONAL ENDPOINTS (at root level)
    # ------------------------------------------------------------------------
    @app.get("/", tags=["Health"])
    def root():
        """API root endpoint."""
        return {
            "message": settings.app_name,
            "version": settings.version,
            "docs": "/docs",
        }

    @app.get("/health", tags=["Health"])
    def health_check():
        """Liveness probe for load balancers and orchestrators."""
        return {
            "status": "up",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": settings.version,
            "environment": settings.environment,
        }

    @app.get("/readiness", tags=["Health"])
    def readiness_check(request: Request):
        """Readiness probe - verifies database connectivity."""
        database: Database = request.app.state.database
        try:
            with database.session() as session:
                session.execute(text("SELECT 1"))
        except (RuntimeError, SQLAlchemyError) as e:
            logger.error(f"Readiness check failed: {e}")
            raise HTTPException(status_code=503, detail="Service not ready")
        return {
            "status": "ready",
            "components": {"database": "connected"},
        }

    @app.get("/liveness", tags=["Health"])
    def liveness_check():
        """Alias for health check."""
        return health_check()

    return app


app = create_app()
