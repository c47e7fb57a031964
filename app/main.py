"""
SimamiaKodi API - Main Application
FastAPI application factory with CORS, error handling, request logging and
database lifecycle (opened at startup, disposed on shutdown).
"""
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import (
    commissions_router,
    maintenance_router,
    notifications_router,
    payment_plans_router,
    payments_router,
    properties_router,
    tenants_router,
    units_router,
    utilities_router,
)
from app.core.config import settings
from app.core.exceptions import setup_exception_handlers
from app.database import Database


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup, release the connection pool on shutdown."""
    database: Database = app.state.database
    logger.info("="*70)
    logger.info(f"Starting {settings.PROJECT_NAME} v{settings.VERSION}")
    logger.info(f"Environment: {'Production' if not settings.DEBUG else 'Development'}")
    logger.info(f"Database: {database.safe_url}")
    logger.info("="*70)

    database.create_all()
    if database.test_connection():
        logger.info("[OK] Database connection successful!")
    else:
        logger.warning("[WARN] Database connection failed - continuing in degraded mode")

    logger.info("[OK] Application startup complete!")
    yield

    logger.info("="*70)
    logger.info("Shutting down application...")
    database.dispose()
    logger.info("Application shutdown complete")


def create_app(database: Optional[Database] = None) -> FastAPI:
    """Build the application around an explicit database handle."""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description=settings.PROJECT_DESCRIPTION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )
    app.state.database = database or Database.from_settings()

    # ==================== MIDDLEWARE ====================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        max_age=3600,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all incoming requests"""
        # Skip logging for health checks
        if request.url.path in ["/health"]:
            return await call_next(request)

        start_time = datetime.utcnow()
        logger.info(f">> {request.method} {request.url.path}")
        response = await call_next(request)
        duration = (datetime.utcnow() - start_time).total_seconds()
        logger.info(f"<< {request.method} {request.url.path} - {response.status_code} ({duration:.2f}s)")
        return response

    # ==================== ROUTERS ====================

    app.include_router(properties_router, prefix="/api/properties", tags=["Properties"])
    app.include_router(units_router, prefix="/api/units", tags=["Units"])
    app.include_router(tenants_router, prefix="/api/tenants", tags=["Tenants"])
    app.include_router(payments_router, prefix="/api/payments", tags=["Payments"])
    app.include_router(payment_plans_router, prefix="/api/payment-plans", tags=["Payment Plans"])
    app.include_router(commissions_router, prefix="/api/commissions", tags=["Commissions"])
    app.include_router(utilities_router, prefix="/api/utilities", tags=["Utilities"])
    app.include_router(notifications_router, prefix="/api/notifications", tags=["Notifications"])
    app.include_router(maintenance_router, prefix="/api/maintenance", tags=["Maintenance"])

    # ==================== ERROR HANDLERS ====================

    setup_exception_handlers(app)

    # ==================== HEALTH & STATUS ENDPOINTS ====================

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint - API information"""
        return {
            "success": True,
            "message": f"Welcome to {settings.PROJECT_NAME}",
            "version": settings.VERSION,
            "docs": "/api/docs",
            "status": "operational",
        }

    @app.get("/health", tags=["System"])
    def health_check(request: Request):
        """Health check endpoint for monitoring"""
        connection_ok = request.app.state.database.test_connection()
        if not connection_ok:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={
                    "success": False,
                    "status": "unhealthy",
                    "database": "disconnected",
                    "timestamp": datetime.utcnow().isoformat(),
                },
            )
        return {
            "success": True,
            "status": "healthy",
            "database": "connected",
            "timestamp": datetime.utcnow().isoformat(),
        }

    return app


app = create_app()
