"""
Bike Shop POS: Main Application

FastAPI entry point. Mounts the product, catalog CSV, supplier invoice and
business settings routers under /api.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import structlog
from datetime import datetime, timezone

from config import settings, check_connection
from exceptions import AppError

# Configure structured logging on top of stdlib logging
logging.basicConfig(format="%(message)s", level=settings.log_level)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer() if settings.is_production
            else structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)

API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log the import configuration and probe Supabase on startup."""
    logger.info(
        "pos_api_starting",
        environment=settings.environment,
        identity_policy=settings.import_identity_policy.value,
        import_workers=settings.import_max_workers
    )

    db_status = check_connection()
    if db_status["status"] == "healthy":
        logger.info(
            "catalog_store_reachable",
            products=db_status["products_count"],
            variants=db_status["variants_count"]
        )
    else:
        # The API still starts; /health reports the degraded state
        logger.error("catalog_store_unreachable", error=db_status.get("error"))

    yield

    logger.info("pos_api_stopped")


app = FastAPI(
    title="Bike Shop POS",
    description="Catalog, inventory and supplier invoice backend for a bicycle shop",
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===================
# ROUTES
# ===================

@app.get("/health")
async def health_check():
    """Store connectivity plus the active import configuration."""
    db_status = check_connection()

    return {
        "status": "healthy" if db_status["status"] == "healthy" else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "database": db_status,
        "catalog_import": {
            "identity_policy": settings.import_identity_policy.value,
            "max_workers": settings.import_max_workers
        }
    }


@app.get("/")
async def root():
    return {
        "name": "Bike Shop POS API",
        "version": API_VERSION,
        "docs": "/docs" if settings.debug else None,
        "health": "/health",
        "endpoints": {
            "products": "/api/products",
            "catalog": "/api/catalog",
            "invoices": "/api/invoices",
            "settings": "/api/settings"
        }
    }


# ===================
# ERROR HANDLERS
# ===================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """AppErrors raised outside a route's own try block."""
    logger.warning("app_error", path=request.url.path, code=exc.code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Anything else becomes a 500 INTERNAL_ERROR."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": str(exc) if settings.debug else None,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        }
    )


# ===================
# INCLUDE ROUTERS
# ===================
from routes import products_router, catalog_router, invoices_router, settings_router

app.include_router(products_router, prefix="/api/products", tags=["Products"])
app.include_router(catalog_router, prefix="/api/catalog", tags=["Catalog"])
app.include_router(invoices_router, prefix="/api/invoices", tags=["Invoices"])
app.include_router(settings_router, prefix="/api/settings", tags=["Settings"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
