"""
Page Render API

Main FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from render_api import __version__
from render_api.config import settings
from render_api.logging_config import configure_logging
from render_api.middleware import ErrorHandlerMiddleware, RenderError, RequestLoggingMiddleware
from render_api.middleware.error_handler import (
    method_not_allowed_handler,
    not_found_handler,
    render_error_handler,
    request_validation_error_handler,
)
from render_api.routes import health, render
from render_api.services.storage import init_storage
from render_engine.browser import browser_manager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    configure_logging(settings)
    logger.info("Starting Page Render API...")
    init_storage(settings)
    await browser_manager.init(
        headless=settings.CHROMIUM_HEADLESS,
        args=settings.CHROMIUM_ARGS,
    )
    logger.info(
        "Page Render API ready",
        extra={
            "environment": settings.ENVIRONMENT,
            "max_concurrent_jobs": settings.MAX_CONCURRENT_JOBS,
            "render_app_url": settings.RENDER_APP_URL,
        },
    )
    yield
    # Shutdown
    logger.info("Shutting down, closing browser...")
    await browser_manager.shutdown()

app = FastAPI(
    title="Page Render API",
    description="Render web application pages to PDF and images with headless Chromium",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.RENDER_APP_URL] if settings.is_production else settings.ALLOWED_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "X-API-Key", "Authorization"],
)

# Error handling middleware
app.add_middleware(ErrorHandlerMiddleware, redact_errors=settings.is_production)

# Access log (outermost, so it sees error responses too)
app.add_middleware(RequestLoggingMiddleware)

app.add_exception_handler(RenderError, render_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_error_handler)
app.add_exception_handler(404, not_found_handler)
app.add_exception_handler(405, method_not_allowed_handler)

# Register routers (health needs no auth)
app.include_router(health.router, prefix="/health", tags=["Health"])
app.include_router(render.router, prefix="/render", tags=["Render"])


@app.get("/")
async def root():
    """Service banner"""
    return {
        "status": "ok",
        "service": "Page Render API",
        "version": __version__,
    }
