"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.api.v1.router import api_router
from app.core.config import settings
from app.core.errors import InvalidInputError, OwnershipViolationError
from app.core.logging_config import get_logger, setup_logging

setup_logging(settings.LOG_LEVEL, settings.LOG_JSON)
logger = get_logger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Adaptive weekly training-load engine.",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json")

# Include API router
app.include_router(api_router, prefix="/api/v1")


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                        content={ "detail": str(exc), "field": exc.field })


@app.exception_handler(OwnershipViolationError)
async def ownership_violation_handler(request: Request, exc: OwnershipViolationError):
    logger.warning("Ownership violation rejected", extra={ "ctx_path": request.url.path,
                                                           "ctx_session_id": exc.session_id })
    return JSONResponse(status_code=status.HTTP_409_CONFLICT,
                        content={ "detail": str(exc), "session_id": exc.session_id, "context": exc.context })


@app.get("/")
async def root():
    """Root endpoint - health check."""
    return {
        "message": "Stride Load API",
        "version": settings.VERSION,
        "status": "healthy"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "service": "stride-load-api",
        "version": settings.VERSION
    }


@app.get("/info")
async def info():
    return {
        "project name": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "authors": settings.AUTHORS,
        "project url": settings.PROJECT_URL
    }
