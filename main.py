"""
Main FastAPI application module for MarketLens.

This module initializes the FastAPI application, configures logging and
middleware, sets up error handlers, and includes the API routes.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from marketlens import __version__
from marketlens.api.deps import create_service
from marketlens.api.errors import register_exception_handlers
from marketlens.api.routes import ebay
from marketlens.core.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the shared service at startup and release its session at shutdown."""
    app.state.service = create_service(settings)
    try:
        yield
    finally:
        await app.state.service.close()


# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="API for verifying eBay keys and searching active and sold listings.",
    version=__version__,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request logger
@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"{request.method} {request.url.path}")
    return await call_next(request)


# Error handlers
register_exception_handlers(app)


# Root endpoint
@app.get("/")
async def root():
    """
    Root endpoint returning welcome message.
    """
    return {
        "message": f"{settings.PROJECT_NAME} backend is running.",
        "documentation": "/docs",
        "version": __version__,
    }


@app.get("/health")
async def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


app.include_router(ebay.router, prefix=settings.API_PREFIX)


def run():
    """Serve the application with uvicorn."""
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.API_DEBUG,
    )


# Run the application
if __name__ == "__main__":
    run()
