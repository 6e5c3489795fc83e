"""FastAPI application for the Challenge Tracker."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import get_settings
from .api.routes import admin, challenges
from .api.exception_handlers import register_exception_handlers
from .db.connection import get_store, reset_store
from .utils.log_sanitizer import install_log_sanitizer

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # Handler filters also see records propagated from child loggers
    install_log_sanitizer()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info(f"Starting Challenge Tracker v{__version__}")
    logger.info(f"Store backend: {settings.store_backend}")
    if not settings.brevo_api_key:
        logger.warning("BREVO_API_KEY not set; challenge emails will be skipped")
    if not settings.admin_token:
        logger.warning("ADMIN_TOKEN not set; admin endpoints will reject every request")
    yield
    reset_store()
    logger.info("Shutting down Challenge Tracker")


app = FastAPI(
    title="Challenge Tracker API",
    description="Daily habit challenges with streaks, personal bests and completion rates",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(challenges.router, prefix="/api", tags=["challenges"])
app.include_router(admin.login_router, prefix="/api", tags=["admin"])
app.include_router(admin.router, prefix="/api", tags=["admin"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Challenge Tracker API",
        "version": __version__,
        "status": "healthy",
    }


@app.get("/health")
def health():
    """Health check endpoint, including store connectivity."""
    store = get_store().health_check()
    return {"status": "healthy" if store["healthy"] else "degraded", "store": store}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
