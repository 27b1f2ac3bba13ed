"""Main FastAPI application entry point."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hockey_picks.api.routes import router
from hockey_picks.config import get_settings
from hockey_picks.services.ranking import resolve_method

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Hockey Picks",
    description="Daily NHL goal-scorer rankings, saved picks and standings",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


@app.on_event("startup")
async def startup_event() -> None:
    """Log startup information."""
    logger.info("Starting Hockey Picks")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    logger.info(f"NHL web API base: {settings.nhl_web_api_url}")
    logger.info(f"Seasons: {', '.join(settings.season_ids)}")
    logger.info(f"Default ranking method: {resolve_method(settings.default_ranking_method)}")
    logger.info(f"Picks directory: {settings.picks_dir}")
    if not settings.picks_dir.exists():
        logger.warning("Picks directory does not exist yet, no saved picks to serve")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    """Cleanup on shutdown."""
    logger.info("Shutting down Hockey Picks")
