"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from carscout.config import settings
from carscout.database import engine, Base
from carscout.routes.listings import router as listings_router
from carscout.routes.valuations import router as valuations_router
from carscout.valuation.calibration import get_calibration

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("Starting CarScout...")
    logger.info(f"Environment: {settings.environment}")

    # Fail fast on a broken calibration file
    get_calibration()

    # Create tables (for development; use Alembic migrations in production)
    if settings.environment == "development":
        Base.metadata.create_all(bind=engine)

    yield

    # Shutdown
    logger.info("Shutting down CarScout...")


# Create FastAPI app
app = FastAPI(
    title="CarScout",
    description="Vehicle marketplace valuation, resellability and deal scoring",
    version="1.0.0",
    lifespan=lifespan,
)

# Include routes
app.include_router(valuations_router)
app.include_router(listings_router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": "CarScout",
        "version": "1.0.0",
    }


@app.get("/health")
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "environment": settings.environment,
        "pricing_api_configured": bool(settings.pricing_api_url and settings.pricing_api_key),
        "ai_estimates_configured": bool(settings.openrouter_api_key),
        "valuation_ttl_days": settings.valuation_ttl_days,
    }
