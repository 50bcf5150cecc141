"""PowerUp — FastAPI Application Entry Point.

Powerlifting meet management: meet records, validation, registrations, listings and stats.
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.database import init_db, test_connection
from app.api.meet_routes import router as meet_router
from app.api.public_routes import router as public_router
from app.api.registration_routes import router as registration_router
from app.core.logging import get_logger

logger = get_logger("main")

IS_SERVERLESS = bool(
    os.environ.get("VERCEL") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME")
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("PowerUp starting up...")
    logger.info(f"Environment: {'SERVERLESS' if IS_SERVERLESS else 'LOCAL'}")
    # Test connection first
    db_ok = test_connection()
    if db_ok:
        try:
            init_db()
        except Exception as e:
            logger.error(f"Table creation failed: {e}")
    else:
        logger.error("Database NOT connected — endpoints will fail")
    yield
    logger.info("PowerUp shut down")


app = FastAPI(
    title="PowerUp",
    description="Powerlifting meet management: create, validate, publish and track meets.",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(meet_router)
app.include_router(registration_router)
app.include_router(public_router)


@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "powerup",
        "version": "1.0.0",
    }
