"""
FastAPI application entry point.
Sets up the API with lifespan events for database initialization.
"""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from app.config import settings
from app.database import init_db
from app.api.router import api_router
from app.auth.firebase import initialize_firebase
from app.middleware.metrics_middleware import MetricsMiddleware
from app.utils.logging import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup/shutdown events.
    - Startup: Initialize database and Firebase Admin SDK
    """
    configure_logging('grader-api', settings.log_level)

    await init_db()

    # Skip if Firebase config not provided (for local dev without Firebase)
    if settings.firebase_project_id:
        try:
            initialize_firebase()
        except Exception as e:
            if settings.environment == "production":
                raise
            logger.warning(f"Firebase initialization failed: {e}")

    yield


app = FastAPI(
    title="Homework Grader API",
    description="Credit ledger and grading backend for the homework grader",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Metrics middleware (must be after CORS to track all requests)
app.add_middleware(MetricsMiddleware)

app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Homework Grader API",
        "version": "0.1.0",
        "environment": settings.environment
    }


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
