"""
API router aggregator.
Includes all route modules.
"""
from fastapi import APIRouter
from app.api import health, credits, analysis, webhooks

api_router = APIRouter()

# Include route modules
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(credits.router, prefix="/credits", tags=["credits"])
api_router.include_router(analysis.router, prefix="/analysis", tags=["analysis"])
api_router.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
