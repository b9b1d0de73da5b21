"""
API router aggregator.
Includes all route modules.
"""
from fastapi import APIRouter
from app.api import analysis, health, uploads

# Mounted under /api
api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(uploads.router, tags=["uploads"])

# Legacy paths mounted at the root
root_router = APIRouter()
root_router.include_router(uploads.legacy_router, tags=["uploads"])
root_router.include_router(analysis.router, tags=["analysis"])
