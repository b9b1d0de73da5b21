"""
Health check endpoint.
Reports whether the object storage backend is configured.
"""
from fastapi import APIRouter, Depends, HTTPException

from app.config import settings
from app.storage.base import ObjectStorage
from app.storage.s3_client import get_storage_client

router = APIRouter()


@router.get("")
async def health_check(storage: ObjectStorage = Depends(get_storage_client)):
    """
    Health check endpoint.
    Does not contact the backend; only checks that a credential exists.
    """
    health_status = {
        "status": "healthy",
        "storage": "configured",
        "container": settings.storage_container
    }

    if not storage.is_configured:
        health_status["storage"] = "not_configured"
        health_status["status"] = "unhealthy"
        raise HTTPException(status_code=503, detail=health_status)

    return health_status
