"""
Pydantic schemas for request/response validation.
"""
from app.schemas.upload import (
    Base64UploadRequest,
    UploadResponse,
    ErrorResponse,
    AnalysisResponse,
)

__all__ = [
    "Base64UploadRequest",
    "UploadResponse",
    "ErrorResponse",
    "AnalysisResponse",
]
