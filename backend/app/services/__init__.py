"""
Business logic services.
"""
from app.services.analysis_service import AnalysisService
from app.services.ingestion import UploadPayload, from_base64_json, from_multipart

__all__ = [
    "AnalysisService",
    "UploadPayload",
    "from_base64_json",
    "from_multipart",
]
