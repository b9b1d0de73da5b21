"""
Analysis stub endpoints.

POST /cv and POST /di stand in for computer-vision and
document-intelligence calls. They return empty results after a fixed
simulated latency and never look at a payload.
"""
from fastapi import APIRouter, Depends

from app.schemas.upload import AnalysisResponse
from app.services.analysis_service import AnalysisService

router = APIRouter()

_analysis_service = None


def get_analysis_service() -> AnalysisService:
    """Get the shared analysis stub."""
    global _analysis_service
    if _analysis_service is None:
        _analysis_service = AnalysisService()
    return _analysis_service


@router.post("/cv", response_model=AnalysisResponse, response_model_exclude_none=True)
async def analyze_image(service: AnalysisService = Depends(get_analysis_service)):
    """Computer-vision stub: empty label list."""
    return AnalysisResponse(cv=await service.analyze_image())


@router.post("/di", response_model=AnalysisResponse, response_model_exclude_none=True)
async def analyze_document(service: AnalysisService = Depends(get_analysis_service)):
    """Document-intelligence stub: empty field map."""
    return AnalysisResponse(di=await service.analyze_document())
