"""
Analysis router - on-demand pattern detection for a patient.

Architecture:
    HTTP Request → Router (this file) → AnalysisService → Repositories → Database
"""
import logging

from fastapi import APIRouter, Depends

from schemas import AnalyzeRequest, AnalyzeResponse
from services import AnalysisService
from core.dependencies import get_analysis_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/ai",
    tags=["Analysis"],
)


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    summary="Detect recurring triggers",
    description="Analyse a patient's recent abnormal readings for recurring food or activity "
                "triggers and store any advice that was not already issued in the dedup window."
)
async def analyze(
    request: AnalyzeRequest,
    analysis_service: AnalysisService = Depends(get_analysis_service)
):
    """
    Run the detection pipeline for one patient.

    - **patientId**: Patient to analyse

    Returns the detected patterns (most frequent first) and only the
    advice texts that were newly stored by this call. Calling it again
    straight away returns an empty newRecommendations list.

    Raises:
    - 503 Service Unavailable: If the reading or recommendation store fails
    """
    result = analysis_service.analyze(request.patient_id)
    return AnalyzeResponse(
        patterns_found=result.patterns_found,
        new_recommendations=result.new_recommendations
    )
