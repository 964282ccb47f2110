"""
Recommendations router - advice feed, specialist advice, assignments and alerts.
"""
import logging

from fastapi import APIRouter, Depends, Query

from schemas import (
    AlertsResponse,
    AssignmentCreate,
    AssignmentResponse,
    RecommendationCreate,
    RecommendationEnvelope,
    RecommendationListResponse,
    RecommendationResponse,
)
from services import RecommendationService
from core.dependencies import get_recommendation_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Recommendations"])


@router.get(
    "/api/recommendations",
    response_model=RecommendationListResponse,
    summary="List a patient's recommendations",
    description="Most recent advice first, from both AI and specialists."
)
async def list_recommendations(
    patient_id: str = Query(..., alias="patientId", min_length=1, description="Patient identifier"),
    limit: int = Query(3, ge=1, le=100, description="Maximum number of recommendations"),
    recommendation_service: RecommendationService = Depends(get_recommendation_service)
):
    """Get the latest recommendations for a patient."""
    recs = recommendation_service.list_for_patient(patient_id, limit=limit)
    return RecommendationListResponse(
        recommendations=[RecommendationResponse.from_recommendation(r) for r in recs]
    )


@router.post(
    "/api/recommendations",
    response_model=RecommendationEnvelope,
    status_code=201,
    summary="Add specialist advice",
    description="Store advice written by a specialist. Specialist advice bypasses the dedup gate."
)
async def create_recommendation(
    request: RecommendationCreate,
    recommendation_service: RecommendationService = Depends(get_recommendation_service)
):
    """
    Add specialist advice.

    - **patientId**: Patient the advice is for
    - **advice**: Advice text
    - **specialistId**: Author (optional)
    """
    rec = recommendation_service.create_specialist_recommendation(
        patient_id=request.patient_id,
        advice=request.advice,
        specialist_id=request.specialist_id
    )
    return RecommendationEnvelope(recommendation=RecommendationResponse.from_recommendation(rec))


@router.put(
    "/api/assignments",
    response_model=AssignmentResponse,
    summary="Assign a specialist",
    description="Link a specialist to a patient. Repeating the call refreshes the assignment."
)
async def assign_specialist(
    request: AssignmentCreate,
    recommendation_service: RecommendationService = Depends(get_recommendation_service)
):
    """Assign a specialist to a patient."""
    assignment = recommendation_service.assign_specialist(
        patient_id=request.patient_id,
        specialist_id=request.specialist_id,
        assigned_by=request.assigned_by
    )
    return AssignmentResponse.from_assignment(assignment)


@router.get(
    "/api/specialists/{specialist_id}/alerts",
    response_model=AlertsResponse,
    summary="Specialist alerts",
    description="AI advice issued recently to the specialist's assigned patients, newest first."
)
async def specialist_alerts(
    specialist_id: str,
    days: int = Query(7, ge=1, le=365, description="How many days back to look"),
    recommendation_service: RecommendationService = Depends(get_recommendation_service)
):
    """Get recent AI alerts for a specialist's patients."""
    alerts = recommendation_service.alerts_for_specialist(specialist_id, days=days)
    return AlertsResponse(
        specialist_id=specialist_id,
        alerts=[RecommendationResponse.from_recommendation(r) for r in alerts]
    )
