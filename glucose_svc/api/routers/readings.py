"""
Readings router - patient glucose logging.

Writes return as soon as the reading is stored. Pattern analysis for the
patient is scheduled as a FastAPI background task and never affects the
write's response.

Architecture:
    HTTP Request → Router (this file) → ReadingService → Repositories → Database
                                      ↘ BackgroundTasks → AnalysisService
"""
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from schemas import ReadingCreate, ReadingEnvelope, ReadingListResponse, ReadingResponse, ReadingUpdate
from services import AnalysisService, ReadingService
from core.dependencies import get_analysis_service, get_reading_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/readings",
    tags=["Readings"],
)


@router.post(
    "",
    response_model=ReadingEnvelope,
    status_code=201,
    summary="Log a glucose reading",
    description="Classify and store a reading, then analyse the patient's history in the background."
)
async def create_reading(
    reading: ReadingCreate,
    background_tasks: BackgroundTasks,
    reading_service: ReadingService = Depends(get_reading_service),
    analysis_service: AnalysisService = Depends(get_analysis_service)
):
    """
    Log a new reading.

    - **patientId**: Patient logging the reading
    - **value**: Glucose value in mg/dL
    - **timestamp**: Measurement time (optional, defaults to now)
    - **foodIntake** / **activity** / **notes**: Free text (optional)

    Raises:
    - 400 Bad Request: If the value is negative (InvalidReadingError)
    - 503 Service Unavailable: If no Normal range is configured or the store fails
    """
    stored = reading_service.log_reading(
        patient_id=reading.patient_id,
        value=reading.value,
        timestamp=reading.timestamp,
        food_intake=reading.food_intake,
        activity=reading.activity,
        notes=reading.notes
    )
    background_tasks.add_task(analysis_service.analyze_in_background, stored.patient_id)
    return ReadingEnvelope(reading=ReadingResponse.from_reading(stored))


@router.get(
    "",
    response_model=ReadingListResponse,
    summary="List a patient's readings",
    description="Newest first."
)
async def list_readings(
    patient_id: str = Query(..., alias="patientId", min_length=1, description="Patient identifier"),
    limit: Optional[int] = Query(None, ge=1, le=1000, description="Maximum number of readings (1-1000)"),
    reading_service: ReadingService = Depends(get_reading_service)
):
    """Get a patient's readings, newest first."""
    readings = reading_service.list_readings(patient_id, limit=limit)
    return ReadingListResponse(readings=[ReadingResponse.from_reading(r) for r in readings])


@router.put(
    "/{reading_id}",
    response_model=ReadingEnvelope,
    summary="Edit a reading",
    description="Edit an owned reading. The value is reclassified under the current thresholds."
)
async def update_reading(
    reading_id: int,
    update: ReadingUpdate,
    background_tasks: BackgroundTasks,
    reading_service: ReadingService = Depends(get_reading_service),
    analysis_service: AnalysisService = Depends(get_analysis_service)
):
    """
    Edit a reading.

    Raises:
    - 404 Not Found: If the reading does not exist or belongs to another patient
    """
    updated = reading_service.update_reading(
        reading_id=reading_id,
        patient_id=update.patient_id,
        value=update.value,
        timestamp=update.timestamp,
        food_intake=update.food_intake,
        activity=update.activity,
        notes=update.notes
    )
    background_tasks.add_task(analysis_service.analyze_in_background, updated.patient_id)
    return ReadingEnvelope(reading=ReadingResponse.from_reading(updated))


@router.delete(
    "/{reading_id}",
    summary="Delete a reading",
    description="Delete an owned reading."
)
async def delete_reading(
    reading_id: int,
    patient_id: str = Query(..., alias="patientId", min_length=1, description="Owner of the reading"),
    reading_service: ReadingService = Depends(get_reading_service)
):
    """
    Delete a reading.

    Raises:
    - 404 Not Found: If the reading does not exist or belongs to another patient
    """
    reading_service.delete_reading(reading_id, patient_id)
    return {"success": True, "message": f"Reading {reading_id} deleted"}
