"""
Thresholds router - staff management of the classification bands.
"""
import logging

from fastapi import APIRouter, Depends

from schemas import ThresholdEnvelope, ThresholdListResponse, ThresholdResponse, ThresholdUpdate
from services import ThresholdService
from core.dependencies import get_threshold_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/thresholds",
    tags=["Thresholds"],
)


@router.get(
    "",
    response_model=ThresholdListResponse,
    summary="List thresholds",
    description="All configured category bands, lowest first."
)
async def list_thresholds(
    threshold_service: ThresholdService = Depends(get_threshold_service)
):
    """Get the threshold table."""
    thresholds = threshold_service.list_thresholds()
    return ThresholdListResponse(thresholds=[ThresholdResponse.from_config(t) for t in thresholds])


@router.put(
    "/{category}",
    response_model=ThresholdEnvelope,
    summary="Update a threshold",
    description="Create or replace the band for Normal, Borderline or Abnormal. "
                "Readings already stored keep their category."
)
async def update_threshold(
    category: str,
    update: ThresholdUpdate,
    threshold_service: ThresholdService = Depends(get_threshold_service)
):
    """
    Update a category band.

    - **min_value** / **max_value**: Inclusive bounds in mg/dL
    - **updated_by**: Staff member making the change (optional)

    Raises:
    - 400 Bad Request: Unknown category, negative bounds, or min_value > max_value
    """
    threshold = threshold_service.update_threshold(
        category_name=category,
        min_value=update.min_value,
        max_value=update.max_value,
        updated_by=update.updated_by
    )
    return ThresholdEnvelope(threshold=ThresholdResponse.from_config(threshold))
