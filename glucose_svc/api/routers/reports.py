"""
Reports router - administrator period reports.
"""
import logging

from fastapi import APIRouter, Depends

from schemas import ReportBody, ReportRequest, ReportResponse
from services import ReportService
from core.dependencies import get_report_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/reports",
    tags=["Reports"],
)

NO_DATA_MESSAGE = "No data found"


@router.post(
    "/generate",
    response_model=ReportResponse,
    response_model_exclude_none=True,
    summary="Generate a period report",
    description="Aggregate every patient's readings over a calendar month, or over a whole "
                "year when month is omitted."
)
async def generate_report(
    request: ReportRequest,
    report_service: ReportService = Depends(get_report_service)
):
    """
    Generate a report.

    - **year**: Calendar year
    - **month**: Month 1-12 (optional; omit for the whole year)

    A period without readings is not an error: the response is
    `{"success": true, "message": "No data found"}`.
    """
    _, summary = report_service.generate_for_period(request.year, request.month)

    if summary is None:
        return ReportResponse(message=NO_DATA_MESSAGE)

    return ReportResponse(report=ReportBody(**summary.to_dict()))
