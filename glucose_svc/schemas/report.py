"""
Pydantic schemas for administrator reports.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ReportRequest(BaseModel):
    """Schema for requesting a report over a month, or a whole year when month is omitted."""
    model_config = ConfigDict(json_schema_extra={"example": {"year": 2025, "month": 1}})

    year: int = Field(..., ge=1, le=9999)
    month: Optional[int] = Field(None, ge=1, le=12)


class ReportBody(BaseModel):
    period: str = Field(..., description='"YYYY-MM" or "YYYY-All"')
    total_readings: int
    total_active_patients: int
    avg_sugar_level: float = Field(..., description="Mean value, one decimal, rounded half-up")
    highest_reading: float
    lowest_reading: float
    abnormal_count: int
    top_triggers: str = Field(..., description='"token (count), ..." or "None detected"')


class ReportResponse(BaseModel):
    """Either a report, or a message when the period has no readings."""
    success: bool = True
    report: Optional[ReportBody] = None
    message: Optional[str] = None
