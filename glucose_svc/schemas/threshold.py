"""
Pydantic schemas for threshold management.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.datetime_utils import format_iso
from models.threshold import ThresholdConfig


class ThresholdUpdate(BaseModel):
    """Schema for replacing a category band. Bounds are inclusive."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {"min_value": 70, "max_value": 130, "updated_by": "staff-1"}
        }
    )

    min_value: float = Field(..., allow_inf_nan=False, description="Lower bound in mg/dL")
    max_value: float = Field(..., allow_inf_nan=False, description="Upper bound in mg/dL")
    updated_by: Optional[str] = Field(None, max_length=200, description="Staff member making the change")


class ThresholdResponse(BaseModel):
    """Schema for one category band."""
    category_name: str
    min_value: float
    max_value: float
    updated_by: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_config(cls, threshold: ThresholdConfig) -> "ThresholdResponse":
        return cls(
            category_name=threshold.category_name,
            min_value=threshold.min_value,
            max_value=threshold.max_value,
            updated_by=threshold.updated_by,
            updated_at=format_iso(threshold.updated_at) if threshold.updated_at else None,
        )


class ThresholdEnvelope(BaseModel):
    success: bool = True
    threshold: ThresholdResponse


class ThresholdListResponse(BaseModel):
    success: bool = True
    thresholds: List[ThresholdResponse]
