"""
Pydantic schemas for the analysis endpoint.

Field aliases keep the camelCase names existing clients send and read.
"""
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"patientId": "patient-1"}}
    )

    patient_id: str = Field(..., alias="patientId", min_length=1, max_length=200)


class AnalyzeResponse(BaseModel):
    """Patterns found in this run and the advice that was newly stored."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    patterns_found: List[str] = Field(default_factory=list, alias="patternsFound")
    new_recommendations: List[str] = Field(default_factory=list, alias="newRecommendations")
