"""
Pydantic schemas for recommendations, specialist assignments and alerts.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.datetime_utils import format_iso
from models.recommendation import PatientAssignment, Recommendation


class RecommendationCreate(BaseModel):
    """Schema for advice written by a specialist."""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "patientId": "patient-1",
                "advice": "Swap the evening soda for water.",
                "specialistId": "specialist-7"
            }
        }
    )

    patient_id: str = Field(..., alias="patientId", min_length=1, max_length=200)
    advice: str = Field(..., min_length=1, max_length=2000, description="Advice text")
    specialist_id: Optional[str] = Field(None, alias="specialistId", max_length=200)


class RecommendationResponse(BaseModel):
    """Schema for a stored recommendation."""
    id: int
    patient_id: str
    advice: str
    source: str = Field(..., description="AI or Specialist")
    created_at: str

    @classmethod
    def from_recommendation(cls, rec: Recommendation) -> "RecommendationResponse":
        return cls(**rec.to_dict())


class RecommendationEnvelope(BaseModel):
    success: bool = True
    recommendation: RecommendationResponse


class RecommendationListResponse(BaseModel):
    success: bool = True
    recommendations: List[RecommendationResponse]


class AssignmentCreate(BaseModel):
    """Schema for assigning a specialist to a patient."""
    model_config = ConfigDict(populate_by_name=True)

    patient_id: str = Field(..., alias="patientId", min_length=1, max_length=200)
    specialist_id: str = Field(..., alias="specialistId", min_length=1, max_length=200)
    assigned_by: Optional[str] = Field(None, alias="assignedBy", max_length=200)


class AssignmentResponse(BaseModel):
    success: bool = True
    patient_id: str
    specialist_id: str
    assigned_by: Optional[str] = None
    assigned_at: Optional[str] = None

    @classmethod
    def from_assignment(cls, assignment: PatientAssignment) -> "AssignmentResponse":
        return cls(
            patient_id=assignment.patient_id,
            specialist_id=assignment.specialist_id,
            assigned_by=assignment.assigned_by,
            assigned_at=format_iso(assignment.assigned_at) if assignment.assigned_at else None,
        )


class AlertsResponse(BaseModel):
    """Recent AI advice for the patients assigned to a specialist."""
    success: bool = True
    specialist_id: str
    alerts: List[RecommendationResponse]
