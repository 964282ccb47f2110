"""
Pydantic schemas for glucose reading API operations.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.reading import Reading


class ReadingCreate(BaseModel):
    """Schema for logging a new glucose reading.

    The category is never accepted from the client; it is computed from the
    threshold table when the reading is stored.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "patientId": "patient-1",
                "value": 150,
                "timestamp": "2025-01-10T08:30:00Z",
                "foodIntake": "pizza, soda",
                "activity": "sedentary",
                "notes": "after lunch"
            }
        }
    )

    patient_id: str = Field(
        ...,
        alias="patientId",
        min_length=1,
        max_length=200,
        description="Identifier of the patient logging the reading"
    )
    value: float = Field(
        ...,
        allow_inf_nan=False,
        description="Glucose value in mg/dL"
    )
    timestamp: Optional[datetime] = Field(
        None,
        description="When the value was measured (defaults to now, UTC)"
    )
    food_intake: Optional[str] = Field(
        None,
        alias="foodIntake",
        max_length=500,
        description="What was eaten, free text"
    )
    activity: Optional[str] = Field(None, max_length=500, description="Activity, free text")
    notes: Optional[str] = Field(None, max_length=1000, description="Free text notes")


class ReadingUpdate(BaseModel):
    """Schema for editing an existing reading. Only the owner may edit."""
    model_config = ConfigDict(populate_by_name=True)

    patient_id: str = Field(..., alias="patientId", min_length=1, max_length=200)
    value: float = Field(..., allow_inf_nan=False, description="Glucose value in mg/dL")
    timestamp: Optional[datetime] = Field(
        None,
        description="New measurement time (keeps the existing one if omitted)"
    )
    food_intake: Optional[str] = Field(None, alias="foodIntake", max_length=500)
    activity: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=1000)


class ReadingResponse(BaseModel):
    """Schema for a stored reading."""
    id: int
    patient_id: str
    value: float
    timestamp: str = Field(..., description="UTC ISO 8601 timestamp")
    category: str = Field(..., description="Normal, Borderline or Abnormal")
    food_intake: Optional[str] = None
    activity: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingResponse":
        return cls(**reading.to_dict())


class ReadingEnvelope(BaseModel):
    """Response wrapping a single reading."""
    success: bool = True
    reading: ReadingResponse


class ReadingListResponse(BaseModel):
    """Response wrapping a list of readings, newest first."""
    success: bool = True
    readings: List[ReadingResponse]
