"""
Domain models for recommendations and specialist assignments.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from core.datetime_utils import format_iso, parse_datetime


class RecommendationSource(str, Enum):
    """Who issued a recommendation."""

    AI = "AI"
    SPECIALIST = "Specialist"


@dataclass
class Recommendation:
    """Advice issued to a patient. Never mutated after creation."""

    id: int
    patient_id: str
    advice: str
    source: RecommendationSource
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Convert recommendation to dictionary for API responses."""
        return {
            "id": self.id,
            "patient_id": self.patient_id,
            "advice": self.advice,
            "source": self.source.value,
            "created_at": format_iso(self.created_at),
        }

    @classmethod
    def from_row(cls, row: tuple) -> "Recommendation":
        """Create a Recommendation from (id, patient_id, advice, source, created_at)."""
        return cls(
            id=row[0],
            patient_id=row[1],
            advice=row[2],
            source=RecommendationSource(row[3]),
            created_at=parse_datetime(row[4]),
        )


@dataclass
class PatientAssignment:
    """Link between a patient and the specialist following them."""

    patient_id: str
    specialist_id: str
    assigned_by: Optional[str] = None
    assigned_at: Optional[datetime] = None
