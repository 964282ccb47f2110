"""
Domain model for blood-glucose readings.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from core.datetime_utils import format_iso, parse_datetime


class Category(str, Enum):
    """Classification of a glucose value against the threshold table."""

    NORMAL = "Normal"
    BORDERLINE = "Borderline"
    ABNORMAL = "Abnormal"

    @classmethod
    def from_name(cls, name: str) -> "Category":
        """
        Resolve a category from its name, ignoring case and surrounding spaces.

        Raises:
            ValueError: If the name is not a known category.
        """
        normalized = (name or "").strip().lower()
        for category in cls:
            if category.value.lower() == normalized:
                return category
        raise ValueError(f"Unknown category: '{name}'")


@dataclass
class Reading:
    """A single logged glucose reading."""

    id: Optional[int]
    patient_id: str
    value: float
    timestamp: datetime
    category: Category
    food_intake: Optional[str] = None
    activity: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert reading to dictionary for API responses."""
        return {
            "id": self.id,
            "patient_id": self.patient_id,
            "value": self.value,
            "timestamp": format_iso(self.timestamp),
            "category": self.category.value,
            "food_intake": self.food_intake,
            "activity": self.activity,
            "notes": self.notes,
        }

    @classmethod
    def from_row(cls, row: tuple) -> "Reading":
        """
        Create a Reading from a database row tuple.

        Args:
            row: Tuple of (id, patient_id, value, timestamp, category,
                food_intake, activity, notes).
        """
        return cls(
            id=row[0],
            patient_id=row[1],
            value=float(row[2]),
            timestamp=parse_datetime(row[3]),
            category=Category.from_name(row[4]),
            food_intake=row[5],
            activity=row[6],
            notes=row[7],
        )
