"""
Domain model for category thresholds.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.datetime_utils import parse_datetime_safe


@dataclass(frozen=True)
class ThresholdConfig:
    """
    Inclusive value band for one category.

    Attributes:
        category_name: Category the band belongs to (Normal, Borderline, Abnormal)
        min_value: Lower bound, inclusive
        max_value: Upper bound, inclusive
        updated_by: Staff identifier of the last editor, if any
        updated_at: When the band was last changed
    """
    category_name: str
    min_value: float
    max_value: float
    updated_by: Optional[str] = None
    updated_at: Optional[datetime] = None

    def contains(self, value: float) -> bool:
        """Check whether a value falls inside the band (bounds included)."""
        return self.min_value <= value <= self.max_value

    @classmethod
    def from_row(cls, row: tuple) -> "ThresholdConfig":
        """Create a ThresholdConfig from (category_name, min, max, updated_by, updated_at)."""
        return cls(
            category_name=row[0],
            min_value=float(row[1]),
            max_value=float(row[2]),
            updated_by=row[3],
            updated_at=parse_datetime_safe(row[4]),
        )
