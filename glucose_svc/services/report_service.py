"""
Service layer for administrator reports.

Aggregates every patient's readings over a period into a single summary.
An empty period is a normal outcome: generate_report returns None.
"""
import logging
import sqlite3
from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from repositories import ReadingRepository
from models.reading import Category, Reading
from services.triggers import abnormal_trigger_counts, format_top_triggers, top_triggers
from core.config import settings
from core.datetime_utils import format_iso, period_bounds, to_utc
from core.exceptions import StoreUnavailableError, ValidationError

logger = logging.getLogger(__name__)

_ONE_DECIMAL = Decimal("0.1")


@dataclass
class ReportSummary:
    """Aggregate statistics for one reporting period."""
    period: str
    total_readings: int
    total_active_patients: int
    avg_sugar_level: float
    highest_reading: float
    lowest_reading: float
    abnormal_count: int
    top_triggers: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def period_label(year: int, month: Optional[int] = None) -> str:
    """"2025-01" for a month, "2025-All" for a whole year."""
    if month is None:
        return f"{year:04d}-All"
    return f"{year:04d}-{month:02d}"


def mean_one_decimal(values: List[float]) -> float:
    """Arithmetic mean rounded half-up to one decimal place."""
    total = sum((Decimal(str(v)) for v in values), Decimal(0))
    mean = total / Decimal(len(values))
    return float(mean.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


class ReportService:
    """Builds period reports from the reading store."""

    def __init__(
        self,
        reading_repository: ReadingRepository,
        top_k: Optional[int] = None,
        min_length: Optional[int] = None,
        stopwords: Optional[Iterable[str]] = None
    ):
        self._reading_repo = reading_repository
        self._top_k = top_k if top_k is not None else settings.report_top_k
        self._min_length = min_length if min_length is not None else settings.token_min_length
        self._stopwords = (
            frozenset(w.lower() for w in stopwords) if stopwords is not None else settings.stopword_set
        )

    def summarize(self, readings: List[Reading], period: str) -> Optional[ReportSummary]:
        """
        Compute the summary for an already-fetched list of readings.

        Returns None for an empty list.
        """
        if not readings:
            return None

        values = [r.value for r in readings]
        counts = abnormal_trigger_counts(readings, self._min_length, self._stopwords)

        return ReportSummary(
            period=period,
            total_readings=len(readings),
            total_active_patients=len({r.patient_id for r in readings}),
            avg_sugar_level=mean_one_decimal(values),
            highest_reading=max(values),
            lowest_reading=min(values),
            abnormal_count=sum(1 for r in readings if r.category == Category.ABNORMAL),
            top_triggers=format_top_triggers(top_triggers(counts, self._top_k)),
        )

    def generate_report(
        self,
        start: datetime,
        end: datetime,
        period: Optional[str] = None
    ) -> Optional[ReportSummary]:
        """
        Summarize all readings with start <= timestamp <= end.

        Args:
            start: Inclusive lower bound.
            end: Inclusive upper bound.
            period: Label to put on the report. Defaults to "<start>/<end>".

        Returns:
            ReportSummary, or None when the range has no readings.

        Raises:
            ValidationError: If start is after end.
            StoreUnavailableError: If the reading store fails.
        """
        start, end = to_utc(start), to_utc(end)
        if start > end:
            raise ValidationError(
                "Report start must not be after end",
                start=format_iso(start),
                end=format_iso(end)
            )

        try:
            readings = self._reading_repo.query(since=start, until=end)
        except sqlite3.Error as e:
            logger.error(f"Reading store error during report: {e}", exc_info=True)
            raise StoreUnavailableError(operation="generate_report") from e

        label = period or f"{format_iso(start)}/{format_iso(end)}"
        summary = self.summarize(readings, label)

        if summary is None:
            logger.info("Report period has no readings", extra={"period": label})
        else:
            logger.info(
                "Report generated",
                extra={"period": label, "total_readings": summary.total_readings}
            )
        return summary

    def generate_for_period(
        self,
        year: int,
        month: Optional[int] = None
    ) -> Tuple[str, Optional[ReportSummary]]:
        """
        Report over a calendar month, or over a whole year when month is None.

        Returns:
            (period label, summary or None)
        """
        if month is not None and not 1 <= month <= 12:
            raise ValidationError("Month must be between 1 and 12", month=month)
        if not 1 <= year <= 9999:
            raise ValidationError("Year is out of range", year=year)

        label = period_label(year, month)
        start, end = period_bounds(year, month)
        return label, self.generate_report(start, end, period=label)
