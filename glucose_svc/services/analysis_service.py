"""
Service layer for per-patient pattern analysis.

Architecture:
    ReadingRepository → find_patterns → synthesize → RecommendationService gate

Analysis runs either on request (POST /api/ai/analyze) or as a background
task after a reading is written. Background runs never propagate errors back
to the write that scheduled them.
"""
import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, Iterable, List, Optional

from repositories import ReadingRepository
from models.reading import Category
from services.recommendation_service import RecommendationService
from services.synthesizer import synthesize
from services.triggers import LookbackWindow, find_patterns
from core.config import settings
from core.datetime_utils import to_utc, utc_now
from core.exceptions import GlucoseServiceError, StoreUnavailableError, ValidationError
from core.middleware import MetricsCollector, get_metrics_collector

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Outcome of one analysis run for a patient."""
    patient_id: str
    patterns_found: List[str] = field(default_factory=list)
    new_recommendations: List[str] = field(default_factory=list)
    token_counts: Dict[str, int] = field(default_factory=dict)


class AnalysisService:
    """
    Runs the detection pipeline for one patient and stores new advice.
    """

    def __init__(
        self,
        reading_repository: ReadingRepository,
        recommendation_service: RecommendationService,
        window: Optional[LookbackWindow] = None,
        repetition_threshold: Optional[int] = None,
        min_length: Optional[int] = None,
        stopwords: Optional[Iterable[str]] = None,
        metrics: Optional[MetricsCollector] = None
    ):
        """
        Initialize the analysis service.

        Engine policies default to the values in core.config.settings.
        """
        self._reading_repo = reading_repository
        self._recommendations = recommendation_service
        self._window = window or LookbackWindow(
            days=settings.pattern_lookback_days,
            max_readings=settings.pattern_max_readings,
        )
        self._repetition_threshold = (
            repetition_threshold if repetition_threshold is not None
            else settings.pattern_repetition_threshold
        )
        self._min_length = min_length if min_length is not None else settings.token_min_length
        self._stopwords: FrozenSet[str] = (
            frozenset(w.lower() for w in stopwords) if stopwords is not None else settings.stopword_set
        )
        self._metrics = metrics or get_metrics_collector()

    def analyze(self, patient_id: str, now: Optional[datetime] = None) -> AnalysisResult:
        """
        Detect recurring triggers for a patient and persist new advice.

        Args:
            patient_id: Patient to analyse.
            now: Reference time (defaults to the current UTC time).

        Returns:
            AnalysisResult with detected patterns (most frequent first) and
            only the advice texts that were newly stored.

        Raises:
            ValidationError: If patient_id is blank.
            StoreUnavailableError: If the reading or recommendation store fails.
        """
        if not patient_id or not patient_id.strip():
            raise ValidationError("patientId is required")

        now = to_utc(now) if now is not None else utc_now()
        since = self._window.start(now)

        try:
            abnormal = self._reading_repo.query(
                patient_id=patient_id,
                category=Category.ABNORMAL,
                since=since,
                until=now,
                limit=self._window.max_readings,
            )
            total_count = self._reading_repo.count(patient_id)
            abnormal_count = self._reading_repo.count(patient_id, category=Category.ABNORMAL)
        except sqlite3.Error as e:
            logger.error(f"Reading store error during analysis: {e}", exc_info=True)
            raise StoreUnavailableError(operation="analyze") from e

        patterns = find_patterns(
            abnormal,
            window=self._window,
            repetition_threshold=self._repetition_threshold,
            min_length=self._min_length,
            stopwords=self._stopwords,
            now=now,
        )
        messages = synthesize(
            patterns.patterns,
            abnormal_count=abnormal_count,
            total_count=total_count,
        )

        new_recommendations = [
            advice for advice in messages
            if self._recommendations.persist_if_new(patient_id, advice, now=now).inserted
        ]

        logger.info(
            "Analysis complete",
            extra={
                "patient_id": patient_id,
                "readings_analysed": patterns.readings_analysed,
                "patterns_found": len(patterns.patterns),
                "new_recommendations": len(new_recommendations),
            }
        )
        return AnalysisResult(
            patient_id=patient_id,
            patterns_found=patterns.patterns,
            new_recommendations=new_recommendations,
            token_counts=patterns.counts,
        )

    def analyze_in_background(self, patient_id: str) -> None:
        """
        Run analyze() as a fire-and-forget task.

        Failures are logged and counted in the metrics collector.
        """
        try:
            self.analyze(patient_id)
        except GlucoseServiceError as e:
            self._metrics.record_analysis_result(success=False)
            logger.warning(
                f"Background analysis failed: {e.detail}",
                extra={"patient_id": patient_id, "status_code": e.status_code}
            )
            return
        except Exception:
            self._metrics.record_analysis_result(success=False)
            logger.exception("Background analysis crashed", extra={"patient_id": patient_id})
            return

        self._metrics.record_analysis_result(success=True)
