"""
Service layer for recommendations.

Owns the dedup gate that every AI-generated advice passes through, the
specialist-authored advice feed, and specialist alerts.

Architecture:
    API Layer (routers) → RecommendationService → Repositories → Database

Dependency Injection:
    Use core.dependencies.get_recommendation_service() in routers with Depends().
"""
import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from repositories import AssignmentRepository, RecommendationRepository
from models.recommendation import PatientAssignment, Recommendation, RecommendationSource
from core.config import settings
from core.datetime_utils import to_utc, utc_now, window_bucket
from core.exceptions import StoreUnavailableError, ValidationError
from core.locks import KeyedLock

logger = logging.getLogger(__name__)


@dataclass
class GateResult:
    """Outcome of persist_if_new. record is set only when inserted is True."""
    inserted: bool
    record: Optional[Recommendation] = None


class RecommendationService:
    """
    Service layer for AI and specialist recommendations.

    The gate guarantees at most one AI row per (patient, exact advice text)
    per dedup window. Check-then-insert runs under a per-patient lock, and the
    store's UNIQUE (patient_id, advice, dedup_bucket) index rejects whatever
    slips past the lock from another process.
    """

    def __init__(
        self,
        recommendation_repository: RecommendationRepository,
        assignment_repository: AssignmentRepository,
        locks: KeyedLock,
        dedup_window: Optional[timedelta] = None
    ):
        """
        Initialize the recommendation service.

        Args:
            recommendation_repository: Store for recommendation rows.
            assignment_repository: Store for patient-specialist links.
            locks: Application-lifetime per-patient lock registry.
            dedup_window: Default gate lookback. Defaults to settings.dedup_window.
        """
        self._rec_repo = recommendation_repository
        self._assignment_repo = assignment_repository
        self._locks = locks
        self._dedup_window = dedup_window if dedup_window is not None else settings.dedup_window

    def persist_if_new(
        self,
        patient_id: str,
        advice: str,
        lookback: Optional[timedelta] = None,
        now: Optional[datetime] = None
    ) -> GateResult:
        """
        Insert AI advice unless identical advice was issued within the lookback.

        Args:
            patient_id: Patient the advice is for.
            advice: Exact advice text.
            lookback: Dedup window (defaults to the configured window).
            now: Reference time (defaults to the current UTC time).

        Returns:
            GateResult(inserted=True, record) for a new row,
            GateResult(inserted=False) when the advice is a duplicate.

        Raises:
            StoreUnavailableError: If the recommendation store fails.
        """
        lookback = lookback or self._dedup_window
        now = to_utc(now) if now is not None else utc_now()

        try:
            with self._locks.hold(patient_id):
                existing = self._rec_repo.query(
                    patient_id=patient_id,
                    advice=advice,
                    since=now - lookback,
                    limit=1
                )
                if existing:
                    logger.debug(
                        "Advice already issued within dedup window",
                        extra={"patient_id": patient_id, "recommendation_id": existing[0].id}
                    )
                    return GateResult(inserted=False)

                record = self._rec_repo.add(
                    patient_id=patient_id,
                    advice=advice,
                    source=RecommendationSource.AI,
                    created_at=now,
                    dedup_bucket=window_bucket(now, lookback)
                )
        except sqlite3.Error as e:
            logger.error(f"Recommendation store error in dedup gate: {e}", exc_info=True)
            raise StoreUnavailableError(operation="persist_recommendation") from e

        if record is None:
            return GateResult(inserted=False)

        logger.info(
            "Recommendation stored",
            extra={"patient_id": patient_id, "recommendation_id": record.id}
        )
        return GateResult(inserted=True, record=record)

    def list_for_patient(self, patient_id: str, limit: int = 3) -> List[Recommendation]:
        """Most recent recommendations for a patient, from any source."""
        try:
            return self._rec_repo.query(patient_id=patient_id, limit=limit)
        except sqlite3.Error as e:
            logger.error(f"Database error listing recommendations: {e}", exc_info=True)
            raise StoreUnavailableError(operation="list_recommendations") from e

    def create_specialist_recommendation(
        self,
        patient_id: str,
        advice: str,
        specialist_id: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Recommendation:
        """
        Store advice written by a specialist. Specialist advice is not deduplicated.

        Raises:
            ValidationError: If the advice is blank.
            StoreUnavailableError: If the store fails.
        """
        advice = advice.strip()
        if not advice:
            raise ValidationError("Advice text cannot be empty", patient_id=patient_id)

        created_at = to_utc(now) if now is not None else utc_now()
        try:
            record = self._rec_repo.add(
                patient_id=patient_id,
                advice=advice,
                source=RecommendationSource.SPECIALIST,
                created_at=created_at,
            )
        except sqlite3.Error as e:
            logger.error(f"Database error saving specialist advice: {e}", exc_info=True)
            raise StoreUnavailableError(operation="create_recommendation") from e

        logger.info(
            "Specialist recommendation stored",
            extra={"patient_id": patient_id, "specialist_id": specialist_id, "recommendation_id": record.id}
        )
        return record

    def assign_specialist(
        self,
        patient_id: str,
        specialist_id: str,
        assigned_by: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> PatientAssignment:
        """Link a specialist to a patient, replacing any previous link between the two."""
        assigned_at = to_utc(now) if now is not None else utc_now()
        try:
            assignment = self._assignment_repo.upsert(
                patient_id=patient_id,
                specialist_id=specialist_id,
                assigned_at=assigned_at,
                assigned_by=assigned_by,
            )
        except sqlite3.Error as e:
            logger.error(f"Database error assigning specialist: {e}", exc_info=True)
            raise StoreUnavailableError(operation="assign_specialist") from e

        logger.info(
            "Specialist assigned",
            extra={"patient_id": patient_id, "specialist_id": specialist_id}
        )
        return assignment

    def alerts_for_specialist(
        self,
        specialist_id: str,
        days: int = 7,
        now: Optional[datetime] = None
    ) -> List[Recommendation]:
        """
        Recent AI advice for every patient assigned to a specialist.

        Returns an empty list when the specialist has no patients.
        """
        now = to_utc(now) if now is not None else utc_now()
        try:
            patient_ids = self._assignment_repo.get_patients_for_specialist(specialist_id)
            return self._rec_repo.query_for_patients(
                patient_ids,
                source=RecommendationSource.AI,
                since=now - timedelta(days=days),
            )
        except sqlite3.Error as e:
            logger.error(f"Database error loading specialist alerts: {e}", exc_info=True)
            raise StoreUnavailableError(operation="specialist_alerts") from e
