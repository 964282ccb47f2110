"""
Service layer for glucose reading operations.

Every write classifies the value against the threshold table in effect at
that moment and stores the category with the reading. Stored categories are
never recomputed when thresholds change later.

Architecture:
    API Layer (routers) → ReadingService → Repositories → Database
"""
import logging
import sqlite3
from datetime import datetime
from typing import List, Optional

from repositories import ReadingRepository, ThresholdRepository
from models.reading import Reading
from services.classifier import classify
from core.datetime_utils import to_utc, utc_now
from core.exceptions import ReadingNotFoundError, StoreUnavailableError

logger = logging.getLogger(__name__)


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _measured_at(timestamp: Optional[datetime]) -> datetime:
    """UTC measurement time; a timestamp ahead of the server clock is pulled back to now."""
    now = utc_now()
    if timestamp is None:
        return now
    timestamp = to_utc(timestamp)
    if timestamp > now:
        logger.debug(
            "Future reading timestamp clamped",
            extra={"requested": timestamp.isoformat(), "stored": now.isoformat()}
        )
        return now
    return timestamp


class ReadingService:
    """
    Service layer for reading management.

    Ownership is enforced here: a patient can only see, edit and delete
    their own readings. Someone else's reading looks exactly like a missing one.
    """

    def __init__(
        self,
        reading_repository: ReadingRepository,
        threshold_repository: ThresholdRepository
    ):
        """
        Initialize the reading service.

        Args:
            reading_repository: Store for readings.
            threshold_repository: Source of the threshold table used to classify.
        """
        self._reading_repo = reading_repository
        self._threshold_repo = threshold_repository

    def log_reading(
        self,
        patient_id: str,
        value: float,
        timestamp: Optional[datetime] = None,
        food_intake: Optional[str] = None,
        activity: Optional[str] = None,
        notes: Optional[str] = None
    ) -> Reading:
        """
        Classify and store a new reading.

        Args:
            patient_id: Owner of the reading.
            value: Glucose value in mg/dL.
            timestamp: When it was measured (defaults to now, normalized to UTC,
                never later than now).
            food_intake: Free text describing the meal.
            activity: Free text describing activity.
            notes: Free text notes.

        Returns:
            The stored reading with its category.

        Raises:
            InvalidReadingError: If the value cannot be classified.
            ThresholdNotConfiguredError: If no Normal band exists.
            StoreUnavailableError: If the store fails.
        """
        timestamp = _measured_at(timestamp)

        try:
            thresholds = self._threshold_repo.get_all()
        except sqlite3.Error as e:
            logger.error(f"Threshold store error: {e}", exc_info=True)
            raise StoreUnavailableError(operation="load_thresholds") from e

        category = classify(value, thresholds)

        try:
            reading = self._reading_repo.add(
                patient_id=patient_id,
                value=float(value),
                timestamp=timestamp,
                category=category,
                food_intake=_clean_text(food_intake),
                activity=_clean_text(activity),
                notes=_clean_text(notes),
            )
        except sqlite3.Error as e:
            logger.error(f"Database error saving reading: {e}", exc_info=True)
            raise StoreUnavailableError(operation="log_reading") from e

        logger.info(
            "Reading logged",
            extra={"patient_id": patient_id, "reading_id": reading.id, "category": category.value}
        )
        return reading

    def list_readings(self, patient_id: str, limit: Optional[int] = None) -> List[Reading]:
        """A patient's readings, newest first."""
        try:
            return self._reading_repo.query(patient_id=patient_id, limit=limit)
        except sqlite3.Error as e:
            logger.error(f"Database error listing readings: {e}", exc_info=True)
            raise StoreUnavailableError(operation="list_readings") from e

    def get_owned_reading(self, reading_id: int, patient_id: str) -> Reading:
        """
        Get a reading that belongs to patient_id.

        Raises:
            ReadingNotFoundError: If it does not exist or has another owner.
        """
        try:
            reading = self._reading_repo.get(reading_id)
        except sqlite3.Error as e:
            logger.error(f"Database error loading reading: {e}", exc_info=True)
            raise StoreUnavailableError(operation="get_reading") from e

        if reading is None or reading.patient_id != patient_id:
            raise ReadingNotFoundError(reading_id=reading_id)
        return reading

    def update_reading(
        self,
        reading_id: int,
        patient_id: str,
        value: float,
        timestamp: Optional[datetime] = None,
        food_intake: Optional[str] = None,
        activity: Optional[str] = None,
        notes: Optional[str] = None
    ) -> Reading:
        """
        Edit an owned reading and reclassify it under the current thresholds.

        The original timestamp is kept when none is given.
        """
        existing = self.get_owned_reading(reading_id, patient_id)

        try:
            thresholds = self._threshold_repo.get_all()
        except sqlite3.Error as e:
            logger.error(f"Threshold store error: {e}", exc_info=True)
            raise StoreUnavailableError(operation="load_thresholds") from e

        category = classify(value, thresholds)

        try:
            updated = self._reading_repo.update(
                reading_id=reading_id,
                value=float(value),
                timestamp=_measured_at(timestamp) if timestamp is not None else existing.timestamp,
                category=category,
                food_intake=_clean_text(food_intake),
                activity=_clean_text(activity),
                notes=_clean_text(notes),
            )
        except sqlite3.Error as e:
            logger.error(f"Database error updating reading: {e}", exc_info=True)
            raise StoreUnavailableError(operation="update_reading") from e

        if updated is None:
            raise ReadingNotFoundError(reading_id=reading_id)

        logger.info(
            "Reading updated",
            extra={"patient_id": patient_id, "reading_id": reading_id, "category": category.value}
        )
        return updated

    def delete_reading(self, reading_id: int, patient_id: str) -> None:
        """Delete an owned reading."""
        self.get_owned_reading(reading_id, patient_id)

        try:
            deleted = self._reading_repo.delete(reading_id)
        except sqlite3.Error as e:
            logger.error(f"Database error deleting reading: {e}", exc_info=True)
            raise StoreUnavailableError(operation="delete_reading") from e

        if not deleted:
            raise ReadingNotFoundError(reading_id=reading_id)
        logger.info("Reading deleted", extra={"patient_id": patient_id, "reading_id": reading_id})
