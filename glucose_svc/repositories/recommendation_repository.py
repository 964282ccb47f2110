"""
Repository for recommendation database operations.

Recommendations are append-only: there is no update or delete.
"""
import logging
import sqlite3
from datetime import datetime
from typing import Any, Iterable, List, Optional

from repositories.base import Database
from models.recommendation import Recommendation, RecommendationSource
from core.datetime_utils import format_iso

logger = logging.getLogger(__name__)

_COLUMNS = "id, patient_id, advice, source, created_at"


class RecommendationRepository:
    """
    Repository for AI and specialist recommendations.

    It should be instantiated via core.dependencies.get_recommendation_repository().
    """

    def __init__(self, db: Database):
        """
        Initialize the recommendation repository.

        Args:
            db: Database instance for data access.
        """
        self._db = db

    def add(
        self,
        patient_id: str,
        advice: str,
        source: RecommendationSource,
        created_at: datetime,
        dedup_bucket: Optional[int] = None
    ) -> Optional[Recommendation]:
        """
        Insert a recommendation.

        Args:
            patient_id: Patient the advice is for.
            advice: Advice text, stored verbatim.
            source: AI or Specialist.
            created_at: Creation time.
            dedup_bucket: Time bucket for AI advice. Rows sharing
                (patient_id, advice, dedup_bucket) are rejected by the store.

        Returns:
            The stored Recommendation, or None if the store rejected it as a
            duplicate of an existing row in the same bucket.
        """
        conn = self._db.get_connection()
        try:
            cursor = conn.cursor()
            try:
                cursor.execute("""
                    INSERT INTO recommendations
                    (patient_id, advice, source, created_at, dedup_bucket)
                    VALUES (?, ?, ?, ?, ?)
                """, (patient_id, advice, source.value, format_iso(created_at), dedup_bucket))
            except sqlite3.IntegrityError:
                conn.rollback()
                logger.info(
                    "Duplicate recommendation rejected by store",
                    extra={"patient_id": patient_id, "dedup_bucket": dedup_bucket}
                )
                return None

            rec_id = cursor.lastrowid
            conn.commit()
        finally:
            conn.close()

        return Recommendation(
            id=rec_id,
            patient_id=patient_id,
            advice=advice,
            source=source,
            created_at=created_at,
        )

    def query(
        self,
        patient_id: str,
        advice: Optional[str] = None,
        since: Optional[datetime] = None,
        source: Optional[RecommendationSource] = None,
        limit: Optional[int] = None
    ) -> List[Recommendation]:
        """
        Retrieve a patient's recommendations, newest first.

        Args:
            patient_id: Patient to query.
            advice: Exact advice text to match (optional).
            since: Inclusive lower bound on created_at (optional).
            source: Filter by source (optional).
            limit: Maximum number of rows (optional).
        """
        query = f"SELECT {_COLUMNS} FROM recommendations WHERE patient_id = ?"
        params: List[Any] = [patient_id]

        if advice is not None:
            query += " AND advice = ?"
            params.append(advice)

        if since is not None:
            query += " AND created_at >= ?"
            params.append(format_iso(since))

        if source is not None:
            query += " AND source = ?"
            params.append(source.value)

        query += " ORDER BY created_at DESC, id DESC"

        if limit:
            query += " LIMIT ?"
            params.append(limit)

        conn = self._db.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [Recommendation.from_row(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def query_for_patients(
        self,
        patient_ids: Iterable[str],
        source: Optional[RecommendationSource] = None,
        since: Optional[datetime] = None
    ) -> List[Recommendation]:
        """Retrieve recommendations for several patients at once, newest first."""
        ids = list(patient_ids)
        if not ids:
            return []

        placeholders = ", ".join("?" for _ in ids)
        query = f"SELECT {_COLUMNS} FROM recommendations WHERE patient_id IN ({placeholders})"
        params: List[Any] = list(ids)

        if source is not None:
            query += " AND source = ?"
            params.append(source.value)

        if since is not None:
            query += " AND created_at >= ?"
            params.append(format_iso(since))

        query += " ORDER BY created_at DESC, id DESC"

        conn = self._db.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [Recommendation.from_row(row) for row in cursor.fetchall()]
        finally:
            conn.close()
