"""
Repository for category threshold database operations.

All SQL is encapsulated in this repository - no SQL in service or API layers.
"""
import logging
from datetime import datetime
from typing import List, Optional

from repositories.base import Database
from models.threshold import ThresholdConfig
from core.datetime_utils import format_iso

logger = logging.getLogger(__name__)


class ThresholdRepository:
    """
    Repository for the threshold table (one row per category).

    It should be instantiated via core.dependencies.get_threshold_repository().
    """

    def __init__(self, db: Database):
        """
        Initialize the threshold repository.

        Args:
            db: Database instance for data access.
        """
        self._db = db

    def get_all(self) -> List[ThresholdConfig]:
        """Get every configured threshold, ordered by lower bound."""
        conn = self._db.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT category_name, min_value, max_value, updated_by, updated_at
                FROM category_thresholds
                ORDER BY min_value ASC, category_name ASC
            """)
            return [ThresholdConfig.from_row(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def get(self, category_name: str) -> Optional[ThresholdConfig]:
        """Get the threshold for one category, or None if not configured."""
        conn = self._db.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT category_name, min_value, max_value, updated_by, updated_at
                FROM category_thresholds
                WHERE category_name = ?
            """, (category_name,))
            row = cursor.fetchone()
            return ThresholdConfig.from_row(row) if row else None
        finally:
            conn.close()

    def upsert(
        self,
        category_name: str,
        min_value: float,
        max_value: float,
        updated_by: Optional[str],
        updated_at: datetime
    ) -> ThresholdConfig:
        """Create or replace the band for a category and return the stored row."""
        conn = self._db.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO category_thresholds
                (category_name, min_value, max_value, updated_by, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(category_name) DO UPDATE SET
                    min_value = excluded.min_value,
                    max_value = excluded.max_value,
                    updated_by = excluded.updated_by,
                    updated_at = excluded.updated_at
            """, (category_name, min_value, max_value, updated_by, format_iso(updated_at)))
            conn.commit()
        finally:
            conn.close()

        logger.info(
            "Threshold updated",
            extra={"category": category_name, "min_value": min_value, "max_value": max_value}
        )
        return self.get(category_name)
