"""
Repository for glucose reading database operations.

Architecture:
    ReadingRepository is the data access layer for readings.
    It should be injected via core.dependencies.get_reading_repository().

All SQL is encapsulated in this repository - no SQL in service or API layers.
"""
import logging
from datetime import datetime
from typing import Any, List, Optional

from repositories.base import Database
from models.reading import Category, Reading
from core.datetime_utils import format_iso

logger = logging.getLogger(__name__)

_COLUMNS = "id, patient_id, value, timestamp, category, food_intake, activity, notes"


class ReadingRepository:
    """
    Repository for reading CRUD and range queries.

    Timestamps are stored as fixed-width ISO strings, so range filters are
    plain string comparisons.
    """

    def __init__(self, db: Database):
        """
        Initialize the reading repository.

        Args:
            db: Database instance for data access.
                Injected via core.dependencies.get_reading_repository().
        """
        self._db = db

    def add(
        self,
        patient_id: str,
        value: float,
        timestamp: datetime,
        category: Category,
        food_intake: Optional[str] = None,
        activity: Optional[str] = None,
        notes: Optional[str] = None
    ) -> Reading:
        """
        Insert a reading and return it with its generated id.

        The category must already be computed by the classifier.
        """
        conn = self._db.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO readings
                (patient_id, value, timestamp, category, food_intake, activity, notes)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (
                patient_id,
                value,
                format_iso(timestamp),
                category.value,
                food_intake,
                activity,
                notes
            ))
            reading_id = cursor.lastrowid

            cursor.execute(f"SELECT {_COLUMNS} FROM readings WHERE id = ?", (reading_id,))
            row = cursor.fetchone()
            conn.commit()
            return Reading.from_row(row)
        finally:
            conn.close()

    def get(self, reading_id: int) -> Optional[Reading]:
        """Get a reading by id, or None if it does not exist."""
        conn = self._db.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(f"SELECT {_COLUMNS} FROM readings WHERE id = ?", (reading_id,))
            row = cursor.fetchone()
            return Reading.from_row(row) if row else None
        finally:
            conn.close()

    def query(
        self,
        patient_id: Optional[str] = None,
        category: Optional[Category] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: Optional[int] = None
    ) -> List[Reading]:
        """
        Retrieve readings, newest first.

        Args:
            patient_id: Filter by patient (optional).
            category: Filter by stored category (optional).
            since: Inclusive lower bound on timestamp (optional).
            until: Inclusive upper bound on timestamp (optional).
            limit: Maximum number of readings to return (optional).

        Returns:
            List of Reading objects ordered by timestamp descending.
        """
        query = f"SELECT {_COLUMNS} FROM readings WHERE 1=1"
        params: List[Any] = []

        if patient_id is not None:
            query += " AND patient_id = ?"
            params.append(patient_id)

        if category is not None:
            query += " AND category = ?"
            params.append(category.value)

        if since is not None:
            query += " AND timestamp >= ?"
            params.append(format_iso(since))

        if until is not None:
            query += " AND timestamp <= ?"
            params.append(format_iso(until))

        query += " ORDER BY timestamp DESC, id DESC"

        if limit:
            query += " LIMIT ?"
            params.append(limit)

        conn = self._db.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [Reading.from_row(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def count(
        self,
        patient_id: str,
        category: Optional[Category] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None
    ) -> int:
        """Count a patient's readings, optionally by category and time range."""
        query = "SELECT COUNT(*) FROM readings WHERE patient_id = ?"
        params: List[Any] = [patient_id]

        if category is not None:
            query += " AND category = ?"
            params.append(category.value)

        if since is not None:
            query += " AND timestamp >= ?"
            params.append(format_iso(since))

        if until is not None:
            query += " AND timestamp <= ?"
            params.append(format_iso(until))

        conn = self._db.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.fetchone()[0]
        finally:
            conn.close()

    def update(
        self,
        reading_id: int,
        value: float,
        timestamp: datetime,
        category: Category,
        food_intake: Optional[str] = None,
        activity: Optional[str] = None,
        notes: Optional[str] = None
    ) -> Optional[Reading]:
        """
        Replace the editable fields of a reading.

        Returns:
            The updated reading, or None if no reading has this id.
        """
        conn = self._db.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                UPDATE readings
                SET value = ?, timestamp = ?, category = ?,
                    food_intake = ?, activity = ?, notes = ?
                WHERE id = ?
            """, (
                value,
                format_iso(timestamp),
                category.value,
                food_intake,
                activity,
                notes,
                reading_id
            ))
            if cursor.rowcount == 0:
                conn.rollback()
                return None

            cursor.execute(f"SELECT {_COLUMNS} FROM readings WHERE id = ?", (reading_id,))
            row = cursor.fetchone()
            conn.commit()
            return Reading.from_row(row)
        finally:
            conn.close()

    def delete(self, reading_id: int) -> bool:
        """Delete a reading. Returns False if it did not exist."""
        conn = self._db.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM readings WHERE id = ?", (reading_id,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()
