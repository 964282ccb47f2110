"""
Repository for patient-specialist assignments.
"""
import logging
from datetime import datetime
from typing import List, Optional

from repositories.base import Database
from models.recommendation import PatientAssignment
from core.datetime_utils import format_iso, parse_datetime_safe

logger = logging.getLogger(__name__)


class AssignmentRepository:
    """Data access for the patient_specialist_assignments table."""

    def __init__(self, db: Database):
        self._db = db

    def upsert(
        self,
        patient_id: str,
        specialist_id: str,
        assigned_at: datetime,
        assigned_by: Optional[str] = None
    ) -> PatientAssignment:
        """Assign a specialist to a patient, refreshing the row if it exists."""
        conn = self._db.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO patient_specialist_assignments
                (patient_id, specialist_id, assigned_by, assigned_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(patient_id, specialist_id) DO UPDATE SET
                    assigned_by = excluded.assigned_by,
                    assigned_at = excluded.assigned_at
            """, (patient_id, specialist_id, assigned_by, format_iso(assigned_at)))
            conn.commit()
        finally:
            conn.close()

        return PatientAssignment(
            patient_id=patient_id,
            specialist_id=specialist_id,
            assigned_by=assigned_by,
            assigned_at=assigned_at,
        )

    def get_patients_for_specialist(self, specialist_id: str) -> List[str]:
        """Get the ids of all patients assigned to a specialist."""
        conn = self._db.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT patient_id FROM patient_specialist_assignments
                WHERE specialist_id = ?
                ORDER BY patient_id ASC
            """, (specialist_id,))
            return [row[0] for row in cursor.fetchall()]
        finally:
            conn.close()

    def get_for_patient(self, patient_id: str) -> List[PatientAssignment]:
        """Get every specialist assignment for a patient."""
        conn = self._db.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT patient_id, specialist_id, assigned_by, assigned_at
                FROM patient_specialist_assignments
                WHERE patient_id = ?
                ORDER BY assigned_at DESC
            """, (patient_id,))
            return [
                PatientAssignment(
                    patient_id=row[0],
                    specialist_id=row[1],
                    assigned_by=row[2],
                    assigned_at=parse_datetime_safe(row[3]),
                )
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()
