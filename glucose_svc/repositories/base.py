"""
Base database connection and initialization.

This module handles database connection management and schema initialization.
Optimized for SQLite concurrency with WAL mode and busy_timeout.

IMPORTANT: Database instantiation should be done through the DI layer.
Use core.dependencies.get_database() instead of instantiating directly.
"""
import sqlite3
import logging
from pathlib import Path
from typing import Iterable, Optional

from core.config import DATABASE_PATH, DATABASE_BUSY_TIMEOUT
from core.datetime_utils import utc_now, format_iso
from core.threshold_defaults import load_default_thresholds
from models.threshold import ThresholdConfig

logger = logging.getLogger(__name__)


class Database:
    """
    SQLite database connection manager with concurrency optimizations.

    Features:
    - WAL mode for concurrent read/write
    - Busy timeout to handle lock contention gracefully
    - Foreign key constraints enabled by default
    - Threshold table seeded from the YAML defaults when empty

    Usage:
        # Via dependency injection (recommended):
        from core.dependencies import get_database
        db = get_database()

        # Direct instantiation (for testing):
        db = Database(db_path="/tmp/test.db")
    """

    def __init__(
        self,
        db_path: Optional[str] = None,
        busy_timeout: Optional[int] = None,
        default_thresholds: Optional[Iterable[ThresholdConfig]] = None
    ):
        """
        Initialize database connection.

        Args:
            db_path: Path to SQLite database file. Defaults to config DATABASE_PATH.
            busy_timeout: SQLite busy timeout in milliseconds. Defaults to config value.
            default_thresholds: Rows used to seed an empty threshold table.
                Defaults to the thresholds.yaml table.
        """
        self.db_path = db_path or DATABASE_PATH
        self.busy_timeout = busy_timeout if busy_timeout is not None else DATABASE_BUSY_TIMEOUT

        db_dir = Path(self.db_path).parent
        db_dir.mkdir(parents=True, exist_ok=True)

        if default_thresholds is None:
            default_thresholds = load_default_thresholds()
        self._init_db(list(default_thresholds))

    def _configure_connection(self, conn: sqlite3.Connection) -> None:
        """Apply busy timeout and foreign keys to a new connection."""
        conn.execute(f"PRAGMA busy_timeout = {self.busy_timeout}")
        conn.execute("PRAGMA foreign_keys = ON")

    def _init_db(self, default_thresholds: list) -> None:
        """Initialize database schema, enable WAL mode and seed thresholds."""
        conn = sqlite3.connect(self.db_path)
        self._configure_connection(conn)
        cursor = conn.cursor()

        cursor.execute("PRAGMA journal_mode = WAL")
        result = cursor.fetchone()
        if result and result[0].lower() == 'wal':
            logger.info(f"SQLite WAL mode enabled for {self.db_path}")
        else:
            logger.warning(f"Failed to enable WAL mode, current mode: {result}")

        # category is stored as computed at write time and never recomputed
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS readings (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                patient_id TEXT NOT NULL,
                value REAL NOT NULL,
                timestamp TEXT NOT NULL,
                category TEXT NOT NULL,
                food_intake TEXT,
                activity TEXT,
                notes TEXT,
                created_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS ix_readings_patient_timestamp
            ON readings (patient_id, timestamp)
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS ix_readings_timestamp
            ON readings (timestamp)
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS category_thresholds (
                category_name TEXT PRIMARY KEY,
                min_value REAL NOT NULL,
                max_value REAL NOT NULL,
                updated_by TEXT,
                updated_at TEXT
            )
        """)

        # dedup_bucket is NULL for specialist advice; SQLite treats NULLs as
        # distinct, so only AI advice is constrained
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS recommendations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                patient_id TEXT NOT NULL,
                advice TEXT NOT NULL,
                source TEXT NOT NULL,
                created_at TEXT NOT NULL,
                dedup_bucket INTEGER
            )
        """)
        cursor.execute("""
            CREATE UNIQUE INDEX IF NOT EXISTS ux_recommendations_dedup
            ON recommendations (patient_id, advice, dedup_bucket)
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS ix_recommendations_patient_created
            ON recommendations (patient_id, created_at)
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS patient_specialist_assignments (
                patient_id TEXT NOT NULL,
                specialist_id TEXT NOT NULL,
                assigned_by TEXT,
                assigned_at TEXT NOT NULL,
                PRIMARY KEY (patient_id, specialist_id)
            )
        """)

        cursor.execute("SELECT COUNT(*) FROM category_thresholds")
        if cursor.fetchone()[0] == 0 and default_thresholds:
            now = format_iso(utc_now())
            cursor.executemany("""
                INSERT INTO category_thresholds
                (category_name, min_value, max_value, updated_by, updated_at)
                VALUES (?, ?, ?, ?, ?)
            """, [
                (t.category_name, t.min_value, t.max_value, t.updated_by, now)
                for t in default_thresholds
            ])
            logger.info(
                "Seeded default thresholds",
                extra={"categories": [t.category_name for t in default_thresholds]}
            )

        conn.commit()
        conn.close()

        logger.info(
            f"Database initialized: {self.db_path} "
            f"(busy_timeout={self.busy_timeout}ms)"
        )

    def get_connection(self) -> sqlite3.Connection:
        """
        Get a new database connection with concurrency settings.

        Returns:
            sqlite3.Connection: A new connection with foreign keys enabled and
                busy timeout set.
        """
        conn = sqlite3.connect(self.db_path)
        self._configure_connection(conn)
        return conn
