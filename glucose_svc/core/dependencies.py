"""
FastAPI Dependency Injection configuration for Glucose Insight Service.

This module provides the dependency injection (DI) infrastructure following
the Dependency Inversion Principle. It enables:
- Clean separation between API, Service, and Repository layers
- Easy testing with mock/fake dependencies
- Application-lifetime resources created once (database, patient locks)
- Centralized configuration of all dependencies

Architecture Flow:
    API Layer (Routers)
         ↓ Depends()
    Service Layer (Business Logic)
         ↓ Injected
    Repository Layer (Data Access)
         ↓ Injected
    Database (SQLite Connection)

Usage in Routers:
    from core.dependencies import get_analysis_service

    @router.post("/api/ai/analyze")
    async def analyze(
        request: AnalyzeRequest,
        analysis_service: AnalysisService = Depends(get_analysis_service)
    ):
        return analysis_service.analyze(request.patient_id)

Testing:
    # Override dependencies in tests
    app.dependency_overrides[get_analysis_service] = lambda: test_analysis_service
"""
import logging
from functools import lru_cache
from typing import Optional

from core.config import settings
from core.locks import KeyedLock

logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION-LIFETIME RESOURCES
# =============================================================================

# Lazy import to avoid circular dependencies
# The Database class is imported when first needed
_database_instance: Optional["Database"] = None


def get_database() -> "Database":
    """
    Get the database instance (singleton pattern via FastAPI DI).

    The first call creates the schema, enables WAL mode and seeds the
    threshold table from core/thresholds.yaml when it is empty.

    Returns:
        Database: The configured database instance.
    """
    global _database_instance

    if _database_instance is None:
        from repositories.base import Database

        logger.info(f"Initializing database: {settings.database_path}")
        _database_instance = Database(
            db_path=settings.database_path,
            busy_timeout=settings.glucose_svc_db_busy_timeout
        )
        logger.info("Database initialized successfully")

    return _database_instance


def reset_database() -> None:
    """
    Reset the database instance (for testing only).

    This allows tests to inject a fresh database instance.
    """
    global _database_instance
    _database_instance = None


@lru_cache(maxsize=1)
def get_patient_locks() -> KeyedLock:
    """
    Get the per-patient lock registry shared by every request.

    The recommendation gate holds a patient's lock while it checks for and
    inserts advice.
    """
    return KeyedLock()


# =============================================================================
# REPOSITORY DEPENDENCIES
# =============================================================================

def get_reading_repository() -> "ReadingRepository":
    """
    Get a ReadingRepository instance with database injected.

    Returns:
        ReadingRepository: Repository for reading CRUD and range queries.
    """
    from repositories import ReadingRepository

    return ReadingRepository(db=get_database())


def get_threshold_repository() -> "ThresholdRepository":
    """Get a ThresholdRepository instance with database injected."""
    from repositories import ThresholdRepository

    return ThresholdRepository(db=get_database())


def get_recommendation_repository() -> "RecommendationRepository":
    """Get a RecommendationRepository instance with database injected."""
    from repositories import RecommendationRepository

    return RecommendationRepository(db=get_database())


def get_assignment_repository() -> "AssignmentRepository":
    """Get an AssignmentRepository instance with database injected."""
    from repositories import AssignmentRepository

    return AssignmentRepository(db=get_database())


# =============================================================================
# SERVICE DEPENDENCIES
# =============================================================================

def get_reading_service() -> "ReadingService":
    """
    Get a ReadingService instance with repositories injected.

    Returns:
        ReadingService: Service that classifies and stores readings.
    """
    from services import ReadingService

    return ReadingService(
        reading_repository=get_reading_repository(),
        threshold_repository=get_threshold_repository()
    )


def get_threshold_service() -> "ThresholdService":
    """Get a ThresholdService instance with repository injected."""
    from services import ThresholdService

    return ThresholdService(threshold_repository=get_threshold_repository())


def get_recommendation_service() -> "RecommendationService":
    """
    Get a RecommendationService instance.

    The service shares the application-wide patient lock registry so the
    dedup gate serializes across requests.
    """
    from services import RecommendationService

    return RecommendationService(
        recommendation_repository=get_recommendation_repository(),
        assignment_repository=get_assignment_repository(),
        locks=get_patient_locks(),
        dedup_window=settings.dedup_window
    )


def get_analysis_service() -> "AnalysisService":
    """
    Get an AnalysisService instance.

    Engine policies (window, repetition threshold, tokenizer) come from settings.
    """
    from services import AnalysisService

    return AnalysisService(
        reading_repository=get_reading_repository(),
        recommendation_service=get_recommendation_service()
    )


def get_report_service() -> "ReportService":
    """Get a ReportService instance with repository injected."""
    from services import ReportService

    return ReportService(reading_repository=get_reading_repository())
