"""
Shared pytest fixtures for engine, service and API tests.

Key patterns:

1. Database Isolation: Each test gets a fresh temporary database seeded with
   Normal=[70, 130] and no Borderline band
2. DI Override: Use app.dependency_overrides to inject test dependencies
3. Service Injection: Services are created with test repositories

Fixture Hierarchy:
    temp_db → repositories → services → test_app → client
"""
import os
import tempfile
from datetime import timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

# Keep the settings-driven data directory out of the working tree.
# This must happen before any config imports
os.environ.setdefault("GLUCOSE_SVC_DB_DIR", tempfile.mkdtemp(prefix="glucose-svc-test-"))

from repositories.base import Database
from repositories import (
    AssignmentRepository,
    ReadingRepository,
    RecommendationRepository,
    ThresholdRepository,
)
from services import (
    AnalysisService,
    ReadingService,
    RecommendationService,
    ReportService,
    ThresholdService,
)
from services.triggers import DEFAULT_STOPWORDS, LookbackWindow
from models.threshold import ThresholdConfig
from core.exceptions import setup_exception_handlers
from core.locks import KeyedLock
from core.middleware import MetricsCollector
from core import dependencies as deps


NORMAL_ONLY = [ThresholdConfig(category_name="Normal", min_value=70, max_value=130, updated_by="test")]


def _make_db(thresholds):
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    return Database(db_path=db_path, default_thresholds=thresholds), db_path


def _cleanup(db_path):
    for suffix in ("", "-wal", "-shm"):
        if os.path.exists(db_path + suffix):
            os.unlink(db_path + suffix)


@pytest.fixture
def temp_db():
    """
    Create a temporary database for testing.

    Seeded with Normal=[70, 130] only, so 131 is Abnormal.
    """
    db, db_path = _make_db(NORMAL_ONLY)
    yield db
    _cleanup(db_path)


@pytest.fixture
def unconfigured_db():
    """A temporary database whose threshold table is empty."""
    db, db_path = _make_db([])
    yield db
    _cleanup(db_path)


@pytest.fixture
def reading_repo(temp_db):
    return ReadingRepository(db=temp_db)


@pytest.fixture
def threshold_repo(temp_db):
    return ThresholdRepository(db=temp_db)


@pytest.fixture
def recommendation_repo(temp_db):
    return RecommendationRepository(db=temp_db)


@pytest.fixture
def assignment_repo(temp_db):
    return AssignmentRepository(db=temp_db)


@pytest.fixture
def metrics():
    """A private metrics collector so tests don't share counters."""
    return MetricsCollector()


@pytest.fixture
def reading_service(reading_repo, threshold_repo):
    return ReadingService(reading_repository=reading_repo, threshold_repository=threshold_repo)


@pytest.fixture
def threshold_service(threshold_repo):
    return ThresholdService(threshold_repository=threshold_repo)


@pytest.fixture
def recommendation_service(recommendation_repo, assignment_repo):
    return RecommendationService(
        recommendation_repository=recommendation_repo,
        assignment_repository=assignment_repo,
        locks=KeyedLock(),
        dedup_window=timedelta(hours=24)
    )


@pytest.fixture
def analysis_service(reading_repo, recommendation_service, metrics):
    return AnalysisService(
        reading_repository=reading_repo,
        recommendation_service=recommendation_service,
        window=LookbackWindow(days=30, max_readings=50),
        repetition_threshold=3,
        min_length=3,
        stopwords=DEFAULT_STOPWORDS,
        metrics=metrics
    )


@pytest.fixture
def report_service(reading_repo):
    return ReportService(
        reading_repository=reading_repo,
        top_k=3,
        min_length=3,
        stopwords=DEFAULT_STOPWORDS
    )


@pytest.fixture
def test_app(
    temp_db,
    reading_service,
    threshold_service,
    recommendation_service,
    analysis_service,
    report_service
):
    """
    Create a FastAPI test app with dependency overrides.

    Uses the real routers and exception handlers with test services injected
    via dependency_overrides.
    """
    from api.routers import (
        health_router,
        analysis_router,
        reports_router,
        readings_router,
        thresholds_router,
        recommendations_router,
    )

    app = FastAPI(title="Glucose Insight Service Test")

    # Register exception handlers (same as production)
    setup_exception_handlers(app)

    app.dependency_overrides[deps.get_database] = lambda: temp_db
    app.dependency_overrides[deps.get_reading_service] = lambda: reading_service
    app.dependency_overrides[deps.get_threshold_service] = lambda: threshold_service
    app.dependency_overrides[deps.get_recommendation_service] = lambda: recommendation_service
    app.dependency_overrides[deps.get_analysis_service] = lambda: analysis_service
    app.dependency_overrides[deps.get_report_service] = lambda: report_service

    app.include_router(health_router)
    app.include_router(readings_router)
    app.include_router(analysis_router)
    app.include_router(recommendations_router)
    app.include_router(thresholds_router)
    app.include_router(reports_router)

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
def client(test_app):
    """Create a test client for the API."""
    return TestClient(test_app)
