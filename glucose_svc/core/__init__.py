"""
Core module for application configuration, logging, and shared constants.

This module provides:
- Settings: Application configuration via pydantic-settings
- Dependency injection: FastAPI Depends() functions for services and repositories
- Exceptions: Domain-specific exception classes with HTTP status codes
- Datetime utilities: UTC-first datetime handling
"""
from core.config import settings, Settings

# Dependency injection - import functions for FastAPI Depends()
from core.dependencies import (
    get_database,
    get_patient_locks,
    get_reading_repository,
    get_threshold_repository,
    get_recommendation_repository,
    get_assignment_repository,
    get_reading_service,
    get_threshold_service,
    get_recommendation_service,
    get_analysis_service,
    get_report_service,
    reset_database,
)

# Exception classes for consistent error handling
from core.exceptions import (
    GlucoseServiceError,
    ValidationError,
    InvalidReadingError,
    InvalidThresholdError,
    NotFoundError,
    ReadingNotFoundError,
    ThresholdNotFoundError,
    StoreUnavailableError,
    ThresholdNotConfiguredError,
    setup_exception_handlers,
)

# UTC datetime utilities
from core.datetime_utils import (
    utc_now,
    to_utc,
    parse_datetime,
    format_iso,
    period_bounds,
)
from core.config import (
    DATABASE_DIR,
    DATABASE_FILE,
    DATABASE_PATH,
    API_HOST,
    API_PORT,
    API_RELOAD,
)

__all__ = [
    # Settings
    "settings",
    "Settings",
    # Dependency injection
    "get_database",
    "get_patient_locks",
    "get_reading_repository",
    "get_threshold_repository",
    "get_recommendation_repository",
    "get_assignment_repository",
    "get_reading_service",
    "get_threshold_service",
    "get_recommendation_service",
    "get_analysis_service",
    "get_report_service",
    "reset_database",
    # Exceptions
    "GlucoseServiceError",
    "ValidationError",
    "InvalidReadingError",
    "InvalidThresholdError",
    "NotFoundError",
    "ReadingNotFoundError",
    "ThresholdNotFoundError",
    "StoreUnavailableError",
    "ThresholdNotConfiguredError",
    "setup_exception_handlers",
    # Datetime utilities
    "utc_now",
    "to_utc",
    "parse_datetime",
    "format_iso",
    "period_bounds",
    # Config exports
    "DATABASE_DIR",
    "DATABASE_FILE",
    "DATABASE_PATH",
    "API_HOST",
    "API_PORT",
    "API_RELOAD",
]
