"""
Configuration module for Glucose Insight Service.
Uses Pydantic BaseSettings for validation - app fails fast if config is inconsistent.
"""
from datetime import timedelta
from pathlib import Path
from typing import FrozenSet

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with validation.

    Every engine policy (repetition threshold, lookback window, token length,
    dedup window) is a setting rather than a constant buried in the services.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database Configuration
    glucose_svc_db_dir: str = Field(default="data", description="Database directory")
    glucose_svc_db_file: str = Field(default="glucose.db", description="Database filename")
    glucose_svc_db_busy_timeout: int = Field(default=5000, description="SQLite busy timeout in milliseconds")

    # API Configuration
    glucose_svc_host: str = Field(default="0.0.0.0", description="API host")
    glucose_svc_port: int = Field(default=8000, description="API port")
    glucose_svc_reload: bool = Field(default=False, description="Enable hot reload")

    # Pattern detection
    pattern_repetition_threshold: int = Field(
        default=3, ge=1, description="Occurrences needed to promote a token to a pattern"
    )
    pattern_lookback_days: int = Field(
        default=30, ge=1, description="Only abnormal readings newer than this many days are analysed"
    )
    pattern_max_readings: int = Field(
        default=50, ge=1, description="Maximum number of recent abnormal readings analysed"
    )

    # Tokenizer
    token_min_length: int = Field(
        default=3, ge=1, description="Tokens shorter than this are ignored"
    )
    token_stopwords: str = Field(
        default="with,after,before,some",
        description="Words never treated as triggers (comma-separated)",
    )

    # Recommendations
    recommendation_dedup_hours: int = Field(
        default=24, ge=1, description="Identical advice is not re-issued within this many hours"
    )

    # Reports
    report_top_k: int = Field(default=3, ge=1, description="Number of triggers listed in reports")

    # Default threshold table used to seed an empty database
    thresholds_file: str = Field(
        default=str(Path(__file__).parent / "thresholds.yaml"),
        description="YAML file with the default category thresholds",
    )

    @model_validator(mode="after")
    def validate_engine_settings(self) -> "Settings":
        """
        Reject engine settings that can never detect a pattern.
        """
        if self.pattern_max_readings < self.pattern_repetition_threshold:
            raise ValueError(
                "PATTERN_MAX_READINGS must be at least PATTERN_REPETITION_THRESHOLD, "
                "otherwise no pattern can ever be detected"
            )
        return self

    @property
    def database_path(self) -> str:
        """Get the full database path."""
        return str(Path(self.glucose_svc_db_dir) / self.glucose_svc_db_file)

    @property
    def stopword_set(self) -> FrozenSet[str]:
        """Get the stopwords as a normalized set."""
        return frozenset(
            word.strip().lower() for word in self.token_stopwords.split(",") if word.strip()
        )

    @property
    def dedup_window(self) -> timedelta:
        """Get the recommendation dedup window."""
        return timedelta(hours=self.recommendation_dedup_hours)

    def ensure_directories(self) -> None:
        """Ensure required directories exist."""
        Path(self.glucose_svc_db_dir).mkdir(parents=True, exist_ok=True)


# Create global settings instance - fails fast if config is invalid
settings = Settings()

# Ensure directories exist on import
settings.ensure_directories()

DATABASE_DIR = settings.glucose_svc_db_dir
DATABASE_FILE = settings.glucose_svc_db_file
DATABASE_PATH = settings.database_path
DATABASE_BUSY_TIMEOUT = settings.glucose_svc_db_busy_timeout

API_HOST = settings.glucose_svc_host
API_PORT = settings.glucose_svc_port
API_RELOAD = settings.glucose_svc_reload
