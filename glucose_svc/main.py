"""
FastAPI application entry point for Glucose Insight Service.

This module configures and creates the FastAPI application with:
- Structured JSON Logging: Request/response logging for Grafana/Loki
- Request ID Propagation: UUID-based request tracking across logs
- Dependency Injection: Services and repositories injected via Depends()
- Exception Handling: Consistent error responses via setup_exception_handlers()
- CORS Middleware: Allows cross-origin requests from the dashboards
- Lifespan Management: Database initialization and threshold seeding
- Metrics Collection: In-memory metrics for Prometheus/Grafana scraping

Architecture Overview:
    ┌─────────────────────────────────────────────────────────────┐
    │                     FastAPI Application                      │
    ├─────────────────────────────────────────────────────────────┤
    │  Middleware Stack (order matters!)                          │
    │    ├── LoggingMiddleware  - Request logging & metrics       │
    │    └── CORSMiddleware     - Cross-origin support            │
    ├─────────────────────────────────────────────────────────────┤
    │  Routers (api/routers/)                                     │
    │    ├── health.py          - /health, /ready, /metrics       │
    │    ├── readings.py        - Reading logging & edits         │
    │    ├── analysis.py        - /api/ai/analyze                 │
    │    ├── recommendations.py - Advice feed, assignments, alerts│
    │    ├── thresholds.py      - Category band management        │
    │    └── reports.py         - /api/reports/generate           │
    ├─────────────────────────────────────────────────────────────┤
    │  Services (services/)     ← Injected via Depends()          │
    │    ├── ReadingService        - Classify & store readings    │
    │    ├── AnalysisService       - Pattern detection pipeline   │
    │    ├── RecommendationService - Dedup gate, specialist advice│
    │    ├── ThresholdService      - Threshold validation         │
    │    └── ReportService         - Period aggregation           │
    ├─────────────────────────────────────────────────────────────┤
    │  Repositories (repositories/)   ← Injected into Services    │
    ├─────────────────────────────────────────────────────────────┤
    │  Database (SQLite)              ← Injected into Repositories│
    └─────────────────────────────────────────────────────────────┘
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from core.config import API_HOST, API_PORT, API_RELOAD
from core.dependencies import get_database
from core.exceptions import setup_exception_handlers
from core.logging_config import setup_logging
from core.middleware import LoggingMiddleware
from api.routers import (
    health_router,
    analysis_router,
    reports_router,
    readings_router,
    thresholds_router,
    recommendations_router,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application.

    Startup:
        - Configures structured JSON logging
        - Initializes the database (schema, WAL mode, default thresholds)

    Shutdown:
        - Logs shutdown message
    """
    # Configure structured logging FIRST (before any other logging)
    setup_logging(level="INFO", json_format=True)

    logger = logging.getLogger(__name__)
    logger.info("Starting Glucose Insight Service...")

    db = get_database()
    logger.info(
        "Database initialized",
        extra={"db_path": db.db_path}
    )

    yield  # Application runs here

    logger.info("Glucose Insight Service shutting down...")


app = FastAPI(
    title="Glucose Insight Service",
    description="Blood-glucose tracking backend: classifies readings, detects recurring "
                "food and activity triggers, issues deduplicated advice and builds admin reports.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================
# GlucoseServiceError and its subclasses are converted to {"success": false, ...}
setup_exception_handlers(app)

# =============================================================================
# MIDDLEWARE
# =============================================================================
# Middleware is executed in REVERSE order of registration.

# 1. CORS Middleware (innermost - closest to routes)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 2. Logging Middleware (outermost - captures all requests)
app.add_middleware(LoggingMiddleware)

# =============================================================================
# ROUTERS
# =============================================================================
app.include_router(health_router)
app.include_router(readings_router)
app.include_router(analysis_router)
app.include_router(recommendations_router)
app.include_router(thresholds_router)
app.include_router(reports_router)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=API_HOST,
        port=API_PORT,
        reload=API_RELOAD
    )
