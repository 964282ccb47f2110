"""
API routers module.

This module contains all API route definitions organized by domain.
"""
from api.routers.health import router as health_router
from api.routers.analysis import router as analysis_router
from api.routers.reports import router as reports_router
from api.routers.readings import router as readings_router
from api.routers.thresholds import router as thresholds_router
from api.routers.recommendations import router as recommendations_router

__all__ = [
    "health_router",
    "analysis_router",
    "reports_router",
    "readings_router",
    "thresholds_router",
    "recommendations_router",
]
