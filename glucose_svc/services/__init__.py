"""
Service layer for business logic.

The pure engine functions live in services.classifier, services.triggers and
services.synthesizer; the classes below orchestrate them against the stores.
"""
from services.reading_service import ReadingService
from services.threshold_service import ThresholdService
from services.recommendation_service import RecommendationService, GateResult
from services.analysis_service import AnalysisService, AnalysisResult
from services.report_service import ReportService, ReportSummary

__all__ = [
    "ReadingService",
    "ThresholdService",
    "RecommendationService",
    "GateResult",
    "AnalysisService",
    "AnalysisResult",
    "ReportService",
    "ReportSummary",
]
