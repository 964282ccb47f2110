"""
Pydantic schemas for API request/response validation.

This module contains all Pydantic models used at API boundaries.
"""
from schemas.reading import (
    ReadingCreate,
    ReadingUpdate,
    ReadingResponse,
    ReadingEnvelope,
    ReadingListResponse,
)
from schemas.threshold import (
    ThresholdUpdate,
    ThresholdResponse,
    ThresholdEnvelope,
    ThresholdListResponse,
)
from schemas.recommendation import (
    RecommendationCreate,
    RecommendationResponse,
    RecommendationEnvelope,
    RecommendationListResponse,
    AssignmentCreate,
    AssignmentResponse,
    AlertsResponse,
)
from schemas.analysis import AnalyzeRequest, AnalyzeResponse
from schemas.report import ReportRequest, ReportBody, ReportResponse

__all__ = [
    # Reading schemas
    "ReadingCreate",
    "ReadingUpdate",
    "ReadingResponse",
    "ReadingEnvelope",
    "ReadingListResponse",
    # Threshold schemas
    "ThresholdUpdate",
    "ThresholdResponse",
    "ThresholdEnvelope",
    "ThresholdListResponse",
    # Recommendation schemas
    "RecommendationCreate",
    "RecommendationResponse",
    "RecommendationEnvelope",
    "RecommendationListResponse",
    "AssignmentCreate",
    "AssignmentResponse",
    "AlertsResponse",
    # Analysis & report schemas
    "AnalyzeRequest",
    "AnalyzeResponse",
    "ReportRequest",
    "ReportBody",
    "ReportResponse",
]
