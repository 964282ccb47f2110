"""
Domain models for the glucose service.

This module contains the internal domain models shared by repositories and services.
"""
from models.reading import Category, Reading
from models.threshold import ThresholdConfig
from models.recommendation import PatientAssignment, Recommendation, RecommendationSource

__all__ = [
    "Category",
    "Reading",
    "ThresholdConfig",
    "Recommendation",
    "RecommendationSource",
    "PatientAssignment",
]
