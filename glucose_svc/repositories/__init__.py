"""
Repository layer for database access.

This module contains all database access operations, encapsulating SQL and data persistence logic.
"""
from repositories.base import Database
from repositories.reading_repository import ReadingRepository
from repositories.threshold_repository import ThresholdRepository
from repositories.recommendation_repository import RecommendationRepository
from repositories.assignment_repository import AssignmentRepository

__all__ = [
    "Database",
    "ReadingRepository",
    "ThresholdRepository",
    "RecommendationRepository",
    "AssignmentRepository",
]
