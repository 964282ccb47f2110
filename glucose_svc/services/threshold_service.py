"""
Service layer for the category threshold table.
"""
import logging
import math
import sqlite3
from datetime import datetime
from typing import List, Optional

from repositories import ThresholdRepository
from models.reading import Category
from models.threshold import ThresholdConfig
from core.datetime_utils import to_utc, utc_now
from core.exceptions import InvalidThresholdError, StoreUnavailableError, ThresholdNotFoundError

logger = logging.getLogger(__name__)


class ThresholdService:
    """Reads and edits the per-category value bands used by the classifier."""

    def __init__(self, threshold_repository: ThresholdRepository):
        self._threshold_repo = threshold_repository

    def list_thresholds(self) -> List[ThresholdConfig]:
        """All configured bands, lowest first."""
        try:
            return self._threshold_repo.get_all()
        except sqlite3.Error as e:
            logger.error(f"Threshold store error: {e}", exc_info=True)
            raise StoreUnavailableError(operation="list_thresholds") from e

    def get_threshold(self, category_name: str) -> ThresholdConfig:
        """
        The band for one category.

        Raises:
            InvalidThresholdError: If the category name is unknown.
            ThresholdNotFoundError: If the category is not configured.
        """
        category = self._resolve_category(category_name)
        try:
            threshold = self._threshold_repo.get(category.value)
        except sqlite3.Error as e:
            logger.error(f"Threshold store error: {e}", exc_info=True)
            raise StoreUnavailableError(operation="get_threshold") from e

        if threshold is None:
            raise ThresholdNotFoundError(category_name=category.value)
        return threshold

    def update_threshold(
        self,
        category_name: str,
        min_value: float,
        max_value: float,
        updated_by: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> ThresholdConfig:
        """
        Create or replace a category band.

        Existing readings keep the category they were stored with.

        Raises:
            InvalidThresholdError: For an unknown category, non-finite or
                negative bounds, or min_value > max_value.
        """
        category = self._resolve_category(category_name)

        for name, bound in (("min_value", min_value), ("max_value", max_value)):
            if not math.isfinite(bound):
                raise InvalidThresholdError(f"{name} must be finite", category_name=category.value)
            if bound < 0:
                raise InvalidThresholdError(f"{name} cannot be negative", category_name=category.value)

        if min_value > max_value:
            raise InvalidThresholdError(
                "min_value must not exceed max_value",
                category_name=category.value,
                min_value=min_value,
                max_value=max_value
            )

        updated_at = to_utc(now) if now is not None else utc_now()
        try:
            return self._threshold_repo.upsert(
                category_name=category.value,
                min_value=float(min_value),
                max_value=float(max_value),
                updated_by=updated_by,
                updated_at=updated_at,
            )
        except sqlite3.Error as e:
            logger.error(f"Threshold store error: {e}", exc_info=True)
            raise StoreUnavailableError(operation="update_threshold") from e

    @staticmethod
    def _resolve_category(category_name: str) -> Category:
        try:
            return Category.from_name(category_name)
        except ValueError as e:
            raise InvalidThresholdError(
                str(e),
                allowed=[c.value for c in Category]
            ) from e
