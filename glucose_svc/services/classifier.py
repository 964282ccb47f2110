"""
Glucose value classification against the threshold table.

Usage:
    from services.classifier import classify

    category = classify(142.0, threshold_repository.get_all())
"""
import math
from numbers import Real
from typing import Dict, Iterable, Optional

from core.exceptions import InvalidReadingError, ThresholdNotConfiguredError
from models.reading import Category
from models.threshold import ThresholdConfig


def _index_by_category(thresholds: Iterable[ThresholdConfig]) -> Dict[Category, ThresholdConfig]:
    indexed: Dict[Category, ThresholdConfig] = {}
    for threshold in thresholds:
        try:
            category = Category.from_name(threshold.category_name)
        except ValueError:
            # Unknown rows cannot take part in classification
            continue
        indexed[category] = threshold
    return indexed


def validate_value(value) -> float:
    """
    Check that a glucose value can be classified.

    Raises:
        InvalidReadingError: If the value is not a finite, non-negative number.
    """
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidReadingError("Glucose value must be a number", value=repr(value))
    value = float(value)
    if not math.isfinite(value):
        raise InvalidReadingError("Glucose value must be finite", value=str(value))
    if value < 0:
        raise InvalidReadingError("Glucose value cannot be negative", value=value)
    return value


def classify(value: float, thresholds: Iterable[ThresholdConfig]) -> Category:
    """
    Classify a glucose value.

    Normal is checked first, then Borderline when it is configured; anything
    else is Abnormal. Both bounds of a band are inclusive, so a value on the
    shared edge of Normal and Borderline is Normal. The Abnormal row, if
    present, is informational only.

    Args:
        value: Glucose value in mg/dL.
        thresholds: The threshold table currently in effect.

    Returns:
        The category of the value.

    Raises:
        InvalidReadingError: For non-numeric, non-finite or negative values.
        ThresholdNotConfiguredError: If no Normal band is configured.
    """
    value = validate_value(value)
    bands = _index_by_category(thresholds)

    normal: Optional[ThresholdConfig] = bands.get(Category.NORMAL)
    if normal is None:
        raise ThresholdNotConfiguredError()

    if normal.contains(value):
        return Category.NORMAL

    borderline = bands.get(Category.BORDERLINE)
    if borderline is not None and borderline.contains(value):
        return Category.BORDERLINE

    return Category.ABNORMAL
