"""
Default threshold table - loaded once from thresholds.yaml.

The YAML file is the single source of the factory-default category bands.
It is only consulted to seed an empty threshold table; afterwards the stored
rows (editable by staff) are authoritative.

Usage:
    from core.threshold_defaults import load_default_thresholds

    for threshold in load_default_thresholds():
        ...
"""
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from core.config import settings
from models.reading import Category
from models.threshold import ThresholdConfig

logger = logging.getLogger(__name__)


def _load_yaml_config(path: Path) -> Dict[str, Any]:
    """
    Load and parse the YAML configuration file.

    Raises:
        FileNotFoundError: If the file is not found
        yaml.YAMLError: If YAML parsing fails
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.error("Thresholds config file not found", extra={"path": str(path)})
        raise
    except yaml.YAMLError as e:
        logger.error("Failed to parse thresholds config", extra={"path": str(path), "error": str(e)})
        raise


def _parse_threshold_entry(raw: Dict[str, Any], index: int) -> ThresholdConfig:
    """
    Validate and parse a single threshold entry.

    Raises:
        ValueError: If required fields are missing or invalid
    """
    for field in ("category_name", "min_value", "max_value"):
        if field not in raw:
            raise ValueError(f"Threshold at index {index} is missing required field: '{field}'")

    try:
        category = Category.from_name(str(raw["category_name"]))
    except ValueError:
        raise ValueError(f"Threshold at index {index} has unknown category: '{raw['category_name']}'")

    try:
        min_value = float(raw["min_value"])
        max_value = float(raw["max_value"])
    except (TypeError, ValueError):
        raise ValueError(f"Threshold '{category.value}' has non-numeric bounds")

    if min_value > max_value:
        raise ValueError(f"Threshold '{category.value}' has min_value greater than max_value")

    return ThresholdConfig(
        category_name=category.value,
        min_value=min_value,
        max_value=max_value,
        updated_by="system",
    )


@lru_cache(maxsize=4)
def _load_thresholds(path: str) -> Tuple[ThresholdConfig, ...]:
    config = _load_yaml_config(Path(path))
    entries = config.get("thresholds") or []

    thresholds: List[ThresholdConfig] = []
    seen = set()
    for i, raw in enumerate(entries):
        threshold = _parse_threshold_entry(raw, i)
        if threshold.category_name in seen:
            raise ValueError(f"Duplicate threshold category: '{threshold.category_name}'")
        seen.add(threshold.category_name)
        thresholds.append(threshold)

    if Category.NORMAL.value not in seen:
        raise ValueError("Default thresholds must define a Normal range")

    return tuple(thresholds)


def load_default_thresholds(path: Optional[str] = None) -> List[ThresholdConfig]:
    """
    Get the default threshold table.

    Args:
        path: YAML file to read. Defaults to settings.thresholds_file.

    Returns:
        List of ThresholdConfig, one per configured category.
    """
    return list(_load_thresholds(path or settings.thresholds_file))
