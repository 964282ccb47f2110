"""
Tests for threshold management and the default threshold table.
"""
import math
import os
import tempfile

import pytest

from repositories.base import Database
from repositories import ThresholdRepository
from core.datetime_utils import utc_now
from core.exceptions import InvalidThresholdError, ThresholdNotFoundError
from core.threshold_defaults import load_default_thresholds


# =============================================================================
# API
# =============================================================================

def test_list_thresholds(client):
    response = client.get("/api/thresholds")
    assert response.status_code == 200
    thresholds = response.json()["thresholds"]
    assert [t["category_name"] for t in thresholds] == ["Normal"]
    assert thresholds[0]["min_value"] == 70
    assert thresholds[0]["max_value"] == 130


def test_add_borderline_band(client):
    response = client.put(
        "/api/thresholds/borderline",
        json={"min_value": 130, "max_value": 180, "updated_by": "staff-1"}
    )
    assert response.status_code == 200
    threshold = response.json()["threshold"]
    assert threshold["category_name"] == "Borderline"
    assert threshold["updated_by"] == "staff-1"
    assert threshold["updated_at"].endswith("Z")

    reading = client.post("/api/readings", json={"patientId": "p1", "value": 131}).json()["reading"]
    assert reading["category"] == "Borderline"
    edge = client.post("/api/readings", json={"patientId": "p1", "value": 130}).json()["reading"]
    assert edge["category"] == "Normal"


def test_min_above_max_rejected(client):
    response = client.put("/api/thresholds/Normal", json={"min_value": 150, "max_value": 100})
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_negative_bound_rejected(client):
    response = client.put("/api/thresholds/Normal", json={"min_value": -1, "max_value": 100})
    assert response.status_code == 400


def test_unknown_category_rejected(client):
    response = client.put("/api/thresholds/Extreme", json={"min_value": 200, "max_value": 400})
    assert response.status_code == 400
    assert "Normal" in response.json()["context"]["allowed"]


def test_unconfigured_normal_is_unavailable(client, temp_db):
    conn = temp_db.get_connection()
    try:
        conn.execute("DELETE FROM category_thresholds")
        conn.commit()
    finally:
        conn.close()

    response = client.post("/api/readings", json={"patientId": "p1", "value": 100})
    assert response.status_code == 503
    assert response.json()["success"] is False


# =============================================================================
# SERVICE LEVEL
# =============================================================================

def test_update_rejects_infinite_bound(threshold_service):
    with pytest.raises(InvalidThresholdError):
        threshold_service.update_threshold("Normal", 70, math.inf)


def test_update_replaces_existing_band(threshold_service):
    threshold_service.update_threshold("Normal", 80, 140, updated_by="staff")
    normal = threshold_service.get_threshold("normal")
    assert (normal.min_value, normal.max_value) == (80, 140)
    assert len(threshold_service.list_thresholds()) == 1


def test_get_unconfigured_category(threshold_service):
    with pytest.raises(ThresholdNotFoundError):
        threshold_service.get_threshold("Borderline")


# =============================================================================
# DEFAULT TABLE
# =============================================================================

def test_default_thresholds_from_yaml():
    thresholds = {t.category_name: t for t in load_default_thresholds()}
    assert thresholds["Normal"].min_value == 70
    assert thresholds["Normal"].max_value == 130
    assert thresholds["Normal"].updated_by == "system"
    assert "Borderline" not in thresholds


def test_empty_database_seeded_with_defaults():
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    try:
        repo = ThresholdRepository(db=Database(db_path=db_path))
        assert repo.get("Normal") is not None
        # Re-opening does not seed twice or overwrite staff edits
        repo.upsert("Normal", 60, 120, "staff", utc_now())
        repo = ThresholdRepository(db=Database(db_path=db_path))
        assert repo.get("Normal").min_value == 60
    finally:
        for suffix in ("", "-wal", "-shm"):
            if os.path.exists(db_path + suffix):
                os.unlink(db_path + suffix)


def _write_yaml(content):
    fd, path = tempfile.mkstemp(suffix=".yaml")
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(content)
    return path


def test_yaml_without_normal_is_rejected():
    path = _write_yaml("thresholds:\n  - category_name: Borderline\n    min_value: 130\n    max_value: 180\n")
    try:
        with pytest.raises(ValueError):
            load_default_thresholds(path)
    finally:
        os.unlink(path)


def test_yaml_with_inverted_bounds_is_rejected():
    path = _write_yaml("thresholds:\n  - category_name: Normal\n    min_value: 130\n    max_value: 70\n")
    try:
        with pytest.raises(ValueError):
            load_default_thresholds(path)
    finally:
        os.unlink(path)
