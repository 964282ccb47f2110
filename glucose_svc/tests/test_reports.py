"""
Tests for period report aggregation.
"""
import math
from datetime import datetime, timezone

import pytest

from services.report_service import ReportService, mean_one_decimal, period_label
from core.datetime_utils import period_bounds
from core.exceptions import ValidationError


def jan(day, hour=9, minute=0, second=0):
    return datetime(2025, 1, day, hour, minute, second, tzinfo=timezone.utc)


@pytest.fixture
def january_readings(reading_service):
    reading_service.log_reading("p1", 100, jan(5), food_intake="salad")
    reading_service.log_reading("p2", 200, jan(10), food_intake="cake")
    reading_service.log_reading("p1", 50, jan(20), food_intake="cake", activity="skipped lunch")


# =============================================================================
# SERVICE LEVEL
# =============================================================================

def test_january_report(report_service, january_readings):
    start, end = period_bounds(2025, 1)
    summary = report_service.generate_report(start, end, period="2025-01")

    assert summary.period == "2025-01"
    assert summary.total_readings == 3
    assert summary.total_active_patients == 2
    assert summary.avg_sugar_level == 116.7
    assert summary.highest_reading == 200
    assert summary.lowest_reading == 50
    assert summary.abnormal_count == 2
    # cake appears in both abnormal readings; salad is on a Normal reading
    assert summary.top_triggers.startswith("cake (2)")
    assert "salad" not in summary.top_triggers


def test_top_triggers_limited_to_three(report_service, reading_service):
    reading_service.log_reading("p1", 200, jan(3), food_intake="cake soda fries rice")
    reading_service.log_reading("p2", 210, jan(4), food_intake="soda rice")
    reading_service.log_reading("p3", 220, jan(5), food_intake="soda")

    _, summary = report_service.generate_for_period(2025, 1)
    assert summary.top_triggers == "soda (3), rice (2), cake (1)"


def test_no_triggers_detected(report_service, reading_service):
    reading_service.log_reading("p1", 250, jan(3))
    _, summary = report_service.generate_for_period(2025, 1)
    assert summary.top_triggers == "None detected"


def test_explicit_zero_top_k_lists_no_triggers(reading_repo, reading_service):
    service = ReportService(reading_repository=reading_repo, top_k=0)
    reading_service.log_reading("p1", 200, jan(3), food_intake="soda")

    _, summary = service.generate_for_period(2025, 1)
    assert summary.top_triggers == "None detected"


def test_period_bounds_are_inclusive(report_service, reading_service):
    reading_service.log_reading("p1", 100, jan(1, 0, 0, 0))
    reading_service.log_reading("p1", 100, jan(31, 23, 59, 59))
    reading_service.log_reading("p1", 100, datetime(2025, 2, 1, tzinfo=timezone.utc))
    reading_service.log_reading("p1", 100, datetime(2024, 12, 31, 23, 59, 59, tzinfo=timezone.utc))

    _, summary = report_service.generate_for_period(2025, 1)
    assert summary.total_readings == 2


def test_empty_period_returns_none(report_service, january_readings):
    label, summary = report_service.generate_for_period(2025, 3)
    assert label == "2025-03"
    assert summary is None


def test_whole_year(report_service, january_readings, reading_service):
    reading_service.log_reading("p3", 120, datetime(2025, 7, 1, tzinfo=timezone.utc))
    label, summary = report_service.generate_for_period(2025)
    assert label == "2025-All"
    assert summary.total_readings == 4
    assert summary.total_active_patients == 3


def test_invalid_range_rejected(report_service):
    with pytest.raises(ValidationError):
        report_service.generate_report(jan(10), jan(5))


def test_invalid_month_rejected(report_service):
    with pytest.raises(ValidationError):
        report_service.generate_for_period(2025, 13)


def test_mean_rounds_half_up():
    assert mean_one_decimal([100, 200, 50]) == 116.7
    assert mean_one_decimal([116.65, 116.65]) == 116.7
    assert mean_one_decimal([0.05]) == 0.1
    assert mean_one_decimal([1, 2]) == 1.5


def test_period_label():
    assert period_label(2025, 1) == "2025-01"
    assert period_label(2025, 12) == "2025-12"
    assert period_label(2025) == "2025-All"


def test_period_bounds_february_leap_year():
    start, end = period_bounds(2024, 2)
    assert start == datetime(2024, 2, 1, tzinfo=timezone.utc)
    assert end == datetime(2024, 2, 29, 23, 59, 59, tzinfo=timezone.utc)


# =============================================================================
# API
# =============================================================================

def test_report_endpoint(client, january_readings):
    response = client.post("/api/reports/generate", json={"year": 2025, "month": 1})
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    report = data["report"]
    assert report["period"] == "2025-01"
    assert report["total_readings"] == 3
    assert report["total_active_patients"] == 2
    assert report["avg_sugar_level"] == 116.7
    assert report["highest_reading"] == 200
    assert report["lowest_reading"] == 50
    assert report["abnormal_count"] == 2
    assert "message" not in data
    for key in ("avg_sugar_level", "highest_reading", "lowest_reading"):
        assert math.isfinite(report[key])


def test_report_endpoint_no_data(client):
    response = client.post("/api/reports/generate", json={"year": 2030, "month": 6})
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "No data found"}


def test_report_endpoint_year_only(client, january_readings):
    response = client.post("/api/reports/generate", json={"year": 2025})
    assert response.status_code == 200
    assert response.json()["report"]["period"] == "2025-All"


def test_report_endpoint_rejects_bad_month(client):
    response = client.post("/api/reports/generate", json={"year": 2025, "month": 13})
    assert response.status_code == 422
    assert response.json()["success"] is False
