"""
Tests for reading endpoints and write-time classification.
"""
import pytest

from services.synthesizer import pattern_message
from core.exceptions import InvalidReadingError, ReadingNotFoundError, ThresholdNotConfiguredError
from repositories import ReadingRepository, ThresholdRepository
from services import ReadingService
from core.datetime_utils import parse_datetime, utc_now


def post_reading(client, patient_id="p1", value=150, **extra):
    payload = {"patientId": patient_id, "value": value}
    payload.update(extra)
    return client.post("/api/readings", json=payload)


# =============================================================================
# CREATE
# =============================================================================

def test_create_reading_classifies_value(client):
    response = post_reading(
        client,
        value=150,
        timestamp="2025-01-10T08:30:00Z",
        foodIntake="pizza, soda",
        activity="sedentary"
    )
    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    reading = data["reading"]
    assert reading["patient_id"] == "p1"
    assert reading["value"] == 150
    assert reading["category"] == "Abnormal"
    assert reading["timestamp"] == "2025-01-10T08:30:00Z"
    assert reading["food_intake"] == "pizza, soda"


def test_future_timestamp_stored_as_now(client):
    response = post_reading(client, value=100, timestamp="2999-01-01T00:00:00Z")
    assert response.status_code == 201
    stored = parse_datetime(response.json()["reading"]["timestamp"])
    assert stored <= utc_now()


def test_create_normal_reading_with_snake_case_fields(client):
    response = client.post(
        "/api/readings",
        json={"patient_id": "p1", "value": 100, "food_intake": "salad"}
    )
    assert response.status_code == 201
    assert response.json()["reading"]["category"] == "Normal"
    assert response.json()["reading"]["food_intake"] == "salad"


def test_boundary_values_are_normal(client):
    assert post_reading(client, value=70).json()["reading"]["category"] == "Normal"
    assert post_reading(client, value=130).json()["reading"]["category"] == "Normal"
    assert post_reading(client, value=131).json()["reading"]["category"] == "Abnormal"


def test_negative_value_rejected(client):
    response = post_reading(client, value=-5)
    assert response.status_code == 400
    data = response.json()
    assert data["success"] is False
    assert "negative" in data["detail"]


def test_non_numeric_value_rejected(client):
    response = post_reading(client, value="high")
    assert response.status_code == 422
    assert response.json()["success"] is False


def test_missing_patient_rejected(client):
    response = client.post("/api/readings", json={"value": 120})
    assert response.status_code == 422


def test_write_triggers_background_analysis(client):
    for food in ("pizza", "pizza, soda", "pizza"):
        assert post_reading(client, value=160, foodIntake=food).status_code == 201

    response = client.get("/api/recommendations", params={"patientId": "p1", "limit": 10})
    advice = [r["advice"] for r in response.json()["recommendations"]]
    assert pattern_message("pizza") in advice
    assert advice.count(pattern_message("pizza")) == 1


# =============================================================================
# LIST / UPDATE / DELETE
# =============================================================================

def test_list_readings_newest_first(client):
    post_reading(client, value=100, timestamp="2025-01-01T08:00:00Z")
    post_reading(client, value=150, timestamp="2025-01-03T08:00:00Z")
    post_reading(client, value=120, timestamp="2025-01-02T08:00:00Z")
    post_reading(client, patient_id="p2", value=90)

    response = client.get("/api/readings", params={"patientId": "p1"})
    assert response.status_code == 200
    values = [r["value"] for r in response.json()["readings"]]
    assert values == [150, 120, 100]

    limited = client.get("/api/readings", params={"patientId": "p1", "limit": 1})
    assert len(limited.json()["readings"]) == 1


def test_update_reclassifies(client):
    reading_id = post_reading(client, value=150, timestamp="2025-01-01T08:00:00Z").json()["reading"]["id"]

    response = client.put(
        f"/api/readings/{reading_id}",
        json={"patientId": "p1", "value": 100, "foodIntake": "oats"}
    )
    assert response.status_code == 200
    reading = response.json()["reading"]
    assert reading["category"] == "Normal"
    assert reading["food_intake"] == "oats"
    assert reading["timestamp"] == "2025-01-01T08:00:00Z"


def test_update_by_other_patient_is_not_found(client):
    reading_id = post_reading(client).json()["reading"]["id"]
    response = client.put(f"/api/readings/{reading_id}", json={"patientId": "intruder", "value": 100})
    assert response.status_code == 404
    assert response.json()["success"] is False


def test_delete_reading(client):
    reading_id = post_reading(client).json()["reading"]["id"]

    assert client.delete(f"/api/readings/{reading_id}", params={"patientId": "intruder"}).status_code == 404

    response = client.delete(f"/api/readings/{reading_id}", params={"patientId": "p1"})
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert client.get("/api/readings", params={"patientId": "p1"}).json()["readings"] == []


def test_delete_missing_reading(client):
    response = client.delete("/api/readings/9999", params={"patientId": "p1"})
    assert response.status_code == 404
    assert response.json()["context"]["reading_id"] == 9999


# =============================================================================
# THRESHOLD CHANGES
# =============================================================================

def test_threshold_change_does_not_reclassify_history(client):
    post_reading(client, value=150, timestamp="2025-01-01T08:00:00Z")

    response = client.put("/api/thresholds/Normal", json={"min_value": 70, "max_value": 200})
    assert response.status_code == 200

    post_reading(client, value=150, timestamp="2025-01-02T08:00:00Z")

    readings = client.get("/api/readings", params={"patientId": "p1"}).json()["readings"]
    assert [r["category"] for r in readings] == ["Normal", "Abnormal"]


# =============================================================================
# SERVICE LEVEL
# =============================================================================

def test_service_rejects_nan(reading_service):
    with pytest.raises(InvalidReadingError):
        reading_service.log_reading("p1", float("nan"))


def test_service_ownership(reading_service):
    reading = reading_service.log_reading("p1", 120)
    with pytest.raises(ReadingNotFoundError):
        reading_service.get_owned_reading(reading.id, "p2")
    assert reading_service.get_owned_reading(reading.id, "p1").id == reading.id


def test_blank_text_fields_stored_as_null(reading_service):
    reading = reading_service.log_reading("p1", 120, food_intake="  ", activity="walk ")
    assert reading.food_intake is None
    assert reading.activity == "walk"


def test_unconfigured_thresholds(unconfigured_db):
    service = ReadingService(
        reading_repository=ReadingRepository(db=unconfigured_db),
        threshold_repository=ThresholdRepository(db=unconfigured_db)
    )
    with pytest.raises(ThresholdNotConfiguredError):
        service.log_reading("p1", 120)
