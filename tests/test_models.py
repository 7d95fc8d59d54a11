"""Tests for schema decoding of calculator payloads."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from footprint_tracker.models import (
    CalculationInput,
    CalculationResult,
    StoredCalculation,
    TransportItem,
    parse_quantity,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("12.5", 12.5), (" 3 ", 3.0), (7, 7.0), (0.5, 0.5), ("1e3", 1000.0)],
)
def test_parse_quantity_accepts_positive_numbers(raw, expected):
    assert parse_quantity(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "x", "0", 0, -1, "-2", "nan", "Infinity", False, [1]])
def test_parse_quantity_rejects_unusable_values(raw):
    assert parse_quantity(raw) is None


def test_input_accepts_camel_case_and_snake_case():
    camel = CalculationInput.model_validate(
        {"wasteData": [{"garbageBags": "2"}], "foodData": [{"moneySpent": "5", "eateryType": "fastFood"}]}
    )
    snake = CalculationInput.model_validate(
        {"waste_data": [{"garbage_bags": "2"}], "food_data": [{"money_spent": "5", "eatery_type": "fastFood"}]}
    )
    assert camel == snake
    assert camel.food_data[0].eatery_type == "fastFood"


def test_input_payload_round_trips_wire_names():
    data = CalculationInput.model_validate(
        {"transportData": [{"transportType": "plane", "travelClass": "business", "distance": "10"}]}
    )
    payload = data.to_payload()
    item = payload["transportData"][0]
    assert item == {
        "transportType": "plane",
        "travelClass": "business",
        "distance": "10",
        "distanceUnit": "km",
    }
    assert payload["electricityData"] == []


def test_line_item_tolerates_unexpected_field_types():
    item = TransportItem.model_validate(
        {"transportType": ["car"], "vehicleType": 3, "distance": {"value": 1}, "extra": "ignored"}
    )
    assert item.transport_type is None
    assert item.vehicle_type == "3"
    assert item.distance is None


def test_input_from_non_mapping_is_empty():
    data = CalculationInput.model_validate(["not", "a", "mapping"])
    assert data.transport_data == []
    assert data.food_data == []


def test_result_requires_numeric_total():
    with pytest.raises(ValidationError):
        CalculationResult.model_validate({"message": "Using Supabase as fallback"})
    with pytest.raises(ValidationError):
        CalculationResult.model_validate({"total": "12"})
    with pytest.raises(ValidationError):
        CalculationResult.model_validate({"total": True})


def test_result_defaults_missing_breakdown():
    result = CalculationResult.model_validate({"total": 12})
    assert result.total == 12.0
    assert result.breakdown.food.emissions == 0.0
    assert result.breakdown.food.percentage == 0


def test_result_keeps_reported_percentages():
    result = CalculationResult.model_validate(
        {
            "total": 1,
            "breakdown": {
                "waste": {"emissions": 1, "percentage": 140},
                "food": {"emissions": 0, "percentage": 33.3},
            },
        }
    )
    assert result.breakdown.waste.percentage == 140
    assert result.breakdown.food.percentage == 33.3


def test_result_with_malformed_breakdown_keeps_total():
    result = CalculationResult.model_validate(
        {"total": 9.5, "breakdown": {"waste": {"emissions": "lots"}}}
    )
    assert result.total == 9.5
    assert result.breakdown.waste.emissions == 0.0

    assert CalculationResult.model_validate({"total": 3, "breakdown": "n/a"}).total == 3


def test_stored_calculation_wire_format(stored_record):
    record = StoredCalculation.model_validate(
        stored_record("calc-1", "user-1", "2024-05-01T12:00:00.000Z", total=7.5)
    )
    assert record.id == "calc-1"
    assert record.created_at == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    payload = record.to_payload()
    assert payload["_id"] == "calc-1"
    assert payload["user_id"] == "user-1"
    assert payload["result_data"]["total"] == 7.5
    assert "transportData" in payload["input_data"]


def test_stored_calculation_treats_naive_timestamps_as_utc(stored_record):
    record = StoredCalculation.model_validate(
        stored_record("calc-1", "user-1", "2024-05-01T12:00:00")
    )
    assert record.created_at.tzinfo is not None


def test_stored_calculation_is_immutable(stored_record):
    record = StoredCalculation.model_validate(
        stored_record("calc-1", "user-1", "2024-05-01T12:00:00Z")
    )
    with pytest.raises(ValidationError):
        record.user_id = "someone-else"  # type: ignore[misc]


def test_stored_calculation_requires_total(stored_record):
    with pytest.raises(ValidationError):
        StoredCalculation.model_validate(
            stored_record("calc-1", "user-1", "2024-05-01T12:00:00Z", total=None)
        )
