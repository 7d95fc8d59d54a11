"""Property tests for the emission model using hypothesis."""

import math
import sys

from hypothesis import HealthCheck, given, settings, strategies as st

from footprint_tracker.emission_model import calculate_emissions

CATEGORIES = ("transport", "electricity", "waste", "food")

_quantities = st.one_of(
    st.floats(min_value=0.01, max_value=1e6, allow_nan=False, allow_infinity=False).map(
        lambda value: f"{value:.2f}"
    ),
    st.integers(min_value=1, max_value=100_000),
    st.floats(
        min_value=1e300, max_value=sys.float_info.max, allow_nan=False, allow_infinity=False
    ).map(repr),
)
_junk = st.one_of(
    st.none(),
    st.just(""),
    st.text(alphabet="abcxyz-", max_size=5),
    st.floats(max_value=0.0, allow_nan=False, allow_infinity=False).map(str),
    st.integers(max_value=0),
)

_transport = st.fixed_dictionaries(
    {
        "transportType": st.sampled_from(["car", "bus", "train", "plane", "boat"]),
        "vehicleType": st.sampled_from(["small", "medium", "large"]),
        "travelClass": st.sampled_from(["economy", "business", "first"]),
        "distance": st.one_of(_quantities, _junk),
        "distanceUnit": st.sampled_from(["km", "miles"]),
    }
)
_electricity = st.fixed_dictionaries({"consumption": st.one_of(_quantities, _junk)})
_waste = st.fixed_dictionaries({"garbageBags": st.one_of(_quantities, _junk)})
_food = st.fixed_dictionaries(
    {
        "moneySpent": st.one_of(_quantities, _junk),
        "eateryType": st.sampled_from(["homeCooked", "fastFood", "restaurant"]),
    }
)

_inputs = st.fixed_dictionaries(
    {
        "transportData": st.lists(_transport, max_size=4),
        "electricityData": st.lists(_electricity, max_size=4),
        "wasteData": st.lists(_waste, max_size=4),
        "foodData": st.lists(_food, max_size=4),
    }
)


@settings(suppress_health_check=[HealthCheck.too_slow])
@given(data=_inputs)
def test_percentages_are_bounded_and_sum_near_100(data):
    """Independently rounded percentages stay within rounding slack of 100."""
    result = calculate_emissions(data)

    percentages = [result.breakdown.get(category).percentage for category in CATEGORIES]
    for value in percentages:
        assert 0 <= value <= 100

    if result.total > 0:
        assert abs(sum(percentages) - 100) <= 3


@given(data=_inputs)
def test_results_are_finite_and_non_negative(data):
    result = calculate_emissions(data)
    assert math.isfinite(result.total)
    assert result.total >= 0
    for category in CATEGORIES:
        assert result.breakdown.get(category).emissions >= 0


@given(data=_inputs)
def test_calculation_is_deterministic(data):
    assert calculate_emissions(data) == calculate_emissions(data)


@given(
    data=st.fixed_dictionaries(
        {
            "transportData": st.lists(
                st.fixed_dictionaries({"transportType": st.just("car"), "distance": _junk}),
                max_size=3,
            ),
            "electricityData": st.lists(
                st.fixed_dictionaries({"consumption": _junk}), max_size=3
            ),
            "wasteData": st.lists(st.fixed_dictionaries({"garbageBags": _junk}), max_size=3),
            "foodData": st.lists(
                st.fixed_dictionaries(
                    {"moneySpent": _junk, "eateryType": st.just("restaurant")}
                ),
                max_size=3,
            ),
        }
    )
)
def test_unusable_items_only_give_zero(data):
    result = calculate_emissions(data)
    assert result.total == 0
    for category in CATEGORIES:
        assert result.breakdown.get(category).percentage == 0
