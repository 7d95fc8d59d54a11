"""Deterministic emission estimate for a set of lifestyle line items."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Iterator, Mapping

from footprint_tracker.emission_factors import (
    ELECTRICITY_FACTOR,
    KM_PER_MILE,
    WASTE_FACTOR,
    food_factor,
    transport_factor,
)
from footprint_tracker.models import (
    Breakdown,
    CalculationInput,
    CalculationResult,
    CategoryBreakdown,
    ElectricityItem,
    FoodItem,
    TransportItem,
    WasteItem,
    parse_quantity,
)

LOGGER = logging.getLogger(__name__)

__all__ = [
    "calculate_emissions",
    "electricity_emissions",
    "food_emissions",
    "has_valid_input",
    "percentage_of",
    "round_half_up",
    "transport_emissions",
    "waste_emissions",
]


def round_half_up(value: float, digits: int = 1) -> float:
    """Round ``value`` half-up at the given number of decimal places.

    Values too large to scale without overflowing are returned unchanged;
    they carry no fractional digits anyway.
    """

    scale = 10**digits
    scaled = value * scale + 0.5
    if not math.isfinite(scaled):
        return value
    return math.floor(scaled) / scale


def percentage_of(value: float, total: float) -> int:
    """Return ``value`` as a whole-number percentage of ``total``.

    Returns ``0`` when ``total`` is not positive.
    """

    if total <= 0:
        return 0
    return int(math.floor(value / total * 100 + 0.5))


def _accumulate(
    category: str, pairs: Iterable[tuple[object, float]], *, offset: float = 0.0
) -> float:
    """Sum ``quantity * factor`` over items, skipping unusable quantities.

    Args:
        category: Category name used in diagnostics.
        pairs: ``(raw_quantity, factor)`` tuples where the factor is already
            resolved for the item's sub-type.
        offset: Emissions already counted in other categories. Items that
            would push ``offset`` plus this category past the largest finite
            float are skipped.

    Returns:
        Category emissions in kg CO2e.
    """

    total = 0.0
    for raw, factor in pairs:
        quantity = parse_quantity(raw)
        if quantity is None:
            LOGGER.debug(
                "Skipping line item without usable quantity",
                extra={"category": category, "value": raw},
            )
            continue
        emission = quantity * factor
        if not math.isfinite(emission) or not math.isfinite(offset + (total + emission)):
            LOGGER.debug(
                "Skipping line item with non-finite emission",
                extra={"category": category, "value": raw},
            )
            continue
        total += emission
    return total


def _distance_km(item: TransportItem) -> object:
    """Return the item's distance in kilometres, or the raw value if unusable."""

    distance = parse_quantity(item.distance)
    if distance is None:
        return item.distance
    if item.distance_unit == "miles":
        return distance * KM_PER_MILE
    return distance


def _transport_pairs(items: Iterable[TransportItem]) -> Iterator[tuple[object, float]]:
    for item in items:
        yield _distance_km(item), transport_factor(
            item.transport_type, item.vehicle_type, item.travel_class
        )


def _electricity_pairs(items: Iterable[ElectricityItem]) -> Iterator[tuple[object, float]]:
    return ((item.consumption, ELECTRICITY_FACTOR) for item in items)


def _waste_pairs(items: Iterable[WasteItem]) -> Iterator[tuple[object, float]]:
    return ((item.garbage_bags, WASTE_FACTOR) for item in items)


def _food_pairs(items: Iterable[FoodItem]) -> Iterator[tuple[object, float]]:
    return ((item.money_spent, food_factor(item.eatery_type)) for item in items)


def transport_emissions(items: Iterable[TransportItem]) -> float:
    """Sum transport emissions, converting miles to kilometres."""

    return _accumulate("transport", _transport_pairs(items))


def electricity_emissions(items: Iterable[ElectricityItem]) -> float:
    """Sum electricity emissions from kWh consumption."""

    return _accumulate("electricity", _electricity_pairs(items))


def waste_emissions(items: Iterable[WasteItem]) -> float:
    """Sum waste emissions from the number of garbage bags."""

    return _accumulate("waste", _waste_pairs(items))


def food_emissions(items: Iterable[FoodItem]) -> float:
    """Sum food emissions from money spent per eatery type."""

    return _accumulate("food", _food_pairs(items))


def _coerce_input(data: CalculationInput | Mapping[str, object]) -> CalculationInput:
    if isinstance(data, CalculationInput):
        return data
    return CalculationInput.model_validate(data)


def calculate_emissions(
    data: CalculationInput | Mapping[str, object],
) -> CalculationResult:
    """Estimate emissions in kg CO2e for the supplied line items.

    Line items whose numeric field is missing, non-numeric or not positive
    contribute nothing; the function never raises for malformed items. Items
    whose emission would overflow the running total are skipped as well.

    Args:
        data: Calculator input, either decoded or as a raw JSON mapping.

    Returns:
        Total and per-category emissions rounded half-up to one decimal, with
        percentages computed from the unrounded category values.
    """

    calculation_input = _coerce_input(data)
    categories = (
        ("transport", _transport_pairs(calculation_input.transport_data)),
        ("electricity", _electricity_pairs(calculation_input.electricity_data)),
        ("waste", _waste_pairs(calculation_input.waste_data)),
        ("food", _food_pairs(calculation_input.food_data)),
    )
    emissions: dict[str, float] = {}
    total = 0.0
    for category, pairs in categories:
        emissions[category] = _accumulate(category, pairs, offset=total)
        total += emissions[category]

    breakdown = Breakdown(
        **{
            category: CategoryBreakdown(
                emissions=round_half_up(value),
                percentage=percentage_of(value, total),
            )
            for category, value in emissions.items()
        }
    )
    LOGGER.debug(
        "Computed emission estimate",
        extra={"total_kgco2": total, **{f"{k}_kgco2": v for k, v in emissions.items()}},
    )
    return CalculationResult(total=round_half_up(total), breakdown=breakdown)


def has_valid_input(data: CalculationInput | Mapping[str, object]) -> bool:
    """Return ``True`` when at least one line item carries a usable value."""

    calculation_input = _coerce_input(data)
    quantities: list[object] = [
        *(item.distance for item in calculation_input.transport_data),
        *(item.consumption for item in calculation_input.electricity_data),
        *(item.garbage_bags for item in calculation_input.waste_data),
        *(item.money_spent for item in calculation_input.food_data),
    ]
    return any(parse_quantity(value) is not None for value in quantities)
