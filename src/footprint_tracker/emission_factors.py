"""Emission factors in kilograms of CO2e per unit of activity.

Factors are fixed constants. Lookups that do not match a known sub-type
follow the behaviour of the web calculator: an unknown car size is billed
as a large car, an unknown cabin class as first class, and an unknown
transport mode or eatery type contributes nothing.
"""

from __future__ import annotations

from typing import Final

KM_PER_MILE: Final[float] = 1.60934

CAR_FACTORS: Final[dict[str, float]] = {
    "small": 0.15,
    "medium": 0.20,
    "large": 0.30,
}
CAR_DEFAULT_FACTOR: Final[float] = CAR_FACTORS["large"]

BUS_FACTOR: Final[float] = 0.10
TRAIN_FACTOR: Final[float] = 0.05

PLANE_FACTORS: Final[dict[str, float]] = {
    "economy": 0.25,
    "business": 0.50,
    "first": 0.75,
}
PLANE_DEFAULT_FACTOR: Final[float] = PLANE_FACTORS["first"]

ELECTRICITY_FACTOR: Final[float] = 0.5  # per kWh
WASTE_FACTOR: Final[float] = 10.0  # per garbage bag

FOOD_FACTORS: Final[dict[str, float]] = {
    "homeCooked": 0.5,
    "fastFood": 1.2,
    "restaurant": 2.0,
}


def transport_factor(
    transport_type: str | None,
    vehicle_type: str | None = None,
    travel_class: str | None = None,
) -> float:
    """Return the per-kilometre factor for a transport line item.

    Args:
        transport_type: One of ``car``, ``bus``, ``train`` or ``plane``.
        vehicle_type: Car size, only consulted for cars.
        travel_class: Cabin class, only consulted for planes.

    Returns:
        Factor in kg CO2e per km, ``0.0`` for unknown transport types.
    """

    if transport_type == "car":
        return CAR_FACTORS.get(vehicle_type or "", CAR_DEFAULT_FACTOR)
    if transport_type == "bus":
        return BUS_FACTOR
    if transport_type == "train":
        return TRAIN_FACTOR
    if transport_type == "plane":
        return PLANE_FACTORS.get(travel_class or "", PLANE_DEFAULT_FACTOR)
    return 0.0


def food_factor(eatery_type: str | None) -> float:
    """Return the per-currency-unit factor for an eatery type."""

    return FOOD_FACTORS.get(eatery_type or "", 0.0)
