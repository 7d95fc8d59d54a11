"""Pydantic models describing calculator inputs, results and stored records.

Wire payloads use camelCase keys for calculator input (``transportData``,
``distanceUnit`` ...) and snake_case keys for stored records (``user_id``,
``created_at`` ...). Models accept either the wire alias or the Python
attribute name.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

LOGGER = logging.getLogger(__name__)

__all__ = [
    "CATEGORIES",
    "Breakdown",
    "CalculationInput",
    "CalculationResult",
    "Category",
    "CategoryBreakdown",
    "ElectricityItem",
    "FoodItem",
    "LeaderboardEntry",
    "StoredCalculation",
    "TransportItem",
    "WasteItem",
    "parse_quantity",
]

Category = Literal["transport", "electricity", "waste", "food"]
CATEGORIES: tuple[Category, ...] = ("transport", "electricity", "waste", "food")

RawQuantity = str | int | float | None


def parse_quantity(value: object) -> float | None:
    """Return a usable positive quantity, or ``None`` when the value is unusable.

    Args:
        value: Raw user value, usually a numeric string from a form field.

    Returns:
        The parsed float when it is finite and strictly positive, otherwise
        ``None``.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        parsed = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(parsed) or parsed <= 0:
        return None
    return parsed


def _optional_text(value: object) -> str | None:
    """Return sub-type selectors as text; non-scalar values become ``None``."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


class _LineItem(BaseModel):
    """Common configuration for user-editable line items."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    @field_validator("*", mode="before")
    @classmethod
    def _tolerate_unexpected_types(cls, value: object) -> object:
        """Replace values of unexpected types with ``None``.

        Malformed fields never reject the item; they make it contribute zero.
        """

        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, (str, int, float)):
            return value
        return None

    def to_payload(self) -> dict[str, object]:
        """Return the camelCase JSON payload for the item."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TransportItem(_LineItem):
    """A single journey."""

    transport_type: str | None = None
    vehicle_type: str | None = None
    travel_class: str | None = None
    distance: RawQuantity = None
    distance_unit: str | None = "km"

    @field_validator(
        "transport_type", "vehicle_type", "travel_class", "distance_unit", mode="before"
    )
    @classmethod
    def _as_text(cls, value: object) -> str | None:
        return _optional_text(value)


class ElectricityItem(_LineItem):
    """Electricity consumption in kWh."""

    consumption: RawQuantity = None


class WasteItem(_LineItem):
    """Household waste counted in garbage bags."""

    garbage_bags: RawQuantity = None


class FoodItem(_LineItem):
    """Money spent on food at a given kind of eatery."""

    money_spent: RawQuantity = None
    eatery_type: str | None = None

    @field_validator("eatery_type", mode="before")
    @classmethod
    def _as_text(cls, value: object) -> str | None:
        return _optional_text(value)


_CATEGORY_KEYS: dict[str, str] = {
    "transport_data": "transportData",
    "electricity_data": "electricityData",
    "waste_data": "wasteData",
    "food_data": "foodData",
}


class CalculationInput(BaseModel):
    """Ordered line items for each of the four categories.

    Decoding is defensive: a category that is not a list becomes empty and
    list entries that are not objects are dropped.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    transport_data: list[TransportItem] = Field(default_factory=list)
    electricity_data: list[ElectricityItem] = Field(default_factory=list)
    waste_data: list[WasteItem] = Field(default_factory=list)
    food_data: list[FoodItem] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _coerce_categories(cls, data: object) -> object:
        if isinstance(data, BaseModel):
            return data
        if not isinstance(data, Mapping):
            return {}
        coerced: dict[str, object] = {}
        for name, alias in _CATEGORY_KEYS.items():
            raw = data.get(alias, data.get(name))
            if not isinstance(raw, list):
                coerced[name] = []
                continue
            coerced[name] = [
                item
                for item in raw
                if isinstance(item, (Mapping, _LineItem))
            ]
        return coerced

    def to_payload(self) -> dict[str, object]:
        """Return the camelCase JSON payload sent to the calculator API."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CategoryBreakdown(BaseModel):
    """Emissions of a single category and its share of the total."""

    model_config = ConfigDict(frozen=True)

    emissions: float = Field(default=0.0, allow_inf_nan=False)
    # Locally computed shares are whole numbers in 0..100; the calculator API
    # may report fractional ones.
    percentage: int | float = Field(default=0, allow_inf_nan=False)


class Breakdown(BaseModel):
    """Per-category breakdown of a calculation."""

    model_config = ConfigDict(frozen=True)

    transport: CategoryBreakdown = Field(default_factory=CategoryBreakdown)
    electricity: CategoryBreakdown = Field(default_factory=CategoryBreakdown)
    waste: CategoryBreakdown = Field(default_factory=CategoryBreakdown)
    food: CategoryBreakdown = Field(default_factory=CategoryBreakdown)

    def get(self, category: Category) -> CategoryBreakdown:
        """Return the breakdown entry for ``category``."""

        return getattr(self, category)


class CalculationResult(BaseModel):
    """Emission estimate in kg CO2e with a category breakdown."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    total: float = Field(..., allow_inf_nan=False)
    breakdown: Breakdown = Field(default_factory=Breakdown)

    @field_validator("total", mode="before")
    @classmethod
    def _reject_non_numeric(cls, value: object) -> object:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("total must be a number")
        return value

    @field_validator("breakdown", mode="wrap")
    @classmethod
    def _tolerate_malformed_breakdown(
        cls, value: object, handler: ValidatorFunctionWrapHandler
    ) -> Breakdown:
        """Keep a result with a usable total even when its breakdown is unusable."""

        try:
            return handler(value)
        except ValidationError as exc:
            LOGGER.debug(
                "Discarding malformed breakdown",
                extra={"error_count": exc.error_count()},
            )
            return Breakdown()

    def to_payload(self) -> dict[str, object]:
        """Return a JSON-serialisable payload."""

        return self.model_dump(mode="json")


class StoredCalculation(BaseModel):
    """Immutable record of a submitted calculation."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="_id", min_length=1)
    user_id: str = Field(..., min_length=1)
    created_at: datetime
    input_data: CalculationInput = Field(default_factory=CalculationInput)
    result_data: CalculationResult

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        """Treat naive timestamps as UTC so records remain comparable."""

        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def to_payload(self) -> dict[str, object]:
        """Return the JSON payload written to the local log."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class LeaderboardEntry(BaseModel):
    """Aggregated emissions for one user, as shown on the leaderboard."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    total_emissions: float
    display_name: str
