"""Footprint Tracker - lifestyle carbon footprint estimates with local fallback."""

from __future__ import annotations

from importlib import import_module
from typing import Any, TYPE_CHECKING

__all__ = [
    "CalculationInput",
    "CalculationResult",
    "CalculatorService",
    "StoredCalculation",
    "UserSession",
    "calculate_emissions",
]

if TYPE_CHECKING:
    from .emission_model import calculate_emissions
    from .models import CalculationInput, CalculationResult, StoredCalculation
    from .service import CalculatorService
    from .session import UserSession


def __getattr__(name: str) -> Any:
    """Lazily import submodules so the HTTP stack loads only when needed."""

    module_map = {
        "CalculationInput": "models",
        "CalculationResult": "models",
        "StoredCalculation": "models",
        "CalculatorService": "service",
        "UserSession": "session",
        "calculate_emissions": "emission_model",
    }

    if name not in module_map:
        raise AttributeError(name)

    module = import_module(f".{module_map[name]}", __name__)
    return getattr(module, name)
