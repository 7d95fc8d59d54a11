"""Exception hierarchy for :mod:`footprint_tracker`."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from footprint_tracker.strategies import Outcome

__all__ = [
    "AuthenticationRequiredError",
    "FootprintError",
    "PipelineExhaustedError",
    "RemoteApiError",
]


class FootprintError(RuntimeError):
    """Base class for errors raised by the footprint tracker."""


class RemoteApiError(FootprintError):
    """Raised when the calculator API cannot produce a usable response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationRequiredError(FootprintError):
    """Raised when an endpoint requires a bearer token and none is available."""


class PipelineExhaustedError(FootprintError):
    """Raised when every strategy in a fallback pipeline failed or skipped."""

    def __init__(self, attempts: Sequence[Outcome[object]]) -> None:
        names = ", ".join(f"{item.strategy}={item.status}" for item in attempts)
        super().__init__(f"No strategy produced a result ({names or 'none'})")
        self.attempts = tuple(attempts)
