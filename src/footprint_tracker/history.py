"""Dashboard summaries over a user's stored calculations."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from statistics import mean

from footprint_tracker.models import StoredCalculation

__all__ = ["HistorySummary", "TrendPoint", "summarize_history"]


@dataclass(frozen=True, slots=True)
class TrendPoint:
    """Totals of one calculation, as plotted on the trend chart."""

    created_at: datetime
    total: float
    transport: float
    electricity: float
    waste: float
    food: float

    @classmethod
    def from_record(cls, record: StoredCalculation) -> TrendPoint:
        breakdown = record.result_data.breakdown
        return cls(
            created_at=record.created_at,
            total=record.result_data.total,
            transport=breakdown.transport.emissions,
            electricity=breakdown.electricity.emissions,
            waste=breakdown.waste.emissions,
            food=breakdown.food.emissions,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "created_at": self.created_at.isoformat(),
            "total": self.total,
            "transport": self.transport,
            "electricity": self.electricity,
            "waste": self.waste,
            "food": self.food,
        }


@dataclass(frozen=True, slots=True)
class HistorySummary:
    """Aggregate figures shown on the dashboard.

    Attributes:
        count: Number of calculations.
        average_total: Mean of the calculation totals, ``0.0`` when empty.
        latest_total: Total of the newest calculation, ``0.0`` when empty.
        trend: One point per calculation, oldest first.
    """

    count: int = 0
    average_total: float = 0.0
    latest_total: float = 0.0
    trend: tuple[TrendPoint, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, object]:
        return {
            "count": self.count,
            "average_total": self.average_total,
            "latest_total": self.latest_total,
            "trend": [point.to_dict() for point in self.trend],
        }


def summarize_history(records: Iterable[StoredCalculation]) -> HistorySummary:
    """Summarise ``records`` for the dashboard regardless of input order."""

    ordered = sorted(records, key=lambda record: record.created_at)
    if not ordered:
        return HistorySummary()
    totals = [record.result_data.total for record in ordered]
    return HistorySummary(
        count=len(ordered),
        average_total=mean(totals),
        latest_total=totals[-1],
        trend=tuple(TrendPoint.from_record(record) for record in ordered),
    )
