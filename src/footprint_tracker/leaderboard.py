"""Leaderboard assembly from aggregated totals and user profiles."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Iterator, Mapping

from footprint_tracker.models import LeaderboardEntry

LOGGER = logging.getLogger(__name__)

__all__ = ["ANONYMOUS_NAME", "build_leaderboard", "rank_entries"]

ANONYMOUS_NAME = "Anonymous User"


def _total_of(row: Mapping[str, object]) -> float | None:
    value = row.get("total_emissions")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def build_leaderboard(
    rows: Iterable[Mapping[str, object]],
    profiles: Mapping[str, str] | None = None,
) -> list[LeaderboardEntry]:
    """Join leaderboard rows with profile names, lowest emissions first.

    Args:
        rows: Aggregated ``{"user_id", "total_emissions"}`` rows.
        profiles: Mapping of user id to display name. Users without a
            profile are shown as ``Anonymous User``.

    Returns:
        Entries sorted ascending by total emissions, ties broken by user id.
        Rows without a user id or a numeric total are skipped.
    """

    names = profiles or {}
    entries: list[LeaderboardEntry] = []
    for row in rows:
        user_id = row.get("user_id")
        total = _total_of(row)
        if not isinstance(user_id, str) or not user_id or total is None:
            LOGGER.debug("Skipping malformed leaderboard row", extra={"row": dict(row)})
            continue
        entries.append(
            LeaderboardEntry(
                user_id=user_id,
                total_emissions=total,
                display_name=names.get(user_id) or ANONYMOUS_NAME,
            )
        )
    entries.sort(key=lambda entry: (entry.total_emissions, entry.user_id))
    return entries


def rank_entries(
    entries: Iterable[LeaderboardEntry],
) -> Iterator[tuple[int, LeaderboardEntry]]:
    """Yield ``(rank, entry)`` pairs with 1-based ranks."""

    return enumerate(entries, start=1)
