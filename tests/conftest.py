"""Pytest configuration and fixtures."""

from __future__ import annotations

import json
import os
import sys
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta, timezone
from pathlib import Path

import httpx
import pytest

# Ensure src/ is on sys.path for tests so the src layout is used during test runs
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from footprint_tracker.api_client import CalculatorApiClient  # noqa: E402
from footprint_tracker.local_log import LocalCalculationLog  # noqa: E402

_ENV_VARS = (
    "FOOTPRINT_API_URL",
    "FOOTPRINT_API_TIMEOUT",
    "FOOTPRINT_LOG_SLOT",
    "FOOTPRINT_LOG_LEVEL",
)

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(autouse=True)
def _isolated_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Iterator[None]:
    """Keep tests away from the user's environment and home directory."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("FOOTPRINT_STORAGE_DIR", str(tmp_path / "storage"))
    yield


@pytest.fixture
def local_log(tmp_path: Path) -> LocalCalculationLog:
    return LocalCalculationLog(tmp_path / "storage")


@pytest.fixture
def sample_input() -> dict[str, object]:
    """Calculator form data covering every category."""

    return {
        "transportData": [
            {
                "transportType": "car",
                "vehicleType": "medium",
                "distance": "100",
                "distanceUnit": "km",
            }
        ],
        "electricityData": [{"consumption": "200"}],
        "wasteData": [{"garbageBags": "2"}],
        "foodData": [{"moneySpent": "50", "eateryType": "fastFood"}],
    }


@pytest.fixture
def make_client() -> Callable[[Handler], CalculatorApiClient]:
    """Build an API client whose requests are answered by ``handler``."""

    def _make(handler: Handler) -> CalculatorApiClient:
        return CalculatorApiClient(
            "http://api.test/api", transport=httpx.MockTransport(handler)
        )

    return _make


@pytest.fixture
def unreachable_client(
    make_client: Callable[[Handler], CalculatorApiClient],
) -> CalculatorApiClient:
    """API client whose every request fails with a connection error."""

    def _refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    return make_client(_refuse)


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock advancing one minute per call from a fixed instant."""

    state = {"now": datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)}

    def _tick() -> datetime:
        current = state["now"]
        state["now"] = current + timedelta(minutes=1)
        return current

    return _tick


def _stored_record(
    record_id: str,
    user_id: str,
    created_at: str,
    total: float | None = 10.0,
) -> dict[str, object]:
    """Return a local-log record in wire format."""

    result: dict[str, object] = {
        "breakdown": {
            "transport": {"emissions": total or 0.0, "percentage": 100},
            "electricity": {"emissions": 0.0, "percentage": 0},
            "waste": {"emissions": 0.0, "percentage": 0},
            "food": {"emissions": 0.0, "percentage": 0},
        }
    }
    if total is not None:
        result["total"] = total
    return {
        "_id": record_id,
        "user_id": user_id,
        "created_at": created_at,
        "input_data": {"transportData": [], "electricityData": [], "wasteData": [], "foodData": []},
        "result_data": result,
    }


def _write_log(log: LocalCalculationLog, records: list[object]) -> None:
    log.path.parent.mkdir(parents=True, exist_ok=True)
    log.path.write_text(json.dumps(records), encoding="utf-8")


@pytest.fixture
def stored_record() -> Callable[..., dict[str, object]]:
    return _stored_record


@pytest.fixture
def write_log() -> Callable[[LocalCalculationLog, list[object]], None]:
    return _write_log
