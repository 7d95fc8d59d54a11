"""Calculator facade combining the remote API with the local fallback."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import datetime

from footprint_tracker.api_client import CalculatorApiClient
from footprint_tracker.emission_model import calculate_emissions
from footprint_tracker.errors import PipelineExhaustedError
from footprint_tracker.local_log import LocalCalculationLog
from footprint_tracker.models import CalculationInput, CalculationResult, StoredCalculation
from footprint_tracker.session import UserSession
from footprint_tracker.settings import TrackerSettings, get_settings
from footprint_tracker.strategies import (
    CalculationRequest,
    FallbackPipeline,
    LocalCalculationStrategy,
    LocalHistoryStrategy,
    PipelineReport,
    RemoteCalculationStrategy,
    RemoteHistoryStrategy,
    Strategy,
    utc_now,
)

LOGGER = logging.getLogger(__name__)

__all__ = ["CalculatorService"]


class CalculatorService:
    """Calculate footprints and list history, degrading to local storage.

    Args:
        client: Calculator API client. ``None`` disables the remote path
            (offline mode).
        log: Local calculation log used for fallback storage and reads.
        clock: Source of timestamps for locally stored records.
    """

    def __init__(
        self,
        client: CalculatorApiClient | None,
        log: LocalCalculationLog,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._client = client
        self._log = log

        calculation: list[Strategy[CalculationRequest, CalculationResult]] = []
        history: list[Strategy[UserSession, list[StoredCalculation]]] = []
        if client is not None:
            calculation.append(RemoteCalculationStrategy(client))
            history.append(RemoteHistoryStrategy(client))
        calculation.append(LocalCalculationStrategy(log, clock=clock))
        history.append(LocalHistoryStrategy(log))

        self._calculation_pipeline = FallbackPipeline(calculation)
        self._history_pipeline = FallbackPipeline(history)

    @classmethod
    def from_settings(
        cls, settings: TrackerSettings | None = None, *, offline: bool = False
    ) -> CalculatorService:
        """Build a service from environment settings."""

        settings_obj = settings or get_settings()
        client = None if offline else CalculatorApiClient(settings=settings_obj)
        return cls(client, LocalCalculationLog.from_settings(settings_obj))

    @property
    def log(self) -> LocalCalculationLog:
        return self._log

    def calculate_with_report(
        self,
        data: CalculationInput | Mapping[str, object],
        session: UserSession,
        *,
        authenticated: bool | None = None,
    ) -> PipelineReport[CalculationResult]:
        """Run the calculation pipeline and return the full report.

        Args:
            data: Calculator input, decoded or as a raw JSON mapping.
            session: Caller identity.
            authenticated: Overrides ``session.is_authenticated``.
        """

        calculation_input = CalculationInput.model_validate(data)
        request = CalculationRequest(
            data=calculation_input,
            session=session,
            authenticated=(
                session.is_authenticated if authenticated is None else authenticated
            ),
        )
        return self._calculation_pipeline.execute(request)

    def calculate(
        self,
        data: CalculationInput | Mapping[str, object],
        session: UserSession,
        *,
        authenticated: bool | None = None,
    ) -> CalculationResult:
        """Return a calculation result, falling back to the local model.

        Remote failures are never surfaced once a local result exists.
        """

        report = self.calculate_with_report(data, session, authenticated=authenticated)
        if report.value is None:  # pragma: no cover - success always carries a value
            return calculate_emissions(data)
        LOGGER.debug(
            "Calculation served",
            extra={"strategy": report.strategy, "total_kgco2": report.value.total},
        )
        return report.value

    def list_calculations(self, session: UserSession) -> list[StoredCalculation]:
        """Return the caller's stored calculations, newest first.

        Never raises: an unknown user or an unusable log yields ``[]``.
        """

        if not session.user_id:
            LOGGER.info("No user id available when listing calculations")
            return []
        try:
            report = self._history_pipeline.execute(session)
        except PipelineExhaustedError as exc:
            LOGGER.warning(
                "No history source available",
                extra={"user_id": session.user_id},
                exc_info=exc,
            )
            return []
        return list(report.value or [])
