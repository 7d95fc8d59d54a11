"""Ordered fallback strategies for calculation and history lookups.

Each strategy returns a tagged :class:`Outcome` instead of raising, and
:class:`FallbackPipeline` picks the first success. The degrade-to-local
policy is therefore the strategy order handed to the pipeline.
"""

from __future__ import annotations

import logging
import random
import string
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Generic, Literal, TypeVar

from pydantic import ValidationError

from footprint_tracker.api_client import CalculatorApiClient
from footprint_tracker.emission_model import calculate_emissions
from footprint_tracker.errors import (
    AuthenticationRequiredError,
    FootprintError,
    PipelineExhaustedError,
    RemoteApiError,
)
from footprint_tracker.local_log import LocalCalculationLog
from footprint_tracker.models import CalculationInput, CalculationResult, StoredCalculation
from footprint_tracker.session import UserSession

LOGGER = logging.getLogger(__name__)

__all__ = [
    "CalculationRequest",
    "FallbackPipeline",
    "LocalCalculationStrategy",
    "LocalHistoryStrategy",
    "Outcome",
    "PipelineReport",
    "RemoteCalculationStrategy",
    "RemoteHistoryStrategy",
    "Strategy",
    "generate_calculation_id",
    "utc_now",
]

T = TypeVar("T")
RequestT = TypeVar("RequestT")
OutcomeStatus = Literal["success", "skip", "failure"]

_ID_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True, slots=True)
class Outcome(Generic[T]):
    """Tagged result of running one strategy."""

    strategy: str
    status: OutcomeStatus
    value: T | None = None
    reason: str | None = None

    @classmethod
    def success(cls, strategy: str, value: T) -> Outcome[T]:
        return cls(strategy=strategy, status="success", value=value)

    @classmethod
    def skip(cls, strategy: str, reason: str) -> Outcome[T]:
        return cls(strategy=strategy, status="skip", reason=reason)

    @classmethod
    def failure(cls, strategy: str, reason: str) -> Outcome[T]:
        return cls(strategy=strategy, status="failure", reason=reason)

    @property
    def ok(self) -> bool:
        return self.status == "success"


@dataclass(frozen=True, slots=True)
class CalculationRequest:
    """Input to the calculation strategies.

    Attributes:
        data: Decoded calculator input.
        session: Caller identity.
        authenticated: Whether the caller is signed in. Authenticated callers
            get their locally computed results stored.
    """

    data: CalculationInput
    session: UserSession
    authenticated: bool


class Strategy(ABC, Generic[RequestT, T]):
    """A named way of producing a value for a request."""

    name: str = "strategy"

    @abstractmethod
    def run(self, request: RequestT) -> Outcome[T]:
        """Produce an outcome for ``request`` without raising."""


@dataclass(frozen=True, slots=True)
class PipelineReport(Generic[T]):
    """The winning outcome of a pipeline run plus every attempt made."""

    winner: Outcome[T]
    attempts: tuple[Outcome[T], ...] = field(default_factory=tuple)

    @property
    def value(self) -> T | None:
        return self.winner.value

    @property
    def strategy(self) -> str:
        return self.winner.strategy


class FallbackPipeline(Generic[RequestT, T]):
    """Run strategies in order until one succeeds."""

    def __init__(self, strategies: Iterable[Strategy[RequestT, T]]) -> None:
        self._strategies = tuple(strategies)
        if not self._strategies:
            raise ValueError("FallbackPipeline requires at least one strategy")

    @property
    def strategy_names(self) -> tuple[str, ...]:
        return tuple(strategy.name for strategy in self._strategies)

    def execute(self, request: RequestT) -> PipelineReport[T]:
        """Return the first successful outcome.

        Raises:
            PipelineExhaustedError: If every strategy skipped or failed.
        """

        attempts: list[Outcome[T]] = []
        for strategy in self._strategies:
            try:
                outcome = strategy.run(request)
            except (FootprintError, ValueError, OSError) as exc:
                outcome = Outcome.failure(strategy.name, f"{type(exc).__name__}: {exc}")
            except Exception as exc:  # pragma: no cover - defensive
                LOGGER.warning(
                    "Strategy raised unexpectedly",
                    extra={"strategy": strategy.name, "error_type": type(exc).__name__},
                    exc_info=exc,
                )
                outcome = Outcome.failure(strategy.name, f"{type(exc).__name__}: {exc}")

            attempts.append(outcome)
            if outcome.ok:
                return PipelineReport(winner=outcome, attempts=tuple(attempts))
            if outcome.status == "failure":
                LOGGER.warning(
                    "Fallback strategy failed",
                    extra={"strategy": strategy.name, "reason": outcome.reason},
                )
            else:
                LOGGER.debug(
                    "Fallback strategy skipped",
                    extra={"strategy": strategy.name, "reason": outcome.reason},
                )
        raise PipelineExhaustedError(attempts)


class RemoteCalculationStrategy(Strategy[CalculationRequest, CalculationResult]):
    """Compute emissions through the calculator API."""

    name = "remote"

    def __init__(self, client: CalculatorApiClient) -> None:
        self._client = client

    def run(self, request: CalculationRequest) -> Outcome[CalculationResult]:
        try:
            result = self._client.calculate(
                request.data, request.session, require_auth=request.authenticated
            )
        except (RemoteApiError, AuthenticationRequiredError) as exc:
            return Outcome.failure(self.name, str(exc))
        return Outcome.success(self.name, result)


def generate_calculation_id(now: datetime | None = None) -> str:
    """Return a synthetic id of the form ``calc-<epoch-ms>-<7 base36 chars>``."""

    millis = int((now.timestamp() if now else time.time()) * 1000)
    suffix = "".join(random.choices(_ID_ALPHABET, k=7))
    return f"calc-{millis}-{suffix}"


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(timezone.utc)


class LocalCalculationStrategy(Strategy[CalculationRequest, CalculationResult]):
    """Compute emissions in-process and keep a copy in the local log.

    Storage problems never fail the strategy: a result that was computed is
    always returned.
    """

    name = "local"

    def __init__(
        self,
        log: LocalCalculationLog | None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._log = log
        self._clock = clock

    def run(self, request: CalculationRequest) -> Outcome[CalculationResult]:
        result = calculate_emissions(request.data)
        if request.authenticated:
            self._store(request, result)
        return Outcome.success(self.name, result)

    def _store(self, request: CalculationRequest, result: CalculationResult) -> None:
        user_id = request.session.user_id
        if not user_id:
            LOGGER.error("No user id available; calculation not stored locally")
            return
        if self._log is None:
            LOGGER.debug("No local log configured; calculation not stored")
            return

        created_at = self._clock()
        record = StoredCalculation(
            id=generate_calculation_id(created_at),
            user_id=user_id,
            created_at=created_at,
            input_data=request.data,
            result_data=result,
        )
        try:
            self._log.append(record.to_payload())
        except (OSError, ValueError) as exc:
            LOGGER.warning(
                "Failed to store calculation locally",
                extra={"user_id": user_id, "error_type": type(exc).__name__},
                exc_info=exc,
            )
            return
        LOGGER.info(
            "Stored calculation locally",
            extra={"user_id": user_id, "calculation_id": record.id},
        )


class RemoteHistoryStrategy(Strategy[UserSession, list[StoredCalculation]]):
    """Fetch the caller's calculation history from the API."""

    name = "remote"

    def __init__(self, client: CalculatorApiClient) -> None:
        self._client = client

    def run(self, request: UserSession) -> Outcome[list[StoredCalculation]]:
        if not request.token:
            return Outcome.skip(self.name, "no bearer token")
        try:
            records = self._client.list_calculations(request)
        except (RemoteApiError, AuthenticationRequiredError) as exc:
            return Outcome.failure(self.name, str(exc))
        return Outcome.success(self.name, records)


class LocalHistoryStrategy(Strategy[UserSession, list[StoredCalculation]]):
    """Read the caller's records from the local log, newest first."""

    name = "local"

    def __init__(self, log: LocalCalculationLog) -> None:
        self._log = log

    def run(self, request: UserSession) -> Outcome[list[StoredCalculation]]:
        user_id = request.user_id
        if not user_id:
            return Outcome.skip(self.name, "no user id")

        records: list[StoredCalculation] = []
        for raw in self._log.read_all():
            if raw.get("user_id") != user_id:
                continue
            try:
                records.append(StoredCalculation.model_validate(raw))
            except ValidationError:
                LOGGER.debug(
                    "Skipping local record without a valid result",
                    extra={"user_id": user_id, "calculation_id": raw.get("_id")},
                )
        records.sort(key=lambda record: record.created_at, reverse=True)
        return Outcome.success(self.name, records)
