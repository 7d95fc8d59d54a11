"""HTTP client for the remote calculator API."""

from __future__ import annotations

import logging
from collections.abc import Mapping

import httpx
from pydantic import TypeAdapter, ValidationError

from footprint_tracker.errors import AuthenticationRequiredError, RemoteApiError
from footprint_tracker.models import (
    CalculationInput,
    CalculationResult,
    StoredCalculation,
)
from footprint_tracker.session import UserSession
from footprint_tracker.settings import TrackerSettings, get_settings

LOGGER = logging.getLogger(__name__)

__all__ = ["CalculatorApiClient"]

_HISTORY_ADAPTER: TypeAdapter[list[StoredCalculation]] = TypeAdapter(
    list[StoredCalculation]
)


class CalculatorApiClient:
    """Call ``POST /calculate`` and ``GET /user/calculations`` on the API."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
        settings: TrackerSettings | None = None,
    ) -> None:
        settings_obj = settings or get_settings()
        self._base = (base_url or settings_obj.api_url).rstrip("/")
        self._timeout = (
            timeout_seconds if timeout_seconds is not None else settings_obj.api_timeout
        )
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base

    def calculate(
        self,
        data: CalculationInput,
        session: UserSession,
        *,
        require_auth: bool = False,
    ) -> CalculationResult:
        """Ask the API to compute emissions for ``data``.

        Args:
            data: Decoded calculator input.
            session: Caller identity; its token is sent as a bearer token.
            require_auth: When ``True`` the call fails without a session token
                instead of presenting the shared free-user token.

        Returns:
            The decoded calculation result.

        Raises:
            AuthenticationRequiredError: If authentication is required and the
                session has no token.
            RemoteApiError: On transport errors, non-2xx responses or a body
                that does not decode as a calculation result.
        """

        payload = self._request(
            "POST",
            "/calculate",
            session,
            require_auth=require_auth,
            json_body=data.to_payload(),
        )
        try:
            return CalculationResult.model_validate(payload)
        except ValidationError as exc:
            raise RemoteApiError(
                "Calculator API returned a malformed calculation result"
            ) from exc

    def list_calculations(self, session: UserSession) -> list[StoredCalculation]:
        """Return the caller's stored calculations as reported by the API.

        Raises:
            AuthenticationRequiredError: If the session has no token.
            RemoteApiError: On transport errors, non-2xx responses or a body
                that does not decode as a list of stored calculations.
        """

        payload = self._request("GET", "/user/calculations", session, require_auth=True)
        try:
            return _HISTORY_ADAPTER.validate_python(payload)
        except ValidationError as exc:
            raise RemoteApiError(
                "Calculator API returned malformed calculation history"
            ) from exc

    def _request(
        self,
        method: str,
        endpoint: str,
        session: UserSession,
        *,
        require_auth: bool,
        json_body: Mapping[str, object] | None = None,
    ) -> object:
        token = session.bearer_token(require_auth=require_auth)
        if require_auth and not token:
            raise AuthenticationRequiredError(
                f"{method} {endpoint} requires an authenticated session"
            )

        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        url = f"{self._base}{endpoint}"

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.request(method, url, headers=headers, json=json_body)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            LOGGER.info(
                "Calculator API HTTP error",
                extra={"url": url, "method": method, "status_code": status_code},
            )
            raise RemoteApiError(
                _error_message(exc.response), status_code=status_code
            ) from exc
        except httpx.HTTPError as exc:
            LOGGER.info(
                "Calculator API transport error",
                extra={"url": url, "method": method, "error_type": type(exc).__name__},
            )
            raise RemoteApiError(f"Calculator API unreachable: {exc}") from exc
        except ValueError as exc:
            LOGGER.info(
                "Calculator API response parsing error",
                extra={"url": url, "method": method},
            )
            raise RemoteApiError("Calculator API returned invalid JSON") from exc


def _error_message(response: httpx.Response) -> str:
    """Return the ``message`` field of an error body, or a generic message."""

    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message:
            return message
    return "Something went wrong"
