"""Introspection clients (sync and async).

Each call performs exactly one POST to the configured endpoint. There is
no retry logic; the configured timeout bounds how long a request may block.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import pydantic

from .config import StatusPolicy
from .errors import DecodeError, StatusError, TimeoutError, TransportError
from .models import IntrospectionResult
from .telemetry import IntrospectionTelemetry

if TYPE_CHECKING:
    from .config import IntrospectionConfig


def build_form(config: IntrospectionConfig, token: str) -> dict[str, str]:
    """Clone the body template and set the token field."""
    form = dict(config.body)
    form["token"] = token
    return form


def parse_response(
    response: httpx.Response,
    policy: StatusPolicy = StatusPolicy.LENIENT,
) -> IntrospectionResult:
    """Decode an introspection response.

    Args:
        response: Response from the introspection endpoint.
        policy: Handling of non-2xx responses.

    Returns:
        Parsed introspection result.

    Raises:
        StatusError: On non-2xx status without a usable body.
        DecodeError: On a 2xx response whose body is not an introspection document.
    """
    success = response.is_success
    if not success and policy is StatusPolicy.STRICT:
        raise StatusError(response.status_code)

    try:
        payload = response.json()
    except ValueError as e:
        if not success:
            raise StatusError(response.status_code) from e
        raise DecodeError(
            f"Introspection response is not JSON: {e}",
            status_code=response.status_code,
            cause=e,
        ) from e

    try:
        return IntrospectionResult.model_validate(payload)
    except pydantic.ValidationError as e:
        if not success:
            raise StatusError(response.status_code) from e
        raise DecodeError(
            "Introspection response does not match the expected structure",
            status_code=response.status_code,
            cause=e,
        ) from e


def _transport_error(config: IntrospectionConfig, exc: httpx.HTTPError) -> TransportError:
    if isinstance(exc, httpx.TimeoutException):
        return TimeoutError(
            f"Introspection request timed out: {exc}",
            timeout_seconds=config.timeout,
            cause=exc,
        )
    return TransportError(f"Introspection request failed: {exc}", cause=exc)


class IntrospectionClient:
    """Synchronous introspection client."""

    def __init__(
        self,
        config: IntrospectionConfig,
        *,
        telemetry: IntrospectionTelemetry | None = None,
    ) -> None:
        self.config = config
        self.telemetry = telemetry or IntrospectionTelemetry(config.telemetry)
        self._owns_http = config.client is None
        self._http = config.client or httpx.Client(
            timeout=config.timeout,
            follow_redirects=False,
        )
        self._logger = self.telemetry.logger

    def __enter__(self) -> IntrospectionClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http:
            self._http.close()

    def introspect(self, token: str) -> IntrospectionResult:
        """Validate a token against the introspection endpoint.

        Args:
            token: Bearer token taken from the request.

        Returns:
            Parsed introspection result.

        Raises:
            TimeoutError: If the endpoint did not answer in time.
            TransportError: On any other network failure or unusable status.
            DecodeError: If the response body cannot be parsed.
        """
        with self.telemetry.request_span(self.config.endpoint) as span:
            try:
                response = self._http.post(
                    self.config.endpoint,
                    data=build_form(self.config, token),
                    headers=self.config.headers,
                )
            except httpx.HTTPError as e:
                error = _transport_error(self.config, e)
                self._logger.debug("Introspection request failed", code=error.code, error=str(e))
                raise error from e

            span.set_attribute("http.status_code", response.status_code)
            result = parse_response(response, self.config.status_policy)
            self._logger.debug(
                "Introspection completed",
                status_code=response.status_code,
                active=result.active,
            )
            return result


class AsyncIntrospectionClient:
    """Asynchronous introspection client."""

    def __init__(
        self,
        config: IntrospectionConfig,
        *,
        telemetry: IntrospectionTelemetry | None = None,
    ) -> None:
        self.config = config
        self.telemetry = telemetry or IntrospectionTelemetry(config.telemetry)
        self._owns_http = config.async_client is None
        self._http = config.async_client or httpx.AsyncClient(
            timeout=config.timeout,
            follow_redirects=False,
        )
        self._logger = self.telemetry.logger

    async def __aenter__(self) -> AsyncIntrospectionClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http:
            await self._http.aclose()

    async def introspect(self, token: str) -> IntrospectionResult:
        """Validate a token against the introspection endpoint."""
        with self.telemetry.request_span(self.config.endpoint) as span:
            try:
                response = await self._http.post(
                    self.config.endpoint,
                    data=build_form(self.config, token),
                    headers=self.config.headers,
                )
            except httpx.HTTPError as e:
                error = _transport_error(self.config, e)
                self._logger.debug("Introspection request failed", code=error.code, error=str(e))
                raise error from e

            span.set_attribute("http.status_code", response.status_code)
            result = parse_response(response, self.config.status_policy)
            self._logger.debug(
                "Introspection completed",
                status_code=response.status_code,
                active=result.active,
            )
            return result
