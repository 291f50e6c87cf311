"""OpenTelemetry and structlog integration for token introspection.

Each introspector owns an ``IntrospectionTelemetry`` built from its
``TelemetryConfig``, so two middleware instances in one process can log and
trace independently without touching global structlog configuration.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from .config import TelemetryConfig
from .errors import IntrospectionError, NoBearerError

if TYPE_CHECKING:
    from collections.abc import Generator

    from .context import Outcome

INSTRUMENTATION_VERSION = "0.1.0"

LOG_LEVELS: dict[str, int] = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
    "CRITICAL": 50,
}

# Values of the introspection.cache span attribute
CACHE_HIT = "hit"
CACHE_MISS = "miss"
CACHE_DISABLED = "disabled"
CACHE_SKIPPED = "skipped"


def outcome_kind(outcome: Outcome) -> str:
    """Classify an outcome as ``active``, ``inactive`` or ``error``."""
    if outcome.error is not None:
        return "error"
    if outcome.result is not None and outcome.result.active:
        return "active"
    return "inactive"


class IntrospectionTelemetry:
    """Logger and tracer for one introspector."""

    def __init__(
        self,
        config: TelemetryConfig | None = None,
        *,
        tracer: trace.Tracer | None = None,
    ) -> None:
        self.config = config or TelemetryConfig()
        if tracer is not None:
            self.tracer = tracer
        elif self.config.enabled:
            self.tracer = trace.get_tracer(self.config.service_name, INSTRUMENTATION_VERSION)
        else:
            self.tracer = trace.NoOpTracer()

        # Disabled telemetry still logs failures; only tracing is switched off
        level = LOG_LEVELS[self.config.log_level.upper()]
        self.logger = structlog.wrap_logger(
            None,
            wrapper_class=structlog.make_filtering_bound_logger(level),
        ).bind(service=self.config.service_name)

    @contextmanager
    def authenticate_span(self) -> Generator[trace.Span, None, None]:
        """Span covering one pass of the introspection pipeline."""
        with self.tracer.start_as_current_span("introspection.authenticate") as span:
            yield span

    def record_outcome(self, span: trace.Span, outcome: Outcome, cache_state: str) -> None:
        """Attach the outcome to the span and log it.

        Args:
            span: Span returned by ``authenticate_span``.
            outcome: Outcome that will be attached to the request.
            cache_state: One of ``hit``, ``miss``, ``disabled`` or ``skipped``.
        """
        kind = outcome_kind(outcome)
        span.set_attribute("introspection.cache", cache_state)
        span.set_attribute("introspection.outcome", kind)

        error = outcome.error
        if error is None:
            self.logger.debug("Introspection outcome", outcome=kind, cache=cache_state)
            return

        span.set_attribute("introspection.error_code", error.code)
        if isinstance(error, NoBearerError):
            self.logger.debug("Request carried no bearer token", code=error.code)
            return

        span.set_status(Status(StatusCode.ERROR, error.message))
        self.logger.warning(
            "Introspection failed",
            code=error.code,
            status_code=error.status_code,
            error=error.message,
            cache=cache_state,
        )

    @contextmanager
    def request_span(self, endpoint: str) -> Generator[trace.Span, None, None]:
        """Span covering the POST to the introspection endpoint."""
        with self.tracer.start_as_current_span("introspection.request") as span:
            span.set_attribute("http.method", "POST")
            span.set_attribute("url.full", endpoint)
            try:
                yield span
            except IntrospectionError as e:
                span.set_attribute("introspection.error_code", e.code)
                span.set_status(Status(StatusCode.ERROR, e.message))
                raise

    def cache_failure(self, action: str, error: Exception) -> None:
        """Log a cache lookup or store failure."""
        self.logger.warning(f"Introspection cache {action} failed", error=str(error))

