"""Per-request outcome storage.

The outcome lives in the request's own mapping (WSGI ``environ`` or ASGI
``scope``) under a private namespaced key and is discarded together with
the request.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from typing import Any

from .errors import IntrospectionError, NoMiddlewareError
from .models import IntrospectionResult


# WSGI and ASGI tooling iterates these mappings expecting string keys;
# the stored value is type-checked on read.
_OUTCOME_KEY = "token_introspection.outcome"


@dataclass(frozen=True, slots=True)
class Outcome:
    """Result of introspecting one request: a result or an error."""

    result: IntrospectionResult | None = None
    error: IntrospectionError | None = None

    def __post_init__(self) -> None:
        if (self.result is None) == (self.error is None):
            raise ValueError("Outcome requires exactly one of result or error")

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> IntrospectionResult:
        """Return the result or raise the captured error."""
        if self.error is not None:
            raise self.error
        if self.result is None:
            raise ValueError("Outcome holds neither a result nor an error")
        return self.result

    def as_tuple(self) -> tuple[IntrospectionResult | None, IntrospectionError | None]:
        return self.result, self.error


def attach(context: MutableMapping[Any, Any], outcome: Outcome) -> None:
    """Store the outcome on a request context."""
    context[_OUTCOME_KEY] = outcome


def get_outcome(context: Mapping[Any, Any]) -> Outcome | None:
    """Return the stored outcome, or None if the middleware never ran."""
    value = context.get(_OUTCOME_KEY)
    if isinstance(value, Outcome):
        return value
    return None


def from_context(
    context: Mapping[Any, Any],
) -> tuple[IntrospectionResult | None, IntrospectionError | None]:
    """Look up the introspection outcome of a request.

    Args:
        context: WSGI environ or ASGI scope of the current request.

    Returns:
        ``(result, None)`` on success, ``(None, error)`` otherwise. When the
        middleware never ran the error is ``NoMiddlewareError``.
    """
    outcome = get_outcome(context)
    if outcome is None:
        return None, NoMiddlewareError()
    return outcome.as_tuple()
