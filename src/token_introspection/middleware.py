"""Introspection middleware for WSGI and ASGI applications.

The middleware only decorates requests: it attaches exactly one
``Outcome`` to every request and always calls the wrapped application.
Rejecting requests is left to downstream handlers, which read the outcome
with ``from_context`` or the framework helpers at the bottom of this module.
"""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any, Callable

from .client import AsyncIntrospectionClient, IntrospectionClient
from .config import IntrospectionConfig
from .context import Outcome, attach, from_context
from .credentials import extract_bearer
from .errors import IntrospectionError, NoBearerError
from .models import IntrospectionResult
from .telemetry import (
    CACHE_DISABLED,
    CACHE_HIT,
    CACHE_MISS,
    CACHE_SKIPPED,
    IntrospectionTelemetry,
)

if TYPE_CHECKING:
    from collections.abc import Iterable


class Introspector:
    """Runs the introspection pipeline for one authorization header."""

    def __init__(
        self,
        config: IntrospectionConfig,
        *,
        client: IntrospectionClient | None = None,
        telemetry: IntrospectionTelemetry | None = None,
    ) -> None:
        self.config = config
        self.telemetry = telemetry or IntrospectionTelemetry(config.telemetry)
        self.client = client or IntrospectionClient(config, telemetry=self.telemetry)

    def authenticate(self, authorization: str | None) -> Outcome:
        """Produce the outcome for a request.

        Args:
            authorization: Value of the Authorization header, if any.

        Returns:
            Outcome carrying the result or the captured error.
        """
        with self.telemetry.authenticate_span() as span:
            outcome, cache_state = self._run(authorization)
            self.telemetry.record_outcome(span, outcome, cache_state)
            return outcome

    def close(self) -> None:
        self.client.close()

    def _run(self, authorization: str | None) -> tuple[Outcome, str]:
        token = extract_bearer(authorization)
        if token is None:
            return Outcome(error=NoBearerError()), CACHE_SKIPPED

        cache = self.config.cache
        cache_state = CACHE_DISABLED
        if cache is not None:
            cached = self._cache_get(cache, token)
            if cached is not None:
                return Outcome(result=cached), CACHE_HIT
            cache_state = CACHE_MISS

        try:
            result = self.client.introspect(token)
        except IntrospectionError as e:
            return Outcome(error=e), cache_state

        if cache is not None:
            self._cache_store(cache, token, result)

        return Outcome(result=result), cache_state

    def _cache_get(self, cache: Any, token: str) -> IntrospectionResult | None:
        try:
            return cache.get(token)
        except Exception as e:
            self.telemetry.cache_failure("lookup", e)
            return None

    def _cache_store(self, cache: Any, token: str, result: IntrospectionResult) -> None:
        try:
            cache.store(token, result, self.config.cache_ttl)
        except Exception as e:
            self.telemetry.cache_failure("store", e)


class AsyncIntrospector:
    """Async twin of ``Introspector``; accepts sync or async caches."""

    def __init__(
        self,
        config: IntrospectionConfig,
        *,
        client: AsyncIntrospectionClient | None = None,
        telemetry: IntrospectionTelemetry | None = None,
    ) -> None:
        self.config = config
        self.telemetry = telemetry or IntrospectionTelemetry(config.telemetry)
        self.client = client or AsyncIntrospectionClient(config, telemetry=self.telemetry)

    async def authenticate(self, authorization: str | None) -> Outcome:
        """Produce the outcome for a request."""
        with self.telemetry.authenticate_span() as span:
            outcome, cache_state = await self._run(authorization)
            self.telemetry.record_outcome(span, outcome, cache_state)
            return outcome

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _run(self, authorization: str | None) -> tuple[Outcome, str]:
        token = extract_bearer(authorization)
        if token is None:
            return Outcome(error=NoBearerError()), CACHE_SKIPPED

        cache = self.config.cache
        cache_state = CACHE_DISABLED
        if cache is not None:
            cached = await self._cache_get(cache, token)
            if cached is not None:
                return Outcome(result=cached), CACHE_HIT
            cache_state = CACHE_MISS

        try:
            result = await self.client.introspect(token)
        except IntrospectionError as e:
            return Outcome(error=e), cache_state

        if cache is not None:
            await self._cache_store(cache, token, result)

        return Outcome(result=result), cache_state

    async def _cache_get(self, cache: Any, token: str) -> IntrospectionResult | None:
        try:
            value = cache.get(token)
            if inspect.isawaitable(value):
                value = await value
            return value
        except Exception as e:
            self.telemetry.cache_failure("lookup", e)
            return None

    async def _cache_store(self, cache: Any, token: str, result: IntrospectionResult) -> None:
        try:
            value = cache.store(token, result, self.config.cache_ttl)
            if inspect.isawaitable(value):
                await value
        except Exception as e:
            self.telemetry.cache_failure("store", e)


class IntrospectionWSGIMiddleware:
    """WSGI middleware storing the outcome in ``environ``."""

    def __init__(
        self,
        app: Callable[..., Iterable[bytes]],
        config: IntrospectionConfig,
        *,
        introspector: Introspector | None = None,
    ) -> None:
        self.app = app
        self.introspector = introspector or Introspector(config)

    def __call__(
        self,
        environ: dict[str, Any],
        start_response: Callable[..., Any],
    ) -> Iterable[bytes]:
        outcome = self.introspector.authenticate(environ.get("HTTP_AUTHORIZATION"))
        attach(environ, outcome)
        return self.app(environ, start_response)


class IntrospectionASGIMiddleware:
    """ASGI middleware storing the outcome in ``scope``."""

    def __init__(
        self,
        app: Callable[..., Any],
        config: IntrospectionConfig,
        *,
        introspector: AsyncIntrospector | None = None,
    ) -> None:
        self.app = app
        self.introspector = introspector or AsyncIntrospector(config)

    async def __call__(
        self,
        scope: dict[str, Any],
        receive: Callable[..., Any],
        send: Callable[..., Any],
    ) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        outcome = await self.introspector.authenticate(_authorization_header(scope))
        attach(scope, outcome)
        await self.app(scope, receive, send)


def introspection(
    endpoint: str,
    **options: Any,
) -> Callable[[Callable[..., Iterable[bytes]]], IntrospectionWSGIMiddleware]:
    """Build a WSGI decorator for an introspection endpoint.

    Args:
        endpoint: Introspection endpoint URL, used verbatim.
        **options: Any other ``IntrospectionConfig`` field.

    Returns:
        Function wrapping a WSGI app in ``IntrospectionWSGIMiddleware``.
    """
    introspector = Introspector(IntrospectionConfig(endpoint=endpoint, **options))

    def wrap(app: Callable[..., Iterable[bytes]]) -> IntrospectionWSGIMiddleware:
        return IntrospectionWSGIMiddleware(app, introspector.config, introspector=introspector)

    return wrap


def asgi_introspection(
    endpoint: str,
    **options: Any,
) -> Callable[[Callable[..., Any]], IntrospectionASGIMiddleware]:
    """Build an ASGI decorator for an introspection endpoint."""
    introspector = AsyncIntrospector(IntrospectionConfig(endpoint=endpoint, **options))

    def wrap(app: Callable[..., Any]) -> IntrospectionASGIMiddleware:
        return IntrospectionASGIMiddleware(app, introspector.config, introspector=introspector)

    return wrap


def _authorization_header(scope: dict[str, Any]) -> str | None:
    for name, value in scope.get("headers", ()):
        if name.lower() == b"authorization":
            return value.decode("latin-1")
    return None


def create_fastapi_dependency(*, require_active: bool = True) -> Any:
    """Create FastAPI dependency returning the request's introspection result.

    The app must be wrapped in ``IntrospectionASGIMiddleware``.

    Args:
        require_active: Reject tokens the endpoint reports as inactive.

    Returns:
        FastAPI dependency function.

    Raises:
        ImportError: If FastAPI not installed.
    """
    try:
        from fastapi import HTTPException, Request
    except ImportError as e:
        msg = "FastAPI not installed. Install with: pip install fastapi"
        raise ImportError(msg) from e

    async def get_introspection(request: Request) -> IntrospectionResult:
        """Dependency to get the introspection result."""
        result, error = from_context(request.scope)

        if error is not None:
            raise HTTPException(
                status_code=401,
                detail=str(error),
                headers={"WWW-Authenticate": "Bearer"},
            )

        if result is None:
            raise HTTPException(
                status_code=401,
                detail="Token introspection produced no result",
                headers={"WWW-Authenticate": "Bearer"},
            )

        if require_active and not result.active:
            raise HTTPException(
                status_code=401,
                detail="Token is not active",
                headers={"WWW-Authenticate": 'Bearer error="invalid_token"'},
            )

        return result

    # FastAPI resolves annotations against module globals, where Request is absent
    get_introspection.__annotations__["request"] = Request
    return get_introspection


def create_flask_middleware(app: Any, config: IntrospectionConfig) -> Any:
    """Install introspection on a Flask application.

    Args:
        app: Flask application.
        config: Introspection configuration.

    Returns:
        The same application with its ``wsgi_app`` wrapped.
    """
    app.wsgi_app = IntrospectionWSGIMiddleware(app.wsgi_app, config)
    return app


def flask_outcome() -> tuple[IntrospectionResult | None, IntrospectionError | None]:
    """Look up the outcome of the current Flask request.

    Raises:
        ImportError: If Flask not installed.
    """
    try:
        from flask import request
    except ImportError as e:
        msg = "Flask not installed. Install with: pip install flask"
        raise ImportError(msg) from e

    return from_context(request.environ)
