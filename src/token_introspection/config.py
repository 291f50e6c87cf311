"""Configuration for token introspection.

Uses Pydantic v2 frozen models so a configuration built at startup can be
shared by every request without synchronization.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Self

import httpx
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from .errors import InvalidConfigError

DEFAULT_TIMEOUT = 2.0

DEFAULT_BODY: dict[str, str] = {"token": "", "token_type_hint": "access_token"}

DEFAULT_HEADERS: dict[str, str] = {
    "Content-Type": "application/x-www-form-urlencoded",
    "Accept": "application/json",
}


class StatusPolicy(StrEnum):
    """How non-2xx introspection responses are handled."""

    # Decode the body anyway; fail only if it is not an introspection document
    LENIENT = "lenient"
    # Any non-2xx status is an error
    STRICT = "strict"


class TelemetryConfig(BaseModel):
    """Logging and tracing configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    service_name: str = "token-introspection"
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize the level name and reject unknown levels."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"Unsupported log level: {v}"
            raise ValueError(msg)
        return level


class IntrospectionConfig(BaseModel):
    """Middleware configuration, fixed at construction time."""

    model_config = ConfigDict(
        frozen=True,
        validate_default=True,
        arbitrary_types_allowed=True,
    )

    # Required
    endpoint: str = Field(..., min_length=1)

    # HTTP settings
    timeout: Annotated[float, Field(gt=0, le=300)] = DEFAULT_TIMEOUT
    body: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_BODY))
    headers: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_HEADERS))
    client: httpx.Client | None = None
    async_client: httpx.AsyncClient | None = None
    status_policy: StatusPolicy = StatusPolicy.LENIENT

    # Caching
    cache: Any = None
    cache_ttl: Annotated[float, Field(gt=0)] = 300.0

    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)

    @field_validator("cache")
    @classmethod
    def validate_cache(cls, v: Any) -> Any:
        """Validate the cache exposes get and store."""
        if v is None:
            return v
        for method in ("get", "store"):
            if not callable(getattr(v, method, None)):
                msg = f"cache must implement {method}(), got {type(v).__name__}"
                raise ValueError(msg)
        return v

    @property
    def caching_enabled(self) -> bool:
        """Check if introspection results are cached."""
        return self.cache is not None

    def with_overrides(self, **kwargs: Any) -> Self:
        """Create new config with overridden values."""
        data = {name: getattr(self, name) for name in type(self).model_fields}
        data.update(kwargs)
        return self.__class__(**data)

    @classmethod
    def from_env(cls, prefix: str = "TOKEN_INTROSPECTION_") -> Self:
        """Create config from environment variables."""
        import os

        def get_env(key: str, default: Any = None) -> Any:
            return os.environ.get(f"{prefix}{key}", default)

        endpoint = get_env("ENDPOINT")
        if not endpoint:
            msg = f"{prefix}ENDPOINT environment variable is required"
            raise InvalidConfigError(msg, field="endpoint")

        body = dict(DEFAULT_BODY)
        hint = get_env("TOKEN_TYPE_HINT")
        if hint:
            body["token_type_hint"] = hint

        client_id = get_env("CLIENT_ID")
        client_secret = get_env("CLIENT_SECRET")
        if client_secret and not client_id:
            msg = f"{prefix}CLIENT_SECRET requires {prefix}CLIENT_ID"
            raise InvalidConfigError(msg, field="client_id")
        if client_id:
            body["client_id"] = client_id
        if client_secret:
            body["client_secret"] = client_secret

        try:
            timeout = float(get_env("TIMEOUT", str(DEFAULT_TIMEOUT)))
            cache_ttl = float(get_env("CACHE_TTL", "300"))
        except ValueError as e:
            raise InvalidConfigError(f"Invalid numeric setting: {e}") from e

        policy = get_env("STATUS_POLICY", StatusPolicy.LENIENT.value)
        if policy not in {p.value for p in StatusPolicy}:
            msg = f"Unsupported status policy: {policy}"
            raise InvalidConfigError(msg, field="status_policy")

        return cls(
            endpoint=endpoint,
            timeout=timeout,
            body=body,
            cache_ttl=cache_ttl,
            status_policy=StatusPolicy(policy),
        )
