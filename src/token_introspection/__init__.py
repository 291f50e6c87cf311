"""OAuth2 token introspection middleware."""

from .cache import AsyncIntrospectionCache, IntrospectionCache, MemoryCache
from .client import AsyncIntrospectionClient, IntrospectionClient
from .config import IntrospectionConfig, StatusPolicy, TelemetryConfig
from .context import Outcome, from_context
from .credentials import extract_bearer
from .errors import (
    DecodeError,
    IntrospectionError,
    InvalidConfigError,
    NoBearerError,
    NoMiddlewareError,
    StatusError,
    TimeoutError,
    TransportError,
)
from .middleware import (
    AsyncIntrospector,
    IntrospectionASGIMiddleware,
    IntrospectionWSGIMiddleware,
    Introspector,
    asgi_introspection,
    introspection,
)
from .models import IntrospectionResult
from .telemetry import IntrospectionTelemetry

__all__ = [
    "AsyncIntrospectionCache",
    "IntrospectionCache",
    "MemoryCache",
    "AsyncIntrospectionClient",
    "IntrospectionClient",
    "IntrospectionConfig",
    "StatusPolicy",
    "TelemetryConfig",
    "Outcome",
    "from_context",
    "extract_bearer",
    "DecodeError",
    "IntrospectionError",
    "InvalidConfigError",
    "NoBearerError",
    "NoMiddlewareError",
    "StatusError",
    "TimeoutError",
    "TransportError",
    "AsyncIntrospector",
    "IntrospectionASGIMiddleware",
    "IntrospectionWSGIMiddleware",
    "Introspector",
    "asgi_introspection",
    "introspection",
    "IntrospectionResult",
    "IntrospectionTelemetry",
]

__version__ = "0.1.0"
