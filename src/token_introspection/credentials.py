"""Bearer credential extraction."""

from __future__ import annotations

BEARER_PREFIX = "Bearer "


def extract_bearer(authorization: str | None) -> str | None:
    """Return the token from an ``Authorization`` header value.

    The scheme match is case-sensitive and requires exactly one space, so
    ``"bearer abc"`` and ``"Bearer  abc"`` are not stripped the same way:
    the former yields ``None``, the latter a token with a leading space.

    Args:
        authorization: Raw header value, or None when the header is absent.

    Returns:
        The token, or None if the header does not carry a bearer credential.
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    return authorization[len(BEARER_PREFIX):]
