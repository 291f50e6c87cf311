"""Pydantic models for token introspection.

Mirrors the RFC 7662 introspection response. Unknown members are kept so
authorization servers can return custom claims.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, StrictBool


class IntrospectionResult(BaseModel):
    """Parsed introspection response."""

    model_config = ConfigDict(frozen=True, extra="allow")

    active: StrictBool = Field(..., description="Whether the token is currently active")
    scope: str | None = None
    client_id: str | None = None
    username: str | None = None
    token_type: str | None = None
    exp: int | None = Field(default=None, description="Expiration time (Unix timestamp)")
    iat: int | None = Field(default=None, description="Issued at time (Unix timestamp)")
    nbf: int | None = Field(default=None, description="Not before time")
    sub: str | None = Field(default=None, description="Subject identifier")
    aud: str | list[str] | None = Field(default=None, description="Audience")
    iss: str | None = Field(default=None, description="Issuer")
    jti: str | None = Field(default=None, description="Token identifier")

    @property
    def scopes(self) -> list[str]:
        """Get scopes as list."""
        if self.scope is None:
            return []
        return self.scope.split()

    def has_scope(self, scope: str) -> bool:
        """Check if the token was granted a scope."""
        return scope in self.scopes

    @property
    def audiences(self) -> list[str]:
        """Get audience as list."""
        if self.aud is None:
            return []
        if isinstance(self.aud, str):
            return [self.aud]
        return list(self.aud)

    @property
    def expires_at(self) -> datetime | None:
        """Get expiration as datetime."""
        if self.exp is None:
            return None
        return datetime.fromtimestamp(self.exp, tz=UTC)

    @property
    def is_expired(self) -> bool:
        """Check if the exp claim lies in the past."""
        if self.exp is None:
            return False
        return datetime.now(UTC).timestamp() >= self.exp
