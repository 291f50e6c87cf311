"""Unit tests for bearer extraction."""

import pytest

from token_introspection.credentials import BEARER_PREFIX, extract_bearer


class TestExtractBearer:
    """Tests for extract_bearer."""

    def test_bearer_token(self) -> None:
        assert extract_bearer("Bearer abc123") == "abc123"

    def test_token_keeps_remaining_characters(self) -> None:
        assert extract_bearer("Bearer a b=c") == "a b=c"

    def test_empty_token_after_prefix(self) -> None:
        assert extract_bearer(BEARER_PREFIX) == ""

    @pytest.mark.parametrize(
        "header",
        [
            None,
            "",
            "Bearer",
            "bearer abc123",
            "BEARER abc123",
            "Token abc123",
            "Basic dXNlcjpwYXNz",
            " Bearer abc123",
        ],
    )
    def test_no_bearer(self, header: str | None) -> None:
        assert extract_bearer(header) is None
