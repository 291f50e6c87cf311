"""Unit tests for the introspection clients."""

from __future__ import annotations

import asyncio
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest
from conftest import ENDPOINT, StubEndpoint, make_config

from token_introspection.client import (
    AsyncIntrospectionClient,
    IntrospectionClient,
    build_form,
    parse_response,
)
from token_introspection.config import IntrospectionConfig, StatusPolicy
from token_introspection.errors import (
    DecodeError,
    StatusError,
    TimeoutError,
    TransportError,
)


def _form(request: httpx.Request) -> dict[str, list[str]]:
    return parse_qs(request.content.decode())


class TestBuildForm:
    """Tests for request body construction."""

    def test_token_overwrites_template(self) -> None:
        config = IntrospectionConfig(endpoint=ENDPOINT)

        assert build_form(config, "abc123") == {
            "token": "abc123",
            "token_type_hint": "access_token",
        }

    def test_other_fields_pass_through(self) -> None:
        config = IntrospectionConfig(
            endpoint=ENDPOINT,
            body={"token": "placeholder", "token_type_hint": "refresh_token", "client_id": "api"},
        )

        form = build_form(config, "abc123")

        assert form["token"] == "abc123"
        assert form["token_type_hint"] == "refresh_token"
        assert form["client_id"] == "api"
        assert config.body["token"] == "placeholder"


class TestParseResponse:
    """Tests for response decoding and the status policy."""

    def test_success(self) -> None:
        response = httpx.Response(200, json={"active": True, "sub": "u"})

        result = parse_response(response)

        assert result.active is True
        assert result.sub == "u"

    def test_success_with_invalid_json(self) -> None:
        with pytest.raises(DecodeError) as exc_info:
            parse_response(httpx.Response(200, content=b"<html>"))

        assert exc_info.value.status_code == 200

    def test_success_with_wrong_shape(self) -> None:
        with pytest.raises(DecodeError):
            parse_response(httpx.Response(200, json=["active"]))

    def test_lenient_accepts_introspection_body_on_error_status(self) -> None:
        response = httpx.Response(401, json={"active": False})

        assert parse_response(response, StatusPolicy.LENIENT).active is False

    def test_lenient_rejects_other_body_on_error_status(self) -> None:
        response = httpx.Response(500, json={"error": "server_error"})

        with pytest.raises(StatusError) as exc_info:
            parse_response(response, StatusPolicy.LENIENT)

        assert exc_info.value.status_code == 500

    def test_lenient_rejects_non_json_on_error_status(self) -> None:
        with pytest.raises(StatusError):
            parse_response(httpx.Response(502, content=b"Bad Gateway"))

    @pytest.mark.parametrize("payload", [{"active": "yes"}, {"active": 1}])
    def test_success_with_non_boolean_active(self, payload: dict[str, Any]) -> None:
        with pytest.raises(DecodeError):
            parse_response(httpx.Response(200, json=payload))

    def test_lenient_rejects_non_boolean_active_on_error_status(self) -> None:
        response = httpx.Response(401, json={"active": 1})

        with pytest.raises(StatusError) as exc_info:
            parse_response(response, StatusPolicy.LENIENT)

        assert exc_info.value.status_code == 401

    def test_strict_rejects_any_error_status(self) -> None:
        response = httpx.Response(401, json={"active": False})

        with pytest.raises(StatusError):
            parse_response(response, StatusPolicy.STRICT)


class TestIntrospectionClient:
    """Tests for the synchronous client."""

    def test_posts_form_to_endpoint(self, stub: StubEndpoint) -> None:
        client = IntrospectionClient(make_config(stub))

        result = client.introspect("abc123")

        assert result.active is True
        assert stub.calls == 1
        request = stub.requests[0]
        assert request.method == "POST"
        assert str(request.url) == ENDPOINT
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert request.headers["Accept"] == "application/json"
        assert _form(request) == {"token": ["abc123"], "token_type_hint": ["access_token"]}

    def test_custom_headers(self, stub: StubEndpoint) -> None:
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
            "Authorization": "Basic YXBpOnNlY3JldA==",
        }
        client = IntrospectionClient(make_config(stub, headers=headers))

        client.introspect("abc123")

        assert stub.requests[0].headers["Authorization"] == "Basic YXBpOnNlY3JldA=="

    @pytest.mark.parametrize("exc", [httpx.ReadTimeout, httpx.ConnectTimeout, httpx.PoolTimeout])
    def test_timeout(self, exc: type[httpx.HTTPError]) -> None:
        client = IntrospectionClient(make_config(StubEndpoint(exc=exc)))

        with pytest.raises(TimeoutError) as exc_info:
            client.introspect("abc123")

        assert exc_info.value.timeout_seconds == 2.0
        assert isinstance(exc_info.value.__cause__, exc)

    def test_connection_error(self) -> None:
        client = IntrospectionClient(make_config(StubEndpoint(exc=httpx.ConnectError)))

        with pytest.raises(TransportError) as exc_info:
            client.introspect("abc123")

        assert not isinstance(exc_info.value, TimeoutError)

    def test_decode_error(self) -> None:
        client = IntrospectionClient(make_config(StubEndpoint(content=b"not json")))

        with pytest.raises(DecodeError):
            client.introspect("abc123")

    def test_no_retry(self) -> None:
        stub = StubEndpoint(status_code=503, content=b"")
        client = IntrospectionClient(make_config(stub))

        with pytest.raises(StatusError):
            client.introspect("abc123")

        assert stub.calls == 1

    def test_default_client_uses_configured_timeout(self) -> None:
        config = IntrospectionConfig(endpoint=ENDPOINT, timeout=1.5)

        with IntrospectionClient(config) as client:
            assert client._http.timeout.read == 1.5

    def test_close_leaves_supplied_client_open(self, stub: StubEndpoint) -> None:
        config = make_config(stub)

        with IntrospectionClient(config):
            pass

        assert config.client is not None
        assert not config.client.is_closed


class TestAsyncIntrospectionClient:
    """Tests for the asynchronous client."""

    def test_posts_form_to_endpoint(self, stub: StubEndpoint) -> None:
        async def run() -> Any:
            async with AsyncIntrospectionClient(make_config(stub)) as client:
                return await client.introspect("abc123")

        result = asyncio.run(run())

        assert result.active is True
        assert _form(stub.requests[0])["token"] == ["abc123"]

    def test_timeout(self) -> None:
        client = AsyncIntrospectionClient(make_config(StubEndpoint(exc=httpx.ReadTimeout)))

        with pytest.raises(TimeoutError):
            asyncio.run(client.introspect("abc123"))

    def test_decode_error(self) -> None:
        client = AsyncIntrospectionClient(make_config(StubEndpoint(payload={"sub": "u"})))

        with pytest.raises(DecodeError):
            asyncio.run(client.introspect("abc123"))
