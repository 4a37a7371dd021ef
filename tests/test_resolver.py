"""Tests for apibridge.resolver -- the raw ``call`` resolver and its parsers."""

from __future__ import annotations

import io
import json

import httpx
import pytest

from apibridge.client import DryRunClient
from apibridge.exceptions import BridgeError, ErrorKind
from apibridge.resolver import RawEndpointResolver, parse_header, parse_query, read_body


@pytest.fixture
def client() -> DryRunClient:
    return DryRunClient(httpx.URL("https://api.example.com/v1/"), echo=False)


class TestParseHeader:
    def test_simple(self):
        assert parse_header("X-Request-Id: 42") == ("X-Request-Id", "42")

    def test_value_may_contain_colons(self):
        assert parse_header("Authorization: Basic a:b") == ("Authorization", "Basic a:b")

    def test_empty_value(self):
        assert parse_header("X-Empty:") == ("X-Empty", "")

    @pytest.mark.parametrize("raw", ["no-colon", ": value", "   : value"])
    def test_invalid(self, raw):
        with pytest.raises(BridgeError) as exc_info:
            parse_header(raw)
        assert exc_info.value.kind is ErrorKind.USAGE


class TestParseQuery:
    def test_simple(self):
        assert parse_query("limit=10") == ("limit", "10")

    def test_value_may_contain_equals(self):
        assert parse_query("filter=a=b") == ("filter", "a=b")

    def test_empty_value(self):
        assert parse_query("flag=") == ("flag", "")

    @pytest.mark.parametrize("raw", ["novalue", "=x"])
    def test_invalid(self, raw):
        with pytest.raises(BridgeError) as exc_info:
            parse_query(raw)
        assert exc_info.value.kind is ErrorKind.USAGE


class TestReadBody:
    def test_literal(self):
        assert read_body('{"a": 1}') == b'{"a": 1}'

    def test_file(self, tmp_path):
        path = tmp_path / "body.bin"
        path.write_bytes(b"\x00\x01")
        assert read_body(f"@{path}") == b"\x00\x01"

    def test_missing_file(self, tmp_path):
        with pytest.raises(BridgeError) as exc_info:
            read_body(f"@{tmp_path / 'absent.json'}")
        assert exc_info.value.kind is ErrorKind.IO

    def test_stdin(self, monkeypatch):
        fake = io.TextIOWrapper(io.BytesIO(b"from stdin"))
        monkeypatch.setattr("sys.stdin", fake)
        assert read_body("-") == b"from stdin"


class TestRawEndpointResolver:
    def test_defaults_to_get_root(self, client):
        request = RawEndpointResolver().build(client, {}).build()
        assert request.method == "GET"
        assert str(request.url) == "https://api.example.com/v1/"

    def test_full_request(self, client):
        response = RawEndpointResolver().resolve(
            client,
            "call",
            {
                "method": "patch",
                "path": "/widgets/7",
                "headers": ["X-Request-Id: 42"],
                "query": ["dry_run=true"],
                "body": '{"name": "sprocket"}',
            },
        )
        response.close()

        request = client.last_request
        assert request.method == "PATCH"
        assert request.url.path == "/v1/widgets/7"
        assert request.url.params["dry_run"] == "true"
        assert request.headers["X-Request-Id"] == "42"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"name": "sprocket"}

    def test_non_json_body_has_no_content_type(self, client):
        request = RawEndpointResolver().build(client, {"method": "POST", "body": "plain"}).build()
        assert request.content == b"plain"
        assert "Content-Type" not in request.headers

    def test_explicit_content_type(self, client):
        request = (
            RawEndpointResolver()
            .build(client, {"method": "POST", "body": "{}", "content_type": "application/vnd.x+json"})
            .build()
        )
        assert request.headers["Content-Type"] == "application/vnd.x+json"

    def test_bad_header_is_usage_error(self, client):
        with pytest.raises(BridgeError) as exc_info:
            RawEndpointResolver().resolve(client, "call", {"headers": ["broken"]})
        assert exc_info.value.kind is ErrorKind.USAGE
        assert client.sent == []
