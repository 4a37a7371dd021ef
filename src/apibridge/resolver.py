"""Endpoint resolvers: map a subcommand and its arguments to one request.

The core only knows the :class:`EndpointResolver` protocol. Schema-driven
resolvers (one subcommand per API operation) plug in the same way as the
built-in :class:`RawEndpointResolver`, which backs the generic ``call``
subcommand::

    apibridge --url https://api.example.com/v1/ call POST /widgets \\
        --header "X-Request-Id: 42" --query dry_run=true --body @widget.json
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Optional, Protocol

from apibridge.exceptions import BridgeError, ErrorKind

if TYPE_CHECKING:
    from apibridge.client.base import ApiClient, ApiResponse, RequestBuilder


class EndpointResolver(Protocol):
    """Turns a subcommand into a request and executes it through *client*."""

    def resolve(
        self, client: ApiClient, command: str, arguments: Mapping[str, Any]
    ) -> ApiResponse:
        ...


class RawEndpointResolver:
    """Resolver for the ``call`` subcommand: method and path come from the user.

    Expected *arguments*:

    ``method``
        HTTP method, e.g. ``GET``.
    ``path``
        Path relative to the base URL, optionally with a query string.
    ``headers``
        Sequence of ``"Name: value"`` strings.
    ``query``
        Sequence of ``"name=value"`` strings.
    ``body``
        Literal body text, ``@path`` to read a file, or ``-`` for stdin.
    ``content_type``
        Explicit ``Content-Type``. Without it, bodies that parse as JSON
        are sent as ``application/json``.
    """

    def resolve(
        self, client: ApiClient, command: str, arguments: Mapping[str, Any]
    ) -> ApiResponse:
        builder = self.build(client, arguments)
        return client.make_request(builder)

    def build(self, client: ApiClient, arguments: Mapping[str, Any]) -> RequestBuilder:
        """Build (but do not send) the request described by *arguments*."""
        method = str(arguments.get("method") or "GET")
        path = str(arguments.get("path") or "/")
        builder = client.request_builder(method, path)

        for raw in arguments.get("headers") or ():
            name, value = parse_header(raw)
            builder.header(name, value)
        for raw in arguments.get("query") or ():
            name, value = parse_query(raw)
            builder.query(name, value)

        body = arguments.get("body")
        if body is not None:
            data = read_body(body)
            content_type: Optional[str] = arguments.get("content_type")
            if content_type is None and _is_json(data):
                content_type = "application/json"
            builder.content(data, content_type)
        return builder


def parse_header(raw: str) -> tuple[str, str]:
    """Split ``"Name: value"`` into ``("Name", "value")``."""
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        raise BridgeError(ErrorKind.USAGE, f"Invalid header {raw!r}: expected NAME:VALUE")
    return name.strip(), value.strip()


def parse_query(raw: str) -> tuple[str, str]:
    """Split ``"name=value"`` into ``("name", "value")``."""
    name, sep, value = raw.partition("=")
    if not sep or not name:
        raise BridgeError(ErrorKind.USAGE, f"Invalid query parameter {raw!r}: expected NAME=VALUE")
    return name, value


def read_body(spec: str) -> bytes:
    """Resolve a ``--body`` value to bytes.

    ``-`` reads standard input, ``@path`` reads a file, anything else is
    used literally.
    """
    if spec == "-":
        return sys.stdin.buffer.read()
    if spec.startswith("@"):
        path = Path(spec[1:])
        try:
            return path.read_bytes()
        except OSError as exc:
            raise BridgeError(
                ErrorKind.IO, f"Cannot read body file {path}: {exc.strerror or exc}", cause=exc
            ) from exc
    return spec.encode("utf-8")


def _is_json(data: bytes) -> bool:
    try:
        json.loads(data)
    except ValueError:
        return False
    return True
