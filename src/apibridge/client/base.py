"""Transport-neutral request/response contract.

Endpoint resolvers are written against :class:`ApiClient` and never see the
concrete transport. Any object with ``request_builder`` and
``make_request`` can stand in for the httpx-backed
:class:`~apibridge.client.http.HttpApiClient`, including test doubles that
record requests without touching the network.

Example::

    builder = client.request_builder("GET", "/widgets").query("limit", "10")
    with client.make_request(builder) as response:
        for chunk in response.body:
            ...
"""

from __future__ import annotations

import json as json_mod
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Mapping, Optional, Protocol, Union, runtime_checkable

import httpx

from apibridge.exceptions import BridgeError, ErrorKind

# RFC 9110 token characters, used for methods and header names.
_TOKEN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
_BAD_HEADER_VALUE = re.compile(r"[\r\n\x00]")

_UNSET = object()


def join_url_path(base_path: str, relative_path: str) -> str:
    """Join *relative_path* onto *base_path* with exactly one slash between them.

    >>> join_url_path("/v1/", "/widgets")
    '/v1/widgets'
    >>> join_url_path("", "widgets")
    '/widgets'
    """
    return base_path.rstrip("/") + "/" + relative_path.lstrip("/")


class RequestBuilder:
    """Mutable description of a request, finalized by :meth:`build`.

    Setter methods return the builder so calls can be chained. Validation is
    deferred to :meth:`build` so that resolvers never need error handling
    while assembling a request.
    """

    def __init__(self, method: str, url: httpx.URL, url_error: Optional[str] = None) -> None:
        self.method = method.upper()
        self.url = url
        self.url_error = url_error
        self.headers: list[tuple[str, str]] = []
        self.params: list[tuple[str, str]] = []
        self._json: Any = _UNSET
        self._content: Optional[bytes] = None

    def header(self, name: str, value: str) -> RequestBuilder:
        self.headers.append((name, value))
        return self

    def query(self, name: str, value: str) -> RequestBuilder:
        self.params.append((name, value))
        return self

    def json(self, value: Any) -> RequestBuilder:
        """Send *value* as a JSON body."""
        self._json = value
        return self

    def content(
        self, data: Union[bytes, str], content_type: Optional[str] = None
    ) -> RequestBuilder:
        """Send *data* verbatim as the body."""
        self._content = data.encode("utf-8") if isinstance(data, str) else data
        if content_type:
            self.header("Content-Type", content_type)
        return self

    @property
    def has_body(self) -> bool:
        return self._json is not _UNSET or self._content is not None

    def build(self) -> httpx.Request:
        """Finalize into an immutable :class:`httpx.Request`.

        Raises:
            BridgeError: ``REQUEST_BUILD`` for an invalid path, method or
                header, a body set both as JSON and as raw content, or a
                JSON body that cannot be serialised.
        """
        if self.url_error:
            raise BridgeError(ErrorKind.REQUEST_BUILD, self.url_error)
        if not _TOKEN.match(self.method):
            raise BridgeError(ErrorKind.REQUEST_BUILD, f"Invalid HTTP method: {self.method!r}")
        for name, value in self.headers:
            if not _TOKEN.match(name):
                raise BridgeError(ErrorKind.REQUEST_BUILD, f"Invalid header name: {name!r}")
            if _BAD_HEADER_VALUE.search(value):
                raise BridgeError(
                    ErrorKind.REQUEST_BUILD, f"Invalid value for header {name!r}"
                )
        if self._json is not _UNSET and self._content is not None:
            raise BridgeError(
                ErrorKind.REQUEST_BUILD, "Request body was set both as JSON and as raw content"
            )

        headers = list(self.headers)
        kwargs: dict[str, Any] = {}
        if self._json is not _UNSET:
            try:
                kwargs["content"] = json_mod.dumps(self._json).encode("utf-8")
            except (TypeError, ValueError) as exc:
                raise BridgeError(
                    ErrorKind.REQUEST_BUILD, f"Request body is not JSON-serialisable: {exc}", cause=exc
                ) from exc
            if not any(name.lower() == "content-type" for name, _ in headers):
                headers.append(("Content-Type", "application/json"))
        elif self._content is not None:
            kwargs["content"] = self._content

        url = self.url
        if self.params:
            url = url.copy_merge_params(self.params)

        try:
            return httpx.Request(self.method, url, headers=headers, **kwargs)
        except (httpx.InvalidURL, TypeError, ValueError) as exc:
            raise BridgeError(
                ErrorKind.REQUEST_BUILD, f"Cannot build request: {exc}", cause=exc
            ) from exc

    def __repr__(self) -> str:
        return f"<RequestBuilder {self.method} {self.url}>"


class ResponseBody:
    """Forward-only, single-use sequence of body chunks.

    Iterating a second time raises ``READ`` rather than yielding nothing,
    because the bytes have already left the network buffer.

    Args:
        chunks: Iterator producing the body bytes.
        on_close: Called once when the body is exhausted or closed, to
            release the underlying connection.
    """

    def __init__(
        self,
        chunks: Iterator[bytes],
        on_close: Optional[Callable[[], None]] = None,
    ) -> None:
        self._chunks = chunks
        self._on_close = on_close
        self._consumed = False
        self._closed = False

    @property
    def consumed(self) -> bool:
        return self._consumed

    def __iter__(self) -> Iterator[bytes]:
        if self._consumed:
            raise BridgeError(ErrorKind.READ, "Response body has already been consumed")
        self._consumed = True
        return self._drain()

    def _drain(self) -> Iterator[bytes]:
        try:
            for chunk in self._chunks:
                if chunk:
                    yield chunk
        finally:
            self.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._consumed = True
        close = getattr(self._chunks, "close", None)
        if close is not None:
            close()
        if self._on_close is not None:
            self._on_close()


@dataclass
class ApiResponse:
    """A response whose headers have arrived and whose body is still unread."""

    status_code: int
    body: ResponseBody
    reason: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    url: str = ""

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code <= 299

    @classmethod
    def from_bytes(
        cls,
        status_code: int,
        content: bytes = b"",
        headers: Optional[Mapping[str, str]] = None,
        reason: str = "",
        url: str = "",
    ) -> ApiResponse:
        """Build a response from an in-memory body (for doubles and dry runs)."""
        return cls(
            status_code=status_code,
            body=ResponseBody(iter([content])),
            reason=reason,
            headers=dict(headers or {}),
            url=url,
        )

    def close(self) -> None:
        self.body.close()

    def __enter__(self) -> ApiResponse:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


@runtime_checkable
class ApiClient(Protocol):
    """Capability contract for building and executing requests."""

    def request_builder(self, method: str, relative_path: str) -> RequestBuilder:
        """Start a request for *relative_path* under the client's base URL. No I/O."""
        ...

    def make_request(self, builder: RequestBuilder) -> ApiResponse:
        """Send the request and return once the response headers have arrived.

        Any status code is returned as a response; only transport failures
        raise.
        """
        ...


def builder_for(base_url: httpx.URL, method: str, relative_path: str) -> RequestBuilder:
    """Create a :class:`RequestBuilder` for *relative_path* under *base_url*.

    The base URL path is used as a prefix (see :func:`join_url_path`). A
    query string on *relative_path* is appended to any query on the base URL,
    and a ``#fragment`` is dropped since it is never sent to the server.

    Never raises: a path httpx rejects is reported by
    :meth:`RequestBuilder.build` as ``REQUEST_BUILD``.
    """
    target = relative_path.split("#", 1)[0]
    path, _, query = target.partition("?")
    try:
        url = base_url.copy_with(path=join_url_path(base_url.path, path))
        if query:
            url = url.copy_merge_params(httpx.QueryParams(query))
    except httpx.InvalidURL as exc:
        return RequestBuilder(
            method, base_url, url_error=f"Invalid request path {relative_path!r}: {exc}"
        )
    return RequestBuilder(method, url)
