"""httpx-backed implementation of :class:`~apibridge.client.base.ApiClient`.

:class:`HttpApiClient` is the configured client produced by
:func:`~apibridge.client.factory.build_client`. It sends each request with
``stream=True`` so that only the status line and headers are read before
:meth:`HttpApiClient.make_request` returns; the body is pulled lazily by
the response streamer.
"""

from __future__ import annotations

import concurrent.futures
import threading
import time
from dataclasses import dataclass
from typing import Iterator, Optional

import httpx

from apibridge.client.base import ApiResponse, RequestBuilder, ResponseBody, builder_for
from apibridge.exceptions import BridgeError, ErrorKind
from apibridge.output import get_output


@dataclass(frozen=True)
class HttpApiClient:
    """Immutable configured client: httpx transport, base URL, verbosity.

    Use as a context manager so that pooled connections are released.

    Attributes:
        http: The underlying :class:`httpx.Client` (TLS and timeouts applied).
        base_url: Absolute base URL; its path prefixes every request path.
        verbose: Emit ``METHOD URL`` and the status code on stderr.
        timeout: Overall deadline in seconds for one exchange, from sending
            the request through the last body chunk, or ``None`` for no
            deadline.
    """

    http: httpx.Client
    base_url: httpx.URL
    verbose: bool = False
    timeout: Optional[float] = None

    def request_builder(self, method: str, relative_path: str) -> RequestBuilder:
        return builder_for(self.base_url, method, relative_path)

    def make_request(self, builder: RequestBuilder) -> ApiResponse:
        """Send *builder*'s request and return after the headers arrive.

        Raises:
            BridgeError: ``REQUEST_BUILD`` if the builder is invalid,
                ``TRANSPORT`` on connection, DNS, TLS or timeout failures.
        """
        request = builder.build()
        output = get_output()
        if self.verbose:
            output.audit(f"{request.method} {request.url}")

        deadline = time.monotonic() + self.timeout if self.timeout is not None else None
        try:
            if self.timeout is None:
                response = self.http.send(request, stream=True)
            else:
                response = _send_within(self.http, request, self.timeout)
        except httpx.TimeoutException as exc:
            raise BridgeError(
                ErrorKind.TRANSPORT,
                f"Request to {request.url} timed out: {_describe(exc)}",
                cause=exc,
            ) from exc
        except httpx.HTTPError as exc:
            raise BridgeError(
                ErrorKind.TRANSPORT,
                f"Request to {request.url} failed: {_describe(exc)}",
                cause=exc,
            ) from exc

        if self.verbose:
            output.audit(str(response.status_code))

        return ApiResponse(
            status_code=response.status_code,
            body=ResponseBody(_iter_body(response, deadline), on_close=response.close),
            reason=response.reason_phrase,
            headers=response.headers,
            url=str(response.url),
        )

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> HttpApiClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def _send_within(http: httpx.Client, request: httpx.Request, timeout: float) -> httpx.Response:
    """Send *request* on a worker thread and wait at most *timeout* seconds for headers.

    httpx timeouts apply to each socket operation, so a server that sends its
    status line and headers a byte at a time never trips them. The worker is
    a daemon thread; a response that arrives after the caller gave up is
    closed as soon as it does.

    Raises:
        BridgeError: ``TRANSPORT`` when the headers miss the deadline.
        httpx.HTTPError: Whatever ``send`` raised on the worker.
    """
    future: concurrent.futures.Future[httpx.Response] = concurrent.futures.Future()

    def send() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(http.send(request, stream=True))
        except Exception as exc:
            future.set_exception(exc)

    threading.Thread(target=send, name="apibridge-send", daemon=True).start()
    try:
        return future.result(timeout=timeout)
    except concurrent.futures.TimeoutError as exc:
        future.add_done_callback(_close_late_response)
        raise BridgeError(
            ErrorKind.TRANSPORT,
            f"Request to {request.url} timed out after {timeout:g}s waiting for the response",
            cause=exc,
        ) from exc


def _close_late_response(future: concurrent.futures.Future[httpx.Response]) -> None:
    if future.exception() is None:
        future.result().close()


def _iter_body(response: httpx.Response, deadline: Optional[float]) -> Iterator[bytes]:
    """Yield decoded body chunks, mapping stream failures to ``READ``."""
    try:
        for chunk in response.iter_bytes():
            yield chunk
            if deadline is not None and time.monotonic() > deadline:
                raise BridgeError(
                    ErrorKind.READ, "Timed out while reading the response body"
                )
    except httpx.TimeoutException as exc:
        raise BridgeError(
            ErrorKind.READ, "Timed out while reading the response body", cause=exc
        ) from exc
    except (httpx.HTTPError, httpx.StreamError) as exc:
        raise BridgeError(
            ErrorKind.READ, f"Error reading the response body: {_describe(exc)}", cause=exc
        ) from exc


def _describe(exc: Exception) -> str:
    return str(exc) or type(exc).__name__
