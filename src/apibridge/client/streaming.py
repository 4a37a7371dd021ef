"""Move a response body to an output sink and decide the outcome.

:func:`stream_response` copies the body chunk by chunk, so memory use is
bounded by the chunk size regardless of body length. :func:`execute` is the
invocation policy: resolve, send, stream, then fail on a non-2xx status.
The body is always written before a status failure is raised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, BinaryIO, Mapping

from apibridge.client.base import ApiClient, ApiResponse
from apibridge.exceptions import BridgeError, ErrorKind, non_success_status
from apibridge.output import debug

if TYPE_CHECKING:
    from apibridge.resolver import EndpointResolver


def stream_response(response: ApiResponse, sink: BinaryIO) -> int:
    """Write *response*'s body to *sink* and return the number of bytes written.

    The body is consumed; it cannot be streamed again.

    Raises:
        BridgeError: ``WRITE`` if *sink* rejects a chunk (e.g. a closed
            pipe), ``READ`` if the body stream fails mid-transfer.
    """
    written = 0
    for chunk in response.body:
        try:
            sink.write(chunk)
        except (OSError, ValueError) as exc:
            raise BridgeError(
                ErrorKind.WRITE, f"Cannot write response body: {exc}", cause=exc
            ) from exc
        written += len(chunk)

    try:
        sink.flush()
    except (OSError, ValueError) as exc:
        raise BridgeError(
            ErrorKind.WRITE, f"Cannot write response body: {exc}", cause=exc
        ) from exc
    return written


def raise_for_status(response: ApiResponse) -> None:
    """Raise ``NON_SUCCESS_STATUS`` unless the status is in 200-299."""
    if not response.is_success:
        raise non_success_status(response.status_code, response.reason)


def execute(
    client: ApiClient,
    resolver: EndpointResolver,
    command: str,
    arguments: Mapping[str, Any],
    sink: BinaryIO,
) -> ApiResponse:
    """Run one invocation end to end.

    The response is closed on every path. On a non-2xx status the body is
    already in *sink* when the error is raised.

    Returns:
        The (consumed) response, for callers that want its status/headers.
    """
    response = resolver.resolve(client, command, arguments)
    with response:
        written = stream_response(response, sink)
    debug(f"Wrote {written} bytes")
    raise_for_status(response)
    return response
