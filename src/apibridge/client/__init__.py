"""HTTP client core for apibridge.

* :mod:`~apibridge.client.base` -- the :class:`ApiClient` contract,
  :class:`RequestBuilder`, and the single-pass :class:`ApiResponse`.
* :mod:`~apibridge.client.http` -- :class:`HttpApiClient`, the httpx
  transport.
* :mod:`~apibridge.client.factory` -- :func:`build_client` and
  :func:`client_from_options`.
* :mod:`~apibridge.client.dry_run` -- :class:`DryRunClient` for ``--dry-run``.
* :mod:`~apibridge.client.streaming` -- :func:`stream_response`,
  :func:`raise_for_status` and the :func:`execute` invocation policy.

Example::

    from apibridge.client import build_client, execute
    from apibridge.resolver import RawEndpointResolver

    with build_client("https://api.example.com/v1/", timeout="30s") as client:
        execute(client, RawEndpointResolver(), "call",
                {"method": "GET", "path": "/widgets"}, sys.stdout.buffer)
"""

from apibridge.client.base import (
    ApiClient,
    ApiResponse,
    RequestBuilder,
    ResponseBody,
    join_url_path,
)
from apibridge.client.dry_run import DryRunClient
from apibridge.client.factory import build_client, client_from_options, parse_base_url
from apibridge.client.http import HttpApiClient
from apibridge.client.streaming import execute, raise_for_status, stream_response

__all__ = [
    "ApiClient",
    "ApiResponse",
    "DryRunClient",
    "HttpApiClient",
    "RequestBuilder",
    "ResponseBody",
    "build_client",
    "client_from_options",
    "execute",
    "join_url_path",
    "parse_base_url",
    "raise_for_status",
    "stream_response",
]
