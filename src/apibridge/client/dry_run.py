"""Dry-run client: builds requests, prints them, never touches the network.

Backs the ``--dry-run`` flag, and doubles as a recording client in tests
because every finalized request is kept in :attr:`DryRunClient.sent`.
"""

from __future__ import annotations

from typing import Optional

import httpx

from apibridge.client.base import ApiResponse, RequestBuilder, builder_for
from apibridge.output import get_output


class DryRunClient:
    """:class:`~apibridge.client.base.ApiClient` that answers every request itself.

    Args:
        base_url: Base URL used to build request URLs.
        status_code: Status of the synthetic response.
        content: Body of the synthetic response.
        echo: Print each request (method, URL, headers, body) to stderr.
    """

    def __init__(
        self,
        base_url: httpx.URL,
        status_code: int = 200,
        content: bytes = b"",
        echo: bool = True,
    ) -> None:
        self.base_url = base_url
        self.status_code = status_code
        self.content = content
        self.echo = echo
        self.sent: list[httpx.Request] = []

    @property
    def last_request(self) -> Optional[httpx.Request]:
        return self.sent[-1] if self.sent else None

    def request_builder(self, method: str, relative_path: str) -> RequestBuilder:
        return builder_for(self.base_url, method, relative_path)

    def make_request(self, builder: RequestBuilder) -> ApiResponse:
        request = builder.build()
        self.sent.append(request)

        if self.echo:
            output = get_output()
            output.info(f"[dry-run] {request.method} {request.url}")
            for key, value in request.headers.items():
                output.info(f"  Header: {key}: {value}")
            if request.content:
                output.info(f"  Body: {request.content.decode('utf-8', errors='replace')}")

        return ApiResponse.from_bytes(
            self.status_code, self.content, url=str(request.url)
        )
