"""Assemble a configured :class:`~apibridge.client.http.HttpApiClient`.

:func:`build_client` combines TLS material, a timeout and a base URL into
one immutable client. :func:`client_from_options` is the full pipeline used
by the CLI: read credential files, build the TLS material, build the client.
No network I/O happens in either function.
"""

from __future__ import annotations

import ssl
from typing import Optional

import certifi
import httpx

from apibridge.client.http import HttpApiClient
from apibridge.duration import parse_duration
from apibridge.exceptions import BridgeError, ErrorKind
from apibridge.models import ClientOptions
from apibridge.output import debug
from apibridge.tls import TlsMaterial, build_tls_material, load_credential


def build_client(
    base_url: str,
    tls: Optional[TlsMaterial] = None,
    timeout: Optional[str] = None,
    verbose: bool = False,
    transport: Optional[httpx.BaseTransport] = None,
) -> HttpApiClient:
    """Build the configured client for one invocation.

    Steps, in order:

    1. Start from a default SSL context using the certifi trust bundle.
    2. Add the trusted roots from *tls*, if any.
    3. Install the client identity from *tls*, if any.
    4. Parse *timeout* and apply it to connect, read, write and pool waits;
       it also becomes the overall deadline for the exchange.
    5. Parse *base_url*.
    6. Create the :class:`httpx.Client`.

    Args:
        base_url: Absolute ``http``/``https`` URL. Its path prefixes every
            request path.
        tls: Output of :func:`~apibridge.tls.build_tls_material`.
        timeout: Human-readable duration such as ``"30s"``; ``None`` means
            no timeout.
        verbose: Emit request audit lines on stderr.
        transport: Custom httpx transport (tests use
            :class:`httpx.MockTransport`).

    Raises:
        BridgeError: ``CLIENT_BUILD`` when the TLS layer rejects the
            material, ``DURATION_PARSE`` / ``URL_PARSE`` for malformed values.
    """
    tls = tls or TlsMaterial()

    context = ssl.create_default_context(cafile=certifi.where())
    for root in tls.trusted_roots:
        try:
            context.load_verify_locations(cadata=root)
        except ssl.SSLError as exc:
            raise BridgeError(
                ErrorKind.CLIENT_BUILD, f"TLS layer rejected the CA certificate: {exc}", cause=exc
            ) from exc

    if tls.identity is not None:
        try:
            tls.identity.load_into(context)
        except (ssl.SSLError, OSError, ValueError) as exc:
            raise BridgeError(
                ErrorKind.CLIENT_BUILD, f"TLS layer rejected the client identity: {exc}", cause=exc
            ) from exc

    seconds: Optional[float] = None
    if timeout is not None:
        seconds = parse_duration(timeout)

    url = parse_base_url(base_url)

    try:
        http = httpx.Client(
            verify=context,
            timeout=httpx.Timeout(seconds),
            follow_redirects=True,
            transport=transport,
        )
    except (ssl.SSLError, ValueError, TypeError) as exc:
        raise BridgeError(
            ErrorKind.CLIENT_BUILD, f"Cannot create HTTP client: {exc}", cause=exc
        ) from exc

    return HttpApiClient(http=http, base_url=url, verbose=verbose, timeout=seconds)


def parse_base_url(text: str) -> httpx.URL:
    """Parse and check an absolute ``http``/``https`` base URL.

    Raises:
        BridgeError: ``URL_PARSE`` for malformed or relative URLs.
    """
    try:
        url = httpx.URL(text)
    except (httpx.InvalidURL, TypeError) as exc:
        raise BridgeError(ErrorKind.URL_PARSE, f"Invalid URL {text!r}: {exc}", cause=exc) from exc
    if url.scheme not in ("http", "https"):
        raise BridgeError(
            ErrorKind.URL_PARSE, f"Invalid URL {text!r}: scheme must be http or https"
        )
    if not url.host:
        raise BridgeError(ErrorKind.URL_PARSE, f"Invalid URL {text!r}: missing host")
    return url


def client_from_options(
    options: ClientOptions,
    transport: Optional[httpx.BaseTransport] = None,
) -> HttpApiClient:
    """Load credentials named in *options* and build the client.

    Each file is read independently; the first unreadable file aborts
    construction.

    Raises:
        BridgeError: ``IO``, ``CERT_PARSE``, ``KEY_PARSE``, ``BUNDLE``,
            ``CLIENT_BUILD``, ``DURATION_PARSE`` or ``URL_PARSE``.
    """
    ca_cert = client_cert = client_key = None
    if options.ca_cert is not None:
        debug(f"Loading CA certificate from {options.ca_cert}")
        ca_cert = load_credential(options.ca_cert)
    if options.client_cert is not None and options.client_key is not None:
        debug(f"Loading client identity from {options.client_cert} and {options.client_key}")
        client_cert = load_credential(options.client_cert)
        client_key = load_credential(options.client_key)

    tls = build_tls_material(ca_cert, client_cert, client_key)
    return build_client(
        options.url,
        tls=tls,
        timeout=options.timeout,
        verbose=options.verbose,
        transport=transport,
    )
