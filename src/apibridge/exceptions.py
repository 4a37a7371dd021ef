"""Error taxonomy for apibridge.

Every failure is a :class:`BridgeError` tagged with an :class:`ErrorKind`.
The kind decides the process exit code, and the original exception (if
any) travels along as :attr:`BridgeError.cause`. The top-level handler in
:func:`apibridge.app.main` catches ``BridgeError``, prints the message once
to stderr and exits with :attr:`BridgeError.exit_code`.

Kinds and exit codes::

    IO                  credential file unreadable             (exit 7)
    CERT_PARSE          malformed certificate                  (exit 3)
    KEY_PARSE           malformed private key                  (exit 3)
    BUNDLE              identity bundling failed               (exit 3)
    CLIENT_BUILD        TLS layer rejected the configuration   (exit 3)
    DURATION_PARSE      malformed --timeout value              (exit 2)
    URL_PARSE           malformed --url value                  (exit 2)
    USAGE               inconsistent CLI arguments             (exit 2)
    CONFIG              invalid configuration file             (exit 1)
    REQUEST_BUILD       invalid request before transmission    (exit 2)
    TRANSPORT           network / TLS / timeout failure        (exit 6)
    READ                response body stream failed            (exit 7)
    WRITE               output sink rejected a chunk           (exit 7)
    NON_SUCCESS_STATUS  status outside 200-299                 (exit 4 / 5 / 1)
"""

from __future__ import annotations

import enum
from typing import Optional

from apibridge.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_HTTP_CLIENT_ERROR,
    EXIT_HTTP_SERVER_ERROR,
    EXIT_INVALID_USAGE,
    EXIT_IO_ERROR,
    EXIT_TLS_ERROR,
)


class ErrorKind(str, enum.Enum):
    """Discriminator for :class:`BridgeError`."""

    IO = "io"
    CERT_PARSE = "cert_parse"
    KEY_PARSE = "key_parse"
    BUNDLE = "bundle"
    CLIENT_BUILD = "client_build"
    DURATION_PARSE = "duration_parse"
    URL_PARSE = "url_parse"
    USAGE = "usage"
    CONFIG = "config"
    REQUEST_BUILD = "request_build"
    TRANSPORT = "transport"
    READ = "read"
    WRITE = "write"
    NON_SUCCESS_STATUS = "non_success_status"


_EXIT_CODES: dict[ErrorKind, int] = {
    ErrorKind.IO: EXIT_IO_ERROR,
    ErrorKind.CERT_PARSE: EXIT_TLS_ERROR,
    ErrorKind.KEY_PARSE: EXIT_TLS_ERROR,
    ErrorKind.BUNDLE: EXIT_TLS_ERROR,
    ErrorKind.CLIENT_BUILD: EXIT_TLS_ERROR,
    ErrorKind.DURATION_PARSE: EXIT_INVALID_USAGE,
    ErrorKind.URL_PARSE: EXIT_INVALID_USAGE,
    ErrorKind.USAGE: EXIT_INVALID_USAGE,
    ErrorKind.CONFIG: EXIT_GENERIC_FAILURE,
    ErrorKind.REQUEST_BUILD: EXIT_INVALID_USAGE,
    ErrorKind.TRANSPORT: EXIT_CONNECTION_ERROR,
    ErrorKind.READ: EXIT_IO_ERROR,
    ErrorKind.WRITE: EXIT_IO_ERROR,
}


class BridgeError(Exception):
    """The single error type raised by apibridge.

    Args:
        kind: Which failure this is.
        message: Human-readable, single-line description printed to stderr.
        cause: The underlying exception, if any.
        status_code: HTTP status for ``NON_SUCCESS_STATUS`` errors.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        cause: Optional[BaseException] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.cause = cause
        self.status_code = status_code

    @property
    def exit_code(self) -> int:
        """Process exit code for this error."""
        if self.kind is ErrorKind.NON_SUCCESS_STATUS:
            status = self.status_code or 0
            if 400 <= status < 500:
                return EXIT_HTTP_CLIENT_ERROR
            if status >= 500:
                return EXIT_HTTP_SERVER_ERROR
            return EXIT_GENERIC_FAILURE
        return _EXIT_CODES.get(self.kind, EXIT_GENERIC_FAILURE)

    def __repr__(self) -> str:
        return f"BridgeError({self.kind.value!r}, {str(self)!r})"


def non_success_status(status_code: int, reason: str = "") -> BridgeError:
    """Build the error reported after a non-2xx body has been written."""
    message = f"HTTP {status_code}"
    if reason:
        message = f"{message} {reason}"
    return BridgeError(ErrorKind.NON_SUCCESS_STATUS, message, status_code=status_code)
