"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a failure category and is selected by
:attr:`apibridge.exceptions.BridgeError.exit_code`. Shell wrappers can
inspect the exit code to tell a rejected request from a broken setup
without parsing stderr.

Example::

    $ apibridge --url https://api.example.com/v1 call GET /widgets/42
    {"error": "not found"}
    $ echo $?
    4   # EXIT_HTTP_CLIENT_ERROR -- the server answered with a 4xx status
"""

EXIT_SUCCESS = 0
"""The request completed with a 2xx status."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid or inconsistent arguments."""

EXIT_TLS_ERROR = 3
"""Certificate or key material could not be parsed, bundled, or loaded."""

EXIT_HTTP_CLIENT_ERROR = 4
"""The remote API answered with an HTTP 4xx status."""

EXIT_HTTP_SERVER_ERROR = 5
"""The remote API answered with an HTTP 5xx status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused, TLS handshake)."""

EXIT_IO_ERROR = 7
"""A local file could not be read, or the response body could not be transferred."""

EXIT_INTERRUPTED = 130
"""The user cancelled with Ctrl-C."""
