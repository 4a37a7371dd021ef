"""apibridge -- call a remote HTTP API from the shell over (mutual) TLS.

One invocation sends exactly one request. The response body is streamed to
stdout unchanged; status, audit lines and errors go to stderr; the exit code
says whether the request succeeded::

    apibridge --url https://api.example.com/v1/ \\
        --ca-cert ca.pem --client-cert me.pem --client-key me.key \\
        --timeout 30s call GET /widgets

Modules:
    app: Typer application and console-script entry point.
    client: Request contract, httpx transport, client factory, streamer.
    tls: Credential loading and TLS identity assembly.
    resolver: Endpoint resolver protocol and the generic ``call`` resolver.
    config: XDG config file and option precedence.
    models: Pydantic models for configuration and resolved options.
    exceptions: ``BridgeError`` and its ``ErrorKind`` tags.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr discipline with Rich diagnostics.
"""

__version__ = "0.1.0"
