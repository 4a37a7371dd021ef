"""Typer application and CLI entry point for apibridge.

The root callback collects connection options (``--url``, ``--ca-cert``,
``--client-cert``, ``--client-key``, ``--timeout``, ``--verbose``) and
output options, and installs the global
:class:`~apibridge.output.OutputManager`. Subcommands hand an endpoint
resolver to :func:`run_command`, which builds the client, executes the one
request and maps any :class:`~apibridge.exceptions.BridgeError` to its exit
code.

:func:`main` is the console-script entry point declared in ``pyproject.toml``.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, List, Mapping, Optional

import typer

from apibridge import __version__
from apibridge.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED

if TYPE_CHECKING:
    from apibridge.resolver import EndpointResolver

app = typer.Typer(
    name="apibridge",
    help="Send one authenticated HTTP request and stream the response body to stdout.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"apibridge {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    url: Optional[str] = typer.Option(
        None, "--url", envvar="APIBRIDGE_URL", help="Base URL of the API."
    ),
    ca_cert: Optional[Path] = typer.Option(
        None, "--ca-cert", envvar="APIBRIDGE_CA_CERT",
        help="PEM file with extra trusted CA certificate(s).",
    ),
    client_cert: Optional[Path] = typer.Option(
        None, "--client-cert", envvar="APIBRIDGE_CLIENT_CERT",
        help="PEM client certificate for mutual TLS (requires --client-key).",
    ),
    client_key: Optional[Path] = typer.Option(
        None, "--client-key", envvar="APIBRIDGE_CLIENT_KEY",
        help="PEM client private key for mutual TLS (requires --client-cert).",
    ),
    timeout: Optional[str] = typer.Option(
        None, "--timeout", envvar="APIBRIDGE_TIMEOUT",
        help="Request timeout, e.g. 30s, 5m, 1h.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Print the request line and status code to stderr."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Print the request instead of sending it."
    ),
    output_file: Optional[str] = typer.Option(
        None, "-o", "--output", help="Write the response body to a file instead of stdout."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~apibridge.output.OutputManager` and
    stores the connection options in ``ctx.obj`` for :func:`run_command`.
    """
    from apibridge.output import OutputManager, set_output

    set_output(
        OutputManager(
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
            output_file=output_file,
        )
    )

    ctx.ensure_object(dict)
    ctx.obj["connection"] = {
        "url": url,
        "ca_cert": ca_cert,
        "client_cert": client_cert,
        "client_key": client_key,
        "timeout": timeout,
        "verbose": verbose,
    }
    ctx.obj["dry_run"] = dry_run


@app.command("call")
def call_command(
    ctx: typer.Context,
    method: str = typer.Argument(..., help="HTTP method, e.g. GET or POST."),
    path: str = typer.Argument("/", help="Path relative to the base URL."),
    header: Optional[List[str]] = typer.Option(
        None, "--header", "-H", help="Request header as 'Name: value'. Repeatable."
    ),
    query: Optional[List[str]] = typer.Option(
        None, "--query", "-Q", help="Query parameter as name=value. Repeatable."
    ),
    body: Optional[str] = typer.Option(
        None, "--body", "-d", help="Request body: literal text, @file, or - for stdin."
    ),
    content_type: Optional[str] = typer.Option(
        None, "--content-type", help="Content-Type of the body (default: JSON if it parses)."
    ),
) -> None:
    """Send METHOD PATH and write the response body to stdout."""
    from apibridge.resolver import RawEndpointResolver

    run_command(
        ctx,
        RawEndpointResolver(),
        "call",
        {
            "method": method,
            "path": path,
            "headers": header or [],
            "query": query or [],
            "body": body,
            "content_type": content_type,
        },
    )


def run_command(
    ctx: typer.Context,
    resolver: EndpointResolver,
    command: str,
    arguments: Mapping[str, Any],
) -> None:
    """Build the client and run one request through *resolver*.

    Any :class:`~apibridge.exceptions.BridgeError` is printed once to
    stderr and turned into a :class:`typer.Exit` with the mapped code.
    """
    from apibridge.client import DryRunClient, client_from_options, execute
    from apibridge.config import resolve_options
    from apibridge.exceptions import BridgeError
    from apibridge.output import error, get_output

    obj = ctx.ensure_object(dict)
    try:
        options = resolve_options(**obj.get("connection", {}))
        with client_from_options(options) as client:
            target: Any = client
            if obj.get("dry_run"):
                target = DryRunClient(client.base_url)
            with get_output().data_sink() as sink:
                execute(target, resolver, command, arguments, sink)
    except BridgeError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from apibridge.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``apibridge`` console script.

    :class:`~apibridge.exceptions.BridgeError` instances that escape a
    command cause a clean exit with the error's ``exit_code``. All other
    exceptions produce a crash log and a generic failure exit.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        from apibridge.exceptions import BridgeError
        from apibridge.output import error

        if isinstance(exc, BridgeError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)


if __name__ == "__main__":
    main()
