"""Configuration management with XDG paths and precedence resolution.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.apibridge/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **User config** -- an optional :class:`~apibridge.models.BridgeConfig`
  JSON file with default connection options.
* **Precedence resolution** -- :func:`resolve_options` merges CLI flags
  (which already include ``APIBRIDGE_*`` environment variables, resolved by
  Typer) over the user config into a :class:`~apibridge.models.ClientOptions`.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from apibridge.exceptions import BridgeError, ErrorKind
from apibridge.models import BridgeConfig, ClientOptions

_APP_NAME = "apibridge"
_CONFIG_FILENAME = "config.json"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory (not created).

    On Linux/BSD: ``$XDG_CONFIG_HOME/apibridge/`` (default ``~/.config/apibridge/``).
    On macOS/Windows: ``~/.apibridge/``.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    return _fallback_base_dir()


def get_data_dir() -> Path:
    """Return the data directory for crash logs, creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/apibridge/`` (default ``~/.local/share/apibridge/``).
    On macOS/Windows: ``~/.apibridge/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def config_path() -> Path:
    """Path to the user config file.

    ``APIBRIDGE_CONFIG`` overrides the default location.
    """
    override = os.environ.get("APIBRIDGE_CONFIG")
    if override:
        return Path(override)
    return get_config_dir() / _CONFIG_FILENAME


# --- User config ---


def load_config(path: Optional[Path] = None) -> BridgeConfig:
    """Load the user configuration.

    Args:
        path: Explicit file to read. Defaults to :func:`config_path`.

    Returns:
        The parsed :class:`~apibridge.models.BridgeConfig`, or a default
        instance when the file does not exist.

    Raises:
        BridgeError: ``CONFIG`` if the file exists but is not valid JSON or
            fails validation.
    """
    path = path or config_path()
    if not path.is_file():
        return BridgeConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return BridgeConfig.model_validate(data)
    except (OSError, json.JSONDecodeError, ValueError) as exc:
        raise BridgeError(
            ErrorKind.CONFIG, f"Invalid config at {path}: {_one_line(exc)}", cause=exc
        ) from exc


# --- Precedence resolution ---


def resolve_options(
    url: Optional[str] = None,
    ca_cert: Optional[Path] = None,
    client_cert: Optional[Path] = None,
    client_key: Optional[Path] = None,
    timeout: Optional[str] = None,
    verbose: bool = False,
    config: Optional[BridgeConfig] = None,
) -> ClientOptions:
    """Merge CLI values over the user config.

    Precedence (high to low):
        1. CLI flags / ``APIBRIDGE_*`` environment variables
        2. User config (``~/.config/apibridge/config.json``)
        3. Defaults

    The client certificate and key are taken as a pair from whichever
    layer supplies them, so a CLI ``--client-cert`` never mixes with a
    config-file key.

    Raises:
        BridgeError: ``USAGE`` when no base URL is available or the
            certificate/key pair is incomplete; ``CONFIG`` for a broken
            config file.
    """
    cfg = config if config is not None else load_config()

    resolved_url = url or cfg.url
    if not resolved_url:
        raise BridgeError(
            ErrorKind.USAGE,
            "Missing base URL: pass --url, set APIBRIDGE_URL, or add \"url\" to "
            f"{config_path()}",
        )

    if client_cert is None and client_key is None:
        client_cert, client_key = cfg.client_cert, cfg.client_key

    try:
        return ClientOptions(
            url=resolved_url,
            ca_cert=ca_cert if ca_cert is not None else cfg.ca_cert,
            client_cert=client_cert,
            client_key=client_key,
            timeout=timeout if timeout is not None else cfg.timeout,
            verbose=verbose or cfg.verbose,
        )
    except ValidationError as exc:
        raise BridgeError(ErrorKind.USAGE, _one_line(exc), cause=exc) from exc


def _one_line(exc: Exception) -> str:
    """Condense an exception (including pydantic's multi-line ones) to one line."""
    if isinstance(exc, ValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            msg = str(first.get("msg", "")).removeprefix("Value error, ")
            loc = ".".join(str(part) for part in first.get("loc", ()))
            return f"{loc}: {msg}" if loc else msg
    return " ".join(str(exc).split())
