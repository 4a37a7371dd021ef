"""Read certificate and key files into memory."""

from __future__ import annotations

from pathlib import Path
from typing import Union

from apibridge.exceptions import BridgeError, ErrorKind


def load_credential(path: Union[str, Path]) -> bytes:
    """Return the raw contents of the credential file at *path*.

    The file is opened, read and closed before this function returns.

    Raises:
        BridgeError: ``IO`` when the file is missing or unreadable.
    """
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        reason = exc.strerror or str(exc)
        raise BridgeError(
            ErrorKind.IO, f"Cannot read credential file {path}: {reason}", cause=exc
        ) from exc
