"""Human-readable duration parsing for ``--timeout``.

Accepts one or more ``<integer><unit>`` terms, optionally separated by
whitespace, and returns the total in seconds::

    >>> parse_duration("30s")
    30.0
    >>> parse_duration("1m 30s")
    90.0
    >>> parse_duration("250ms")
    0.25

Every term needs a unit; a bare number is rejected so that ``--timeout 30``
is never silently read as seconds, milliseconds or anything else.
"""

from __future__ import annotations

import re

from apibridge.exceptions import BridgeError, ErrorKind

_UNITS: dict[str, float] = {
    "nsec": 1e-9,
    "ns": 1e-9,
    "usec": 1e-6,
    "us": 1e-6,
    "msec": 1e-3,
    "ms": 1e-3,
    "seconds": 1.0,
    "second": 1.0,
    "sec": 1.0,
    "s": 1.0,
    "minutes": 60.0,
    "minute": 60.0,
    "min": 60.0,
    "m": 60.0,
    "hours": 3600.0,
    "hour": 3600.0,
    "hr": 3600.0,
    "h": 3600.0,
    "days": 86400.0,
    "day": 86400.0,
    "d": 86400.0,
    "weeks": 604800.0,
    "week": 604800.0,
    "w": 604800.0,
}

_TERM = re.compile(r"\s*(\d+)\s*([A-Za-z]*)\s*")


def parse_duration(text: str) -> float:
    """Parse *text* into a number of seconds.

    Args:
        text: Duration such as ``"30s"``, ``"5m"``, ``"1h 15m"``.

    Returns:
        The total duration in seconds.

    Raises:
        BridgeError: ``DURATION_PARSE`` when *text* is empty, has a term
            without a unit, or uses an unknown unit.
    """
    if not text or not text.strip():
        raise BridgeError(ErrorKind.DURATION_PARSE, "Invalid duration: value is empty")

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _TERM.match(text, pos)
        if match is None or match.end() == pos:
            raise BridgeError(
                ErrorKind.DURATION_PARSE,
                f"Invalid duration {text!r}: expected a number at position {pos}",
            )
        number, unit = match.groups()
        if not unit:
            raise BridgeError(
                ErrorKind.DURATION_PARSE,
                f"Invalid duration {text!r}: time unit needed, for example {number}s or {number}m",
            )
        factor = _UNITS.get(unit)
        if factor is None:
            raise BridgeError(
                ErrorKind.DURATION_PARSE,
                f"Invalid duration {text!r}: unknown time unit {unit!r}",
            )
        total += int(number) * factor
        pos = match.end()

    return total
