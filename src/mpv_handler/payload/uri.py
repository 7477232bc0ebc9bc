"""Splitting a handler URI into scheme and payload."""

import re

from mpv_handler.error_handling import SchemeMismatchError

_SCHEME_RE = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*")

# Some launchers hand over "%1" with its quotes still attached.
_STRIP_CHARS = " \t\r\n\"'"


def split_uri(raw: str, *, expected_scheme: str | None = None) -> tuple[str, str]:
    """Return ``(scheme, payload)`` from ``scheme://payload``.

    Raises SchemeMismatchError when there is no valid scheme prefix or the
    scheme differs from ``expected_scheme`` (compared case-insensitively).
    """
    text = raw.strip(_STRIP_CHARS)
    scheme, sep, payload = text.partition("://")
    if not sep or not _SCHEME_RE.fullmatch(scheme):
        raise SchemeMismatchError(raw, expected=expected_scheme)

    if expected_scheme and scheme.lower() != expected_scheme.lower():
        raise SchemeMismatchError(raw, expected=expected_scheme)

    return scheme.lower(), payload
