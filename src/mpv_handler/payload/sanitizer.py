"""Normalize a raw URI payload into padded standard Base64.

Producers are expected to send URL-safe Base64 (``-`` and ``_``), but the
string usually passes through a browser, the OS URI launcher and a shell
before it gets here. Percent-escapes are undone first; quotes, whitespace
and a trailing ``/`` appended by some launchers then remain, so every
character is classified and everything that is not Base64 data is dropped.

Known limitation: a bare ``/`` is always discarded because producers encode
real slashes as ``_``. A producer sending standard (not URL-safe) Base64
containing ``/`` will have its payload silently corrupted.
"""

import string
from urllib.parse import unquote

from mpv_handler.error_handling import DecodeError

_ALNUM = frozenset(string.ascii_letters + string.digits)
_TRANSLATE = {"-": "+", "+": "+", "_": "/"}
# Dropped even in strict mode: padding is recomputed, "/" is a stray separator.
_ALWAYS_DROPPED = frozenset("=/")


def sanitize(raw: str, *, strict: bool = False) -> str:
    """Return ``raw`` reduced to the standard Base64 alphabet, ``=``-padded.

    In lenient mode (the default) this never fails. With ``strict=True``
    characters that are not part of either Base64 alphabet raise DecodeError
    instead of being dropped; surrounding whitespace is still trimmed.
    """
    source = unquote(raw.strip() if strict else raw)
    kept: list[str] = []
    for char in source:
        if char in _ALNUM:
            kept.append(char)
        elif char in _TRANSLATE:
            kept.append(_TRANSLATE[char])
        elif strict and char not in _ALWAYS_DROPPED:
            raise DecodeError(
                raw,
                "".join(kept),
                message=f"Unexpected character {char!r} in payload",
            )

    cleaned = "".join(kept)
    return cleaned + "=" * (-len(cleaned) % 4)
