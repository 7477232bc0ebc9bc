"""Payload handling: URI splitting, sanitization and decoding.

Everything in this package is pure and side-effect free apart from logging,
so a payload can be fully validated before any player is started.
"""

from mpv_handler.payload.decoder import decode_payload, parse_instructions
from mpv_handler.payload.instruction import PlaybackInstruction
from mpv_handler.payload.sanitizer import sanitize
from mpv_handler.payload.uri import split_uri

__all__ = [
    "PlaybackInstruction",
    "decode_payload",
    "parse_instructions",
    "sanitize",
    "split_uri",
]
