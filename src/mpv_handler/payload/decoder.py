"""Decode a sanitized payload into playback instructions."""

import base64
import binascii
import json
import logging
from typing import Any

from mpv_handler.error_handling import DecodeError, MalformedPayloadError
from mpv_handler.payload.instruction import PlaybackInstruction
from mpv_handler.payload.sanitizer import sanitize

logger = logging.getLogger(__name__)

# Stray bytes seen in partially corrupted payloads.
_JUNK_CHARS = str.maketrans("", "", "\x00\x0c")


def decode_payload(raw: str, *, strict: bool = False) -> list[PlaybackInstruction]:
    """Turn a raw URI payload into a non-empty, ordered instruction list.

    A JSON array is decoded as a batch (order preserved), a single JSON
    object as a one-element list. Raises DecodeError when the payload is not
    Base64 and MalformedPayloadError when the decoded text is neither shape.
    """
    cleaned = sanitize(raw, strict=strict)
    text = decode_text(raw, cleaned)
    logger.debug(f"Decoded payload: {text}")
    return parse_instructions(text)


def decode_text(raw: str, cleaned: str) -> str:
    """Base64-decode ``cleaned`` and tidy the resulting text."""
    try:
        data = base64.b64decode(cleaned, validate=True)
        text = data.decode("utf-8", errors="replace")
    except (binascii.Error, ValueError) as e:
        raise DecodeError(raw, cleaned, original_error=e) from e

    return text.strip().translate(_JUNK_CHARS).strip()


def parse_instructions(text: str) -> list[PlaybackInstruction]:
    """Parse decoded JSON text as a batch array or a legacy single object."""
    try:
        document: Any = json.loads(text)
    except (ValueError, RecursionError) as e:
        # JSONDecodeError, integer digit limit, nesting depth
        raise MalformedPayloadError(text, e) from e

    if isinstance(document, list):
        if not document:
            raise MalformedPayloadError(text, "batch payload is an empty array")
        items = document
    elif isinstance(document, dict):
        items = [document]
    else:
        raise MalformedPayloadError(
            text,
            f"expected a JSON object or array, got {type(document).__name__}",
        )

    instructions = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise MalformedPayloadError(
                text,
                f"batch element {index} is {type(item).__name__}, not an object",
            )
        instructions.append(PlaybackInstruction.from_dict(item))

    logger.debug(
        f"Parsed {len(instructions)} instruction(s) "
        f"({'batch' if isinstance(document, list) else 'legacy'} mode)",
    )
    return instructions
