"""Two-phase handling of one incoming URI: decode, then dispatch."""

import logging

from mpv_handler.config import HandlerConfig
from mpv_handler.core.dispatcher import Dispatcher, DispatchReport
from mpv_handler.error_handling import HandlerError
from mpv_handler.payload.decoder import decode_payload
from mpv_handler.payload.uri import split_uri

logger = logging.getLogger(__name__)


def handle_uri(
    raw: str,
    config: HandlerConfig,
    *,
    expected_scheme: str | None = None,
    dispatcher: Dispatcher | None = None,
) -> DispatchReport:
    """Decode ``raw`` and launch a player for every instruction in it.

    Decoding is all-or-nothing: a scheme, Base64 or JSON problem is logged and
    raised before any process starts. Dispatch is best-effort and reports
    per-instruction failures in the returned DispatchReport instead of raising.
    """
    logger.info(f"Raw URL: {raw}")

    try:
        scheme, payload = split_uri(raw, expected_scheme=expected_scheme)
        logger.debug(f"Scheme: {scheme}")
        logger.debug(f"Payload: {payload}")
        instructions = decode_payload(payload, strict=config.strict_payload)
    except HandlerError as e:
        logger.error(f"Rejected URI: {e.message} ({e.details})")
        raise

    logger.info(f"Decoded {len(instructions)} instruction(s) from {scheme}://")

    if dispatcher is None:
        dispatcher = Dispatcher(config)
    return dispatcher.dispatch(instructions, scheme=scheme)
