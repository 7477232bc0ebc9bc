"""Shared test configuration and fixtures."""

import base64
import json
import logging

import pytest

from mpv_handler.cli import cleanup_logging


@pytest.fixture(scope="function", autouse=True)
def cleanup_logging_handlers():
    """Automatically cleanup logging handlers after each test to prevent ResourceWarnings."""
    yield
    cleanup_logging()


@pytest.fixture(scope="function", autouse=True)
def reset_logging():
    """Reset logging configuration after each test."""
    yield
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.WARNING)


@pytest.fixture
def encode_payload():
    """Encode a JSON document the way the browser extension does."""

    def _encode(document) -> str:
        text = document if isinstance(document, str) else json.dumps(document)
        return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")

    return _encode
