"""Player integrations.

Builders are plain functions so the dispatcher can be tested without
starting real players.
"""

from mpv_handler.players.builders import (
    BUILDERS,
    Builder,
    build_bare_command,
    build_mpv_command,
    get_builder,
    supported_targets,
)

__all__ = [
    "BUILDERS",
    "Builder",
    "build_bare_command",
    "build_mpv_command",
    "get_builder",
    "supported_targets",
]
