"""Argument vector builders for supported players.

Each builder turns ``(executable, instruction)`` into the full argv for one
player launch. All player specific flag syntax lives here; nothing else
branches on the target name. To support a new player, write a builder and
add it to ``BUILDERS``.
"""

from collections.abc import Callable, Mapping
from types import MappingProxyType

from mpv_handler.payload.instruction import PlaybackInstruction

Builder = Callable[[str, PlaybackInstruction], list[str]]


def build_mpv_command(executable: str, instruction: PlaybackInstruction) -> list[str]:
    """Build mpv command with optional flags ahead of the URL."""
    cmd = [executable]

    if instruction.profile:
        cmd.append(f"--profile={instruction.profile}")
    if instruction.geometry:
        cmd.append(f"--geometry={instruction.geometry}")
    if instruction.title:
        cmd.append(f"--force-media-title={instruction.title}")
    if instruction.subtitle_url:
        cmd.append(f"--sub-file={instruction.subtitle_url}")
    if instruction.user_agent:
        cmd.append(f"--user-agent={instruction.user_agent}")

    cmd.append(instruction.url)
    return cmd


def build_bare_command(executable: str, instruction: PlaybackInstruction) -> list[str]:
    """Build a command that only passes the URL."""
    return [executable, instruction.url]


BUILDERS: Mapping[str, Builder] = MappingProxyType(
    {
        "mpv": build_mpv_command,
        "vlc": build_bare_command,
    },
)


def get_builder(
    target: str,
    builders: Mapping[str, Builder] = BUILDERS,
) -> Builder | None:
    """Look up the builder registered for ``target`` (case and whitespace ignored)."""
    return builders.get(target.strip().lower())


def supported_targets() -> list[str]:
    """Targets with a registered builder."""
    return sorted(BUILDERS)
