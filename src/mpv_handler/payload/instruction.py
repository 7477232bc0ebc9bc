"""Playback instruction decoded from a handler URI."""

from dataclasses import dataclass
from typing import Any

# JSON key -> field name. Earlier keys win when a payload carries both spellings.
_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "target": ("target", "mode"),
    "url": ("url",),
    "profile": ("profile",),
    "geometry": ("geometry",),
    "title": ("title",),
    "subtitle_url": ("subtitleUrl", "subtitle_url"),
    "user_agent": ("userAgent", "user_agent"),
}


@dataclass(frozen=True)
class PlaybackInstruction:
    """One "play this URL with these options" unit.

    ``target`` selects the player builder and executable. Everything except
    ``target`` and ``url`` is optional and only turned into player flags when
    present.
    """

    target: str
    url: str = ""
    profile: str | None = None
    geometry: str | None = None
    title: str | None = None
    subtitle_url: str | None = None
    user_agent: str | None = None

    @property
    def is_dispatchable(self) -> bool:
        """Check if the instruction names a target at all."""
        return bool(self.target.strip())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlaybackInstruction":
        """Build an instruction from a decoded JSON object."""
        values: dict[str, str | None] = {}
        for field_name, keys in _FIELD_ALIASES.items():
            values[field_name] = _first_value(data, keys)

        return cls(
            target=(values.pop("target") or "").strip(),
            url=values.pop("url") or "",
            **values,
        )

    def describe(self) -> str:
        """Short human readable summary used in log lines."""
        parts = [f"target={self.target or '-'}"]
        if self.title:
            parts.append(f"title={self.title!r}")
        if self.geometry:
            parts.append(f"geometry={self.geometry}")
        return " ".join(parts)


def _first_value(data: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        text = value if isinstance(value, str) else str(value)
        if text != "":
            return text
    return None
