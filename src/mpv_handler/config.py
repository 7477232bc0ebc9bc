"""Configuration management for mpv-handler."""

from pathlib import Path

import tomli
import tomli_w
from pydantic import BaseModel, Field, field_validator

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "mpv-handler" / "config.toml"


class HandlerConfig(BaseModel):
    """Main configuration for mpv-handler.

    Loaded once per invocation and treated as read-only afterwards.
    """

    # Player executables, keyed by instruction target
    players: dict[str, str] = Field(default_factory=dict)

    # Logging
    enable_log: bool = Field(default=False)
    log_path: Path = Field(default=Path("~/.local/share/mpv-handler/mpv-handler.log"))

    # Dispatch
    launch_delay: float = Field(default=0.05)  # seconds between launches
    strict_payload: bool = Field(default=False)

    # Per-scheme default mpv profile, e.g. mpv-cinema://... -> --profile=cinema
    scheme_profiles: dict[str, str] = Field(
        default_factory=lambda: {"mpv": "multi", "mpv-cinema": "cinema"},
    )

    # URL path substring -> user agent
    user_agents: dict[str, str] = Field(default_factory=dict)

    @field_validator("log_path", mode="before")
    @classmethod
    def expand_paths(cls, v: Path | str) -> Path:
        """Expand user home directory in paths."""
        if isinstance(v, str):
            v = Path(v)
        return v.expanduser()

    @field_validator("players", mode="after")
    @classmethod
    def strip_player_paths(cls, v: dict[str, str]) -> dict[str, str]:
        """Normalize target names and trim paths."""
        return {target.strip().lower(): path.strip() for target, path in v.items()}

    @field_validator("scheme_profiles", mode="after")
    @classmethod
    def normalize_schemes(cls, v: dict[str, str]) -> dict[str, str]:
        """Schemes are case-insensitive."""
        return {scheme.strip().lower(): profile.strip() for scheme, profile in v.items()}

    @field_validator("launch_delay")
    @classmethod
    def delay_not_negative(cls, v: float) -> float:
        """Validate the pacing delay."""
        if v < 0:
            msg = "launch_delay must not be negative"
            raise ValueError(msg)
        return v

    def executable_for(self, target: str) -> str | None:
        """Configured executable for ``target``, or None if unknown or blank."""
        path = self.players.get(target.strip().lower())
        return path or None

    def profile_for_scheme(self, scheme: str | None) -> str | None:
        """Default mpv profile for the scheme the URI arrived on."""
        if not scheme:
            return None
        return self.scheme_profiles.get(scheme.lower()) or None

    def user_agent_for(self, url_path: str) -> str | None:
        """First configured user agent whose pattern occurs in ``url_path``."""
        if not url_path:
            return None
        for pattern, user_agent in self.user_agents.items():
            if pattern and pattern in url_path:
                return user_agent
        return None


def load_config(config_path: Path | None = None) -> HandlerConfig:
    """Load configuration from file or defaults."""
    if config_path is None:
        possible_paths = [
            DEFAULT_CONFIG_PATH,  # User config
            Path.cwd() / "mpv-handler.toml",  # Current directory
        ]

        for path in possible_paths:
            if path.exists():
                config_path = path
                break

    if config_path and config_path.exists():
        with open(config_path, "rb") as f:
            config_data = tomli.load(f)
        return HandlerConfig(**config_data)
    # Use defaults
    return HandlerConfig()


def create_sample_config(path: Path, players: dict[str, str] | None = None) -> None:
    """Create a sample configuration file.

    ``players`` pre-fills the [players] table; paths are written as TOML
    literal strings so Windows backslashes need no escaping.
    """
    players = players or {}
    mpv_path = players.get("mpv", "")
    vlc_path = players.get("vlc", "")
    extra_players = "".join(
        f"{target} = '{exe}'\n"
        for target, exe in players.items()
        if target not in ("mpv", "vlc")
    )

    sample_config = f"""# mpv-handler Configuration
# =========================

# Write a log file (useful because URI launches have no console)
enable_log = false
log_path = "~/.local/share/mpv-handler/mpv-handler.log"

# Seconds to wait between player launches of one batch
launch_delay = 0.05

# Reject payload characters outside the Base64 alphabets instead of dropping them
strict_payload = false

# ============================================================================
# Player executables, keyed by the "mode"/"target" field of the payload
# ============================================================================
[players]
mpv = '{mpv_path}'
vlc = '{vlc_path}'
{extra_players}
# ============================================================================
# Default mpv profile per URI scheme
# ============================================================================
[scheme_profiles]
mpv = "multi"
mpv-cinema = "cinema"

# ============================================================================
# User agent by URL path substring (first match wins)
# ============================================================================
[user_agents]
# "/Videos/" = "Mozilla/5.0"
"""

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        f.write(sample_config)


def save_player_path(path: Path, target: str, executable: str) -> None:
    """Set players.<target> in an existing config file.

    Other settings are kept. Comments are not, since the file is rewritten.
    """
    with open(path, "rb") as f:
        config_data = tomli.load(f)

    # Refuse to rewrite a file that does not load
    HandlerConfig(**config_data)

    players = dict(config_data.get("players", {}))
    players[target.strip().lower()] = executable
    config_data["players"] = players

    with open(path, "wb") as f:
        tomli_w.dump(config_data, f)
