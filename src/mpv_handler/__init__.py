"""mpv-handler - launch media players from custom-scheme URIs."""

__version__ = "0.1.0"
