"""Register and remove the custom URI scheme with the operating system."""

import logging
import re
import subprocess
import sys
from pathlib import Path

from mpv_handler.error_handling import RegistrationError

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*")

DESKTOP_TEMPLATE = """[Desktop Entry]
Type=Application
Name=mpv-handler ({scheme})
Comment=Open {scheme}:// links in a media player
Exec={command} open %u
Terminal=false
NoDisplay=true
MimeType=x-scheme-handler/{scheme};
"""


def validate_scheme(scheme: str) -> str:
    """Return the lower-cased scheme or raise RegistrationError."""
    if not _SCHEME_RE.fullmatch(scheme or ""):
        raise RegistrationError(f"Invalid URI scheme: {scheme!r}")
    return scheme.lower()


def handler_command() -> list[str]:
    """Command line the OS should run for a URI, without the URI itself."""
    if getattr(sys, "frozen", False):
        return [sys.executable]
    return [sys.executable, "-m", "mpv_handler"]


class DesktopEntryRegistrar:
    """freedesktop.org registration via a .desktop file and xdg-mime."""

    def __init__(self, applications_dir: Path | None = None):
        self.applications_dir = (
            applications_dir or Path.home() / ".local" / "share" / "applications"
        )

    def desktop_file(self, scheme: str) -> Path:
        """Path of the desktop entry for ``scheme``."""
        return self.applications_dir / f"mpv-handler-{scheme}.desktop"

    def install(self, scheme: str, command: list[str]) -> Path:
        """Write the desktop entry and make it the scheme's default handler."""
        scheme = validate_scheme(scheme)
        path = self.desktop_file(scheme)
        exec_line = " ".join(_quote_exec_arg(arg) for arg in command)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(DESKTOP_TEMPLATE.format(scheme=scheme, command=exec_line))
        except OSError as e:
            raise RegistrationError(
                f"Failed to write {path}",
                details=str(e),
                original_error=e,
            ) from e

        self._run_xdg_mime(["xdg-mime", "default", path.name, f"x-scheme-handler/{scheme}"])
        logger.info(f"Registered {scheme}:// -> {path}")
        return path

    def uninstall(self, scheme: str) -> bool:
        """Remove the desktop entry. Returns False if none was installed."""
        scheme = validate_scheme(scheme)
        path = self.desktop_file(scheme)
        if not path.exists():
            logger.info(f"No registration found for {scheme}://")
            return False

        try:
            path.unlink()
        except OSError as e:
            raise RegistrationError(
                f"Failed to remove {path}",
                details=str(e),
                original_error=e,
            ) from e

        logger.info(f"Removed registration for {scheme}://")
        return True

    @staticmethod
    def _run_xdg_mime(cmd: list[str]) -> None:
        try:
            result = subprocess.run(
                cmd,
                check=False,
                capture_output=True,
                text=True,
                timeout=10,
            )
        except (FileNotFoundError, subprocess.SubprocessError) as e:
            logger.warning(f"Could not run xdg-mime, set the default handler manually: {e}")
            return

        if result.returncode != 0:
            logger.warning(f"xdg-mime failed: {result.stderr.strip()}")


class WindowsRegistrar:
    """Registration under HKEY_CURRENT_USER\\Software\\Classes."""

    ROOT = r"Software\Classes"

    def install(self, scheme: str, command: list[str]) -> str:
        """Create the protocol keys for ``scheme``."""
        import winreg

        scheme = validate_scheme(scheme)
        key_path = rf"{self.ROOT}\{scheme}"
        exe = command[0]
        open_command = subprocess.list2cmdline([*command, "open"]) + ' "%1"'

        try:
            with winreg.CreateKey(winreg.HKEY_CURRENT_USER, key_path) as key:
                winreg.SetValueEx(key, "", 0, winreg.REG_SZ, f"URL:{scheme.upper()} Protocol")
                winreg.SetValueEx(key, "URL Protocol", 0, winreg.REG_SZ, "")
                with winreg.CreateKey(key, "DefaultIcon") as icon_key:
                    winreg.SetValueEx(icon_key, "", 0, winreg.REG_SZ, f"{exe},0")
                with winreg.CreateKey(key, r"shell\open\command") as cmd_key:
                    winreg.SetValueEx(cmd_key, "", 0, winreg.REG_SZ, open_command)
        except OSError as e:
            raise RegistrationError(
                f"Failed to register {scheme}:// in the registry",
                details=str(e),
                original_error=e,
            ) from e

        logger.info(f"Registered {scheme}:// -> {open_command}")
        return key_path

    def uninstall(self, scheme: str) -> bool:
        """Delete the protocol keys. Returns False if none were installed."""
        import winreg

        scheme = validate_scheme(scheme)
        base = rf"{self.ROOT}\{scheme}"
        # Children first; DeleteKey cannot remove keys with subkeys.
        subkeys = [
            rf"{base}\shell\open\command",
            rf"{base}\shell\open",
            rf"{base}\shell",
            rf"{base}\DefaultIcon",
            base,
        ]

        removed = False
        for key_path in subkeys:
            try:
                winreg.DeleteKey(winreg.HKEY_CURRENT_USER, key_path)
                removed = True
            except FileNotFoundError:
                continue
            except OSError as e:
                raise RegistrationError(
                    f"Failed to delete registry key {key_path}",
                    details=str(e),
                    original_error=e,
                ) from e

        if removed:
            logger.info(f"Removed registration for {scheme}://")
        return removed


def get_registrar() -> DesktopEntryRegistrar | WindowsRegistrar:
    """Registrar for the current platform."""
    if sys.platform == "win32":
        return WindowsRegistrar()
    if sys.platform == "darwin":
        raise RegistrationError(
            "Automatic registration is not supported on macOS",
            solution="Declare the scheme in an app bundle's Info.plist (CFBundleURLTypes)",
        )
    return DesktopEntryRegistrar()


def _quote_exec_arg(arg: str) -> str:
    # Exec field rules: quote arguments containing reserved characters.
    if re.search(r"[\s\"'\\`$<>|&;*?#()]", arg):
        escaped = re.sub(r'(["`$\\])', r"\\\1", arg)
        return f'"{escaped}"'
    return arg
