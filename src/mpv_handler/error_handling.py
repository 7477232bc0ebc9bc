"""Error types and user-facing error display for mpv-handler."""

import logging
from enum import Enum
from pathlib import Path

from rich.console import Console
from rich.markup import escape

logger = logging.getLogger(__name__)
console = Console(stderr=True)


class ErrorCategory(Enum):
    """Categories of errors for better user experience."""

    CONFIGURATION = "configuration"
    PAYLOAD = "payload"
    EXTERNAL_TOOL = "external_tool"
    FILESYSTEM = "filesystem"
    SYSTEM = "system"
    USER_INPUT = "user_input"


class HandlerError(Exception):
    """Base exception for mpv-handler with enhanced user experience."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        *,
        solution: str | None = None,
        details: str | None = None,
        recoverable: bool = True,
        log_level: int = logging.ERROR,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.solution = solution
        self.details = details
        self.recoverable = recoverable
        self.log_level = log_level
        self.original_error = original_error

    def display_to_user(self) -> None:
        """Display error to user with helpful context."""
        category_styles = {
            ErrorCategory.CONFIGURATION: ("⚙️", "yellow"),
            ErrorCategory.PAYLOAD: ("📦", "red"),
            ErrorCategory.EXTERNAL_TOOL: ("🔧", "red"),
            ErrorCategory.FILESYSTEM: ("📁", "red"),
            ErrorCategory.SYSTEM: ("💻", "red"),
            ErrorCategory.USER_INPUT: ("⌨️", "yellow"),
        }

        emoji, color = category_styles.get(self.category, ("❌", "red"))

        console.print(
            f"\n{emoji} [{color} bold]{self.category.value.replace('_', ' ').title()} Error[/{color} bold]",
        )
        console.print(f"[{color}]{escape(self.message)}[/{color}]")

        if self.details:
            console.print(f"\n[dim]Details:[/dim] {escape(self.details)}")

        if self.solution:
            console.print(f"\n[green]💡 Solution:[/green] {self.solution}")

        if not self.recoverable:
            console.print(
                "\n[dim]This error requires intervention before continuing.[/dim]",
            )

        if self.original_error:
            logger.log(
                self.log_level,
                "%s: %s",
                self.category.value,
                self.message,
                exc_info=self.original_error,
            )
        else:
            logger.log(self.log_level, "%s: %s", self.category.value, self.message)


class ConfigurationError(HandlerError):
    """Configuration-related errors."""

    def __init__(self, message: str, *, config_path: Path | None = None, **kwargs):
        solution = kwargs.pop("solution", None)
        if not solution and config_path:
            solution = f"Check your configuration file at {config_path}"
        super().__init__(
            message,
            ErrorCategory.CONFIGURATION,
            solution=solution,
            **kwargs,
        )


class SchemeMismatchError(HandlerError):
    """The URI does not carry the expected ``scheme://`` prefix."""

    def __init__(self, raw: str, *, expected: str | None = None, **kwargs):
        if expected:
            message = f"URI does not start with '{expected}://'"
        else:
            message = "URI has no '<scheme>://' prefix"
        self.raw = raw
        self.expected = expected
        super().__init__(
            message,
            ErrorCategory.USER_INPUT,
            details=kwargs.pop("details", raw),
            recoverable=False,
            **kwargs,
        )


class DecodeError(HandlerError):
    """The sanitized payload is not valid Base64 (or not valid UTF-8)."""

    def __init__(self, raw: str, cleaned: str, **kwargs):
        self.raw = raw
        self.cleaned = cleaned
        message = kwargs.pop("message", "Payload could not be Base64-decoded")
        super().__init__(
            message,
            ErrorCategory.PAYLOAD,
            details=f"raw={raw!r} cleaned={cleaned!r}",
            solution=kwargs.pop(
                "solution",
                "Check that the sender encodes the payload as URL-safe Base64",
            ),
            recoverable=False,
            **kwargs,
        )


class MalformedPayloadError(HandlerError):
    """Decoded payload is neither an instruction object nor an array of them."""

    def __init__(self, text: str, parse_error: Exception | str | None = None, **kwargs):
        self.text = text
        self.parse_error = parse_error
        message = kwargs.pop("message", "Payload is not a JSON object or array")
        details = f"{parse_error}; text={text!r}" if parse_error else f"text={text!r}"
        super().__init__(
            message,
            ErrorCategory.PAYLOAD,
            details=details,
            recoverable=False,
            original_error=parse_error if isinstance(parse_error, Exception) else None,
            **kwargs,
        )


class UnknownTargetError(HandlerError):
    """No builder is registered for the instruction's target."""

    def __init__(self, target: str, **kwargs):
        self.target = target
        message = f"Unknown target '{target}'" if target else "Instruction has no target"
        super().__init__(
            message,
            ErrorCategory.CONFIGURATION,
            log_level=logging.WARNING,
            **kwargs,
        )


class MissingExecutablePathError(HandlerError):
    """Configuration has no usable executable path for the target."""

    def __init__(self, target: str, **kwargs):
        self.target = target
        super().__init__(
            f"No executable configured for target '{target}'",
            ErrorCategory.CONFIGURATION,
            solution=kwargs.pop(
                "solution",
                f"Set players.{target} in your configuration file",
            ),
            log_level=logging.WARNING,
            **kwargs,
        )


class ProcessStartError(HandlerError):
    """The OS refused to start the player process."""

    def __init__(self, executable: str, **kwargs):
        self.executable = executable
        super().__init__(
            f"Failed to start {executable}",
            ErrorCategory.EXTERNAL_TOOL,
            solution=kwargs.pop(
                "solution",
                f"Check {executable} exists and is executable",
            ),
            **kwargs,
        )


class RegistrationError(HandlerError):
    """Registering or removing the URI scheme with the OS failed."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            ErrorCategory.SYSTEM,
            recoverable=False,
            **kwargs,
        )


def handle_error(
    error: Exception,
    *,
    category: ErrorCategory | None = None,
    **kwargs,
) -> None:
    """Convert generic exceptions to HandlerError and display to user."""
    if isinstance(error, HandlerError):
        error.display_to_user()
        return

    if category is None:
        if isinstance(error, FileNotFoundError | PermissionError):
            category = ErrorCategory.FILESYSTEM
        else:
            category = ErrorCategory.SYSTEM

    handler_error = HandlerError(
        message=str(error) or "An unexpected error occurred",
        category=category,
        original_error=error,
        **kwargs,
    )
    handler_error.display_to_user()
