"""Sequential, best-effort launching of player processes."""

import dataclasses
import logging
import subprocess
import sys
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

from mpv_handler.config import HandlerConfig
from mpv_handler.error_handling import (
    HandlerError,
    MissingExecutablePathError,
    ProcessStartError,
    UnknownTargetError,
)
from mpv_handler.payload.instruction import PlaybackInstruction
from mpv_handler.players.builders import BUILDERS, Builder, get_builder

logger = logging.getLogger(__name__)

Launcher = Callable[..., Any]


@dataclass
class LaunchOutcome:
    """Result of one instruction's launch attempt."""

    instruction: PlaybackInstruction
    argv: list[str] | None = None
    error: HandlerError | None = None

    @property
    def success(self) -> bool:
        """Check if the process was started."""
        return self.error is None

    def __str__(self) -> str:
        if self.success:
            return f"Launched {self.instruction.describe()}"
        return f"Skipped {self.instruction.describe()}: {self.error}"


@dataclass
class DispatchReport:
    """Outcomes of one dispatch run, in instruction order."""

    outcomes: list[LaunchOutcome] = field(default_factory=list)

    @property
    def launched(self) -> list[LaunchOutcome]:
        """Outcomes whose process was started."""
        return [o for o in self.outcomes if o.success]

    @property
    def failed(self) -> list[LaunchOutcome]:
        """Outcomes that did not start a process."""
        return [o for o in self.outcomes if not o.success]

    def __str__(self) -> str:
        return f"{len(self.launched)}/{len(self.outcomes)} launched"


def detached_popen_kwargs() -> dict[str, Any]:
    """Popen arguments for a fire-and-forget child process."""
    kwargs: dict[str, Any] = {
        "stdin": subprocess.DEVNULL,
        "stdout": subprocess.DEVNULL,
        "stderr": subprocess.DEVNULL,
        "close_fds": True,
    }
    if sys.platform == "win32":
        kwargs["creationflags"] = (
            subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
        )
    else:
        kwargs["start_new_session"] = True
    return kwargs


class Dispatcher:
    """Launches one player process per instruction.

    Failures are isolated per instruction: an unknown target, a missing
    executable path or an OS spawn error is logged and recorded, and the
    remaining instructions still run. Started processes are never waited on.
    """

    def __init__(
        self,
        config: HandlerConfig,
        *,
        builders: Mapping[str, Builder] = BUILDERS,
        launcher: Launcher | None = None,
        sleep: Callable[[float], None] | None = None,
    ):
        self.config = config
        self.builders = builders
        self.launcher = launcher or subprocess.Popen
        self.sleep = sleep or time.sleep

    def dispatch(
        self,
        instructions: Sequence[PlaybackInstruction],
        *,
        scheme: str | None = None,
    ) -> DispatchReport:
        """Launch every instruction in order, pacing launches."""
        report = DispatchReport()
        total = len(instructions)

        for index, instruction in enumerate(instructions, start=1):
            outcome = self._dispatch_one(instruction, scheme)
            report.outcomes.append(outcome)

            if outcome.success:
                logger.info(f"[{index}/{total}] {outcome}")
            else:
                logger.log(outcome.error.log_level, f"[{index}/{total}] {outcome}")

            if index < total and self.config.launch_delay > 0:
                self.sleep(self.config.launch_delay)

        logger.info(f"Dispatch finished: {report}")
        return report

    def _dispatch_one(
        self,
        instruction: PlaybackInstruction,
        scheme: str | None,
    ) -> LaunchOutcome:
        if not instruction.is_dispatchable:
            return LaunchOutcome(instruction, error=UnknownTargetError(""))

        executable = self.config.executable_for(instruction.target)
        if not executable:
            return LaunchOutcome(
                instruction,
                error=MissingExecutablePathError(instruction.target),
            )

        builder = get_builder(instruction.target, self.builders)
        if builder is None:
            return LaunchOutcome(
                instruction,
                error=UnknownTargetError(instruction.target),
            )

        resolved = self._with_defaults(instruction, scheme)
        argv = builder(executable, resolved)
        logger.debug(f"Executing: {' '.join(argv)}")

        try:
            self.launcher(argv, **detached_popen_kwargs())
        except (OSError, ValueError) as e:
            return LaunchOutcome(
                resolved,
                argv=argv,
                error=ProcessStartError(executable, details=str(e), original_error=e),
            )

        return LaunchOutcome(resolved, argv=argv)

    def _with_defaults(
        self,
        instruction: PlaybackInstruction,
        scheme: str | None,
    ) -> PlaybackInstruction:
        """Fill profile and user agent from configuration when not given."""
        changes: dict[str, str] = {}

        if not instruction.profile:
            profile = self.config.profile_for_scheme(scheme)
            if profile:
                changes["profile"] = profile

        if not instruction.user_agent:
            user_agent = self.config.user_agent_for(_url_path(instruction.url))
            if user_agent:
                logger.debug(f"Using user agent {user_agent!r} for {instruction.url}")
                changes["user_agent"] = user_agent

        if not changes:
            return instruction
        return dataclasses.replace(instruction, **changes)


def _url_path(url: str) -> str:
    try:
        return urlsplit(url).path
    except ValueError:
        return ""

