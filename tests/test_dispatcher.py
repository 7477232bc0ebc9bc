"""Tests for the instruction dispatcher."""

import subprocess
from unittest.mock import Mock

import pytest

from mpv_handler.config import HandlerConfig
from mpv_handler.core.dispatcher import Dispatcher, DispatchReport, detached_popen_kwargs
from mpv_handler.error_handling import (
    MissingExecutablePathError,
    ProcessStartError,
    UnknownTargetError,
)
from mpv_handler.payload.instruction import PlaybackInstruction


@pytest.fixture
def config():
    """Create test config."""
    return HandlerConfig(
        players={"mpv": "/usr/bin/mpv", "vlc": "/usr/bin/vlc", "potplayer": "/opt/pot"},
        launch_delay=0.02,
        scheme_profiles={"mpv": "multi"},
        user_agents={"/Videos/": "JellyUA/1.0"},
    )


@pytest.fixture
def launcher():
    """Fake process launcher."""
    return Mock()


@pytest.fixture
def sleep():
    """Fake sleep."""
    return Mock()


@pytest.fixture
def dispatcher(config, launcher, sleep):
    """Create dispatcher with fake launcher and sleep."""
    return Dispatcher(config, launcher=launcher, sleep=sleep)


def launched_argv(launcher: Mock) -> list[list[str]]:
    return [c.args[0] for c in launcher.call_args_list]


class TestDispatchOrder:
    """Test sequential dispatch."""

    def test_launches_in_order(self, dispatcher, launcher):
        """Test each instruction starts one process, in order."""
        instructions = [
            PlaybackInstruction(target="mpv", url="http://x/1.mkv"),
            PlaybackInstruction(target="vlc", url="http://x/2.mkv"),
            PlaybackInstruction(target="mpv", url="http://x/3.mkv"),
        ]

        report = dispatcher.dispatch(instructions)

        assert launched_argv(launcher) == [
            ["/usr/bin/mpv", "http://x/1.mkv"],
            ["/usr/bin/vlc", "http://x/2.mkv"],
            ["/usr/bin/mpv", "http://x/3.mkv"],
        ]
        assert len(report.launched) == 3
        assert report.failed == []

    def test_delay_between_launches(self, dispatcher, sleep):
        """Test the pacing delay runs between, not after, launches."""
        instructions = [PlaybackInstruction(target="mpv", url=str(i)) for i in range(3)]

        dispatcher.dispatch(instructions)

        assert sleep.call_count == 2
        sleep.assert_called_with(0.02)

    def test_single_instruction_no_delay(self, dispatcher, sleep):
        """Test a single launch does not sleep."""
        dispatcher.dispatch([PlaybackInstruction(target="mpv", url="u")])

        sleep.assert_not_called()

    def test_zero_delay_disables_sleep(self, launcher, sleep):
        """Test launch_delay = 0 skips pacing."""
        dispatcher = Dispatcher(
            HandlerConfig(players={"mpv": "mpv"}, launch_delay=0),
            launcher=launcher,
            sleep=sleep,
        )

        dispatcher.dispatch([PlaybackInstruction(target="mpv", url="a")] * 2)

        sleep.assert_not_called()
        assert launcher.call_count == 2

    def test_process_detached(self, dispatcher, launcher):
        """Test processes are started without pipes."""
        dispatcher.dispatch([PlaybackInstruction(target="mpv", url="u")])

        kwargs = launcher.call_args.kwargs
        assert kwargs["stdin"] == subprocess.DEVNULL
        assert kwargs["stdout"] == subprocess.DEVNULL
        assert kwargs["stderr"] == subprocess.DEVNULL
        assert kwargs == detached_popen_kwargs()


    def test_target_case_and_whitespace_ignored(self, dispatcher, launcher):
        """Test path and builder lookups normalize the target the same way."""
        report = dispatcher.dispatch([PlaybackInstruction(target=" MPV ", url="a")])

        assert launched_argv(launcher) == [["/usr/bin/mpv", "a"]]
        assert not report.failed


class TestFailureIsolation:
    """Test per-instruction failures never abort the batch."""

    def test_unknown_target(self, dispatcher, launcher):
        """Test a target with a path but no builder is skipped."""
        instructions = [
            PlaybackInstruction(target="mpv", url="a"),
            PlaybackInstruction(target="potplayer", url="b"),
            PlaybackInstruction(target="mpv", url="c"),
        ]

        report = dispatcher.dispatch(instructions)

        assert launched_argv(launcher) == [["/usr/bin/mpv", "a"], ["/usr/bin/mpv", "c"]]
        assert len(report.failed) == 1
        assert isinstance(report.failed[0].error, UnknownTargetError)
        assert report.failed[0].error.target == "potplayer"

    def test_unconfigured_target(self, launcher, sleep):
        """Test a target with no executable path is skipped."""
        dispatcher = Dispatcher(
            HandlerConfig(players={"mpv": "/usr/bin/mpv", "vlc": "  "}),
            launcher=launcher,
            sleep=sleep,
        )
        instructions = [
            PlaybackInstruction(target="vlc", url="a"),
            PlaybackInstruction(target="mpv", url="b"),
            PlaybackInstruction(target="kodi", url="c"),
        ]

        report = dispatcher.dispatch(instructions)

        assert launched_argv(launcher) == [["/usr/bin/mpv", "b"]]
        errors = [o.error for o in report.failed]
        assert all(isinstance(e, MissingExecutablePathError) for e in errors)
        assert [e.target for e in errors] == ["vlc", "kodi"]

    def test_empty_target(self, dispatcher, launcher):
        """Test an instruction without target is skipped."""
        report = dispatcher.dispatch(
            [
                PlaybackInstruction(target="", url="a"),
                PlaybackInstruction(target="mpv", url="b"),
            ],
        )

        assert launcher.call_count == 1
        assert isinstance(report.outcomes[0].error, UnknownTargetError)
        assert report.outcomes[1].success

    def test_process_start_failure(self, dispatcher, launcher):
        """Test an OS spawn error is recorded and the batch continues."""
        launcher.side_effect = [FileNotFoundError("no such file"), Mock()]

        report = dispatcher.dispatch(
            [
                PlaybackInstruction(target="mpv", url="a"),
                PlaybackInstruction(target="mpv", url="b"),
            ],
        )

        assert launcher.call_count == 2
        first, second = report.outcomes
        assert isinstance(first.error, ProcessStartError)
        assert first.error.executable == "/usr/bin/mpv"
        assert first.argv == ["/usr/bin/mpv", "a"]
        assert second.success

    def test_failures_still_paced(self, dispatcher, sleep):
        """Test the delay is applied after skipped instructions too."""
        dispatcher.dispatch(
            [
                PlaybackInstruction(target="nope", url="a"),
                PlaybackInstruction(target="mpv", url="b"),
            ],
        )

        sleep.assert_called_once_with(0.02)


class TestInstructionDefaults:
    """Test configuration-driven defaults."""

    def test_scheme_profile_applied(self, dispatcher, launcher):
        """Test the scheme's default profile is used when none is given."""
        dispatcher.dispatch([PlaybackInstruction(target="mpv", url="u")], scheme="mpv")

        assert launched_argv(launcher) == [["/usr/bin/mpv", "--profile=multi", "u"]]

    def test_instruction_profile_wins(self, dispatcher, launcher):
        """Test an explicit profile overrides the scheme default."""
        dispatcher.dispatch(
            [PlaybackInstruction(target="mpv", url="u", profile="cinema")],
            scheme="mpv",
        )

        assert "--profile=cinema" in launched_argv(launcher)[0]

    def test_user_agent_by_path(self, dispatcher, launcher):
        """Test user agent mapping matches on the URL path."""
        dispatcher.dispatch(
            [PlaybackInstruction(target="mpv", url="http://host/Videos/1/stream.mkv")],
        )

        assert "--user-agent=JellyUA/1.0" in launched_argv(launcher)[0]

    def test_user_agent_not_matched_on_host(self, dispatcher, launcher):
        """Test the pattern is not matched against the query string."""
        dispatcher.dispatch(
            [PlaybackInstruction(target="mpv", url="http://host/a.mkv?x=/Videos/")],
        )

        assert launched_argv(launcher) == [["/usr/bin/mpv", "http://host/a.mkv?x=/Videos/"]]

    def test_original_instruction_untouched(self, dispatcher):
        """Test defaults produce a new instruction value."""
        original = PlaybackInstruction(target="mpv", url="u")

        report = dispatcher.dispatch([original], scheme="mpv")

        assert original.profile is None
        assert report.outcomes[0].instruction.profile == "multi"


class TestDispatchReport:
    """Test report helpers."""

    def test_empty_report(self):
        """Test a report without outcomes."""
        report = DispatchReport()

        assert report.launched == []
        assert str(report) == "0/0 launched"

    def test_summary(self, dispatcher):
        """Test the summary string."""
        report = dispatcher.dispatch(
            [
                PlaybackInstruction(target="mpv", url="a"),
                PlaybackInstruction(target="nope", url="b"),
            ],
        )

        assert str(report) == "1/2 launched"
