"""
Integration tests for the resource profiler and the profiler command.

These tests create real processes and rely on real timing; the timeout
tests take a few seconds each.
"""

import io
import shlex
import signal
import sys

import pytest

from myshell.models.runtime import StageSpec
from myshell.orchestration.log_manager import RECORD_HEADER
from myshell.orchestration.profiler import ResourceProfiler
from myshell.orchestration.watchdog import EnforcerState

PYTHON = shlex.quote(sys.executable)


def py(code: str) -> StageSpec:
    return StageSpec((sys.executable, "-c", code))


@pytest.fixture
def profiler():
    return ResourceProfiler(error_stream=io.StringIO())


@pytest.mark.integration
class TestResourceProfiler:
    """Test cases for measuring one command."""

    def test_measures_wall_clock(self, profiler):
        report = profiler.profile(py("import time; time.sleep(0.3)"))

        assert report.exit_status.code == 0
        assert 0.25 <= report.wall_clock_seconds < 2.0
        assert report.timed_out is False

    def test_measures_cpu_time(self, profiler):
        report = profiler.profile(py("x = 0\nfor i in range(3_000_000):\n    x += i"))

        assert report.user_cpu_seconds > 0.0
        assert report.user_cpu_seconds + report.system_cpu_seconds <= report.wall_clock_seconds + 0.1

    def test_measures_peak_memory(self, profiler):
        """ru_maxrss is reported in KiB on Linux."""
        report = profiler.profile(py("b = bytearray(64 * 1024 * 1024); b[::4096] = b'x' * len(b[::4096])"))

        assert report.max_rss >= 60 * 1024

    def test_exit_code_is_reported(self, profiler):
        report = profiler.profile(py("import sys; sys.exit(7)"))

        assert report.exit_status.code == 7

    def test_missing_program(self, profiler):
        """A program that cannot be loaded yields a zeroed 127 report."""
        report = profiler.profile(StageSpec(("no-such-program-myshell",)))

        assert report.exit_status.code == 127
        assert report.exit_status.not_found
        assert report.user_cpu_seconds == 0.0
        assert report.max_rss == 0
        assert "command not found" in profiler.error_stream.getvalue()

    def test_invalid_timeout(self, profiler):
        with pytest.raises(ValueError):
            profiler.profile(py("pass"), timeout=0)

    def test_enforcer_is_disarmed_afterwards(self, profiler):
        profiler.profile(py("pass"), timeout=5)

        assert profiler.enforcer.state is EnforcerState.DISARMED
        assert profiler.enforcer.slot.current is None

    def test_log_record_written(self, profiler, temp_dir):
        log_path = temp_dir / "prof.log"
        with open(log_path, "a", encoding="utf-8") as log_file:
            profiler.profile(py("pass"), log_file=log_file)

        assert log_path.read_text().startswith(f"{RECORD_HEADER} {sys.executable} -c pass\n")


@pytest.mark.integration
@pytest.mark.slow
class TestTimeouts:
    """Test cases for the max-time watchdog with real processes."""

    def test_timeout_kills_long_command(self, profiler):
        report = profiler.profile(py("import time; time.sleep(10)"), timeout=1)

        assert report.timed_out is True
        assert report.exit_status.signal == signal.SIGKILL
        assert 0.9 <= report.wall_clock_seconds < 2.5

    def test_command_finishing_in_time_is_not_killed(self, profiler):
        report = profiler.profile(py("import time; time.sleep(1)"), timeout=5)

        assert report.timed_out is False
        assert report.exit_status.code == 0
        assert 0.9 <= report.wall_clock_seconds < 3.0

    def test_repeated_short_runs_never_misfire(self, profiler):
        """Commands finishing near their deadline are killed or not, never both."""
        for _ in range(5):
            report = profiler.profile(py("pass"), timeout=1)
            assert report.timed_out is False
            assert report.exit_status.code == 0


@pytest.mark.integration
class TestProfilerThroughShell:
    """The profiler command as typed at the prompt."""

    def test_run_save_appends_records(self, test_utils, temp_dir):
        log_path = temp_dir / "prof.log"
        shell, stdout, stderr = test_utils.make_shell()

        for _ in range(2):
            shell.execute_line(f"myprof run-save {shlex.quote(str(log_path))} {PYTHON} -c pass\n")

        content = log_path.read_text()
        assert content.count(RECORD_HEADER) == 2
        assert content.count("maxrss: ") == 2
        assert stdout.getvalue().count("real: ") == 2
        assert stderr.getvalue() == ""

    @pytest.mark.slow
    def test_max_time_through_shell(self, test_utils):
        shell, stdout, _ = test_utils.make_shell()

        shell.execute_line(f"myprof max-time 1 {PYTHON} -c 'import time; time.sleep(10)'\n")

        assert shell.exit_code == 128 + signal.SIGKILL
        assert "real: 1." in stdout.getvalue()

    def test_exit_status_after_profiling(self, test_utils):
        shell, _, _ = test_utils.make_shell()

        shell.execute_line(f"myprof run {PYTHON} -c 'import sys; sys.exit(4)'\n")

        assert shell.exit_code == 4
