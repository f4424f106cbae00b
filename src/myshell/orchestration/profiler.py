"""
Resource profiling of a single command.

The profiler runs one command with inherited standard streams, optionally
under a wall-clock timeout, and reports elapsed monotonic time together
with the CPU and peak memory figures the OS returns when the child is
reaped.
"""

import logging
import time
from typing import IO, Any, Optional, TextIO

import psutil

from ..models.results import ExitStatus, UsageReport
from ..models.runtime import StageSpec
from ..system.processes import flush_standard_streams, reap_with_usage, spawn_process
from ..validation import ErrorSeverity, ProgramNotFoundError, handle_error, report_error
from .log_manager import write_record
from .shared_state import ExitCodes, TimeoutConstants
from .watchdog import TimeoutEnforcer

logger = logging.getLogger(__name__)


class ResourceProfiler:
    """
    Runs commands to completion (or timeout) and measures them.

    One profiler owns one TimeoutEnforcer; only one command is profiled at
    a time.
    """

    def __init__(self, enforcer: Optional[TimeoutEnforcer] = None,
                 error_stream: Optional[TextIO] = None):
        """
        Args:
            enforcer: Timeout enforcer to use; a new one is created if omitted
            error_stream: Where user-facing errors go, ``sys.stderr`` by default
        """
        self.enforcer = enforcer if enforcer is not None else TimeoutEnforcer()
        self.error_stream = error_stream

    def profile(self, stage: StageSpec, timeout: Optional[int] = None,
                log_file: Optional[IO[Any]] = None) -> UsageReport:
        """
        Run ``stage`` once and return its usage report.

        Args:
            stage: The command to run
            timeout: Seconds after which the command is killed, None for no limit
            log_file: Open text file to append a record to, flushed before return

        Returns:
            The UsageReport for this invocation.

        Raises:
            ProcessCreationError: If the OS could not create the process; no
                report is produced in that case.
        """
        if timeout is not None and timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")

        flush_standard_streams()
        start = time.monotonic()

        try:
            process = spawn_process(stage)
        except ProgramNotFoundError as e:
            report_error(str(e), self.error_stream)
            report = UsageReport(
                command=stage.argv,
                wall_clock_seconds=time.monotonic() - start,
                user_cpu_seconds=0.0,
                system_cpu_seconds=0.0,
                max_rss=0,
                exit_status=ExitStatus(code=ExitCodes.NOT_FOUND, not_found=True),
            )
            return self._finish(report, log_file)

        target = self._kill_target(process.pid)
        if target is not None:
            self.enforcer.arm(target, timeout)

        fired = False

        def disarm() -> None:
            nonlocal fired
            fired = self.enforcer.disarm()

        try:
            exit_status, usage = reap_with_usage(process, before_reap=disarm)
            user_seconds = usage.ru_utime
            system_seconds = usage.ru_stime
            max_rss = usage.ru_maxrss
        except OSError as e:
            handle_error(e, f"waiting for '{stage.program}'",
                         severity=ErrorSeverity.DEBUG, reraise=False, logger=logger)
            report_error(f"wait failed for {stage.program}: {e}", self.error_stream)
            # The enforcer may still hold the target if the wait failed early.
            fired = self.enforcer.disarm() or fired
            exit_status = ExitStatus()
            user_seconds = system_seconds = 0.0
            max_rss = 0

        end = time.monotonic()
        # A kill that reached an already exited zombie does not change its status.
        timed_out = fired and exit_status.signal == TimeoutConstants.KILL_SIGNAL
        if timed_out:
            logger.info(f"'{stage}' exceeded its {timeout}s limit and was killed")

        report = UsageReport(
            command=stage.argv,
            wall_clock_seconds=end - start,
            user_cpu_seconds=user_seconds,
            system_cpu_seconds=system_seconds,
            max_rss=max_rss,
            exit_status=exit_status,
            timed_out=timed_out,
        )
        return self._finish(report, log_file)

    def _finish(self, report: UsageReport, log_file: Optional[IO[Any]]) -> UsageReport:
        if log_file is not None:
            write_record(log_file, report)
        logger.debug(
            f"Profiled {report.command}: real={report.wall_clock_seconds:.6f}s "
            f"returncode={report.exit_status.returncode}"
        )
        return report

    @staticmethod
    def _kill_target(pid: int) -> Optional[psutil.Process]:
        # The child is ours and unreaped, so its pid is still valid here
        # even if it already exited.
        try:
            return psutil.Process(pid)
        except psutil.Error as e:
            logger.warning(f"Cannot track PID {pid} for timeout enforcement: {e}")
            return None
