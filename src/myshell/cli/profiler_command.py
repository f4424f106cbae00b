"""
The resident profiling command.

Usage (default command name ``myprof``)::

    myprof run <command> [args...]
    myprof run-save <logfile> <command> [args...]
    myprof max-time <seconds> <command> [args...]

Every successful invocation prints the usage report to standard output;
``run-save`` additionally appends a record to the log file. Malformed
invocations print a usage error and run nothing.
"""

import logging
import sys
import threading
from dataclasses import dataclass
from typing import Optional, Sequence, TextIO

from ..models.results import UsageReport
from ..models.runtime import StageSpec
from ..orchestration.log_manager import ProfileLogManager, format_usage_report
from ..orchestration.profiler import ResourceProfiler
from ..validation import (
    ProcessCreationError,
    ValidationError,
    report_error,
    validate_positive_integer,
)

logger = logging.getLogger(__name__)

RUN = "run"
RUN_SAVE = "run-save"
MAX_TIME = "max-time"


@dataclass(frozen=True)
class ProfileRequest:
    """A parsed profiler invocation."""
    subcommand: str
    command: StageSpec
    timeout: Optional[int] = None
    log_path: Optional[str] = None


def usage_text(command_name: str) -> str:
    return (
        f"usage: {command_name} [{RUN} | {RUN_SAVE} <file> | {MAX_TIME} <seconds>] "
        f"<command> [args...]"
    )


def parse_profiler_args(args: Sequence[str], command_name: str = "myprof") -> ProfileRequest:
    """
    Parse the arguments that follow the profiler command name.

    Args:
        args: Tokens after the command name, e.g. ``["max-time", "5", "sleep", "1"]``
        command_name: Name used in error messages

    Returns:
        The parsed ProfileRequest

    Raises:
        ValidationError: On a missing or unknown sub-command, a missing file
            name or command, or an invalid number of seconds.
    """
    if not args:
        raise ValidationError(usage_text(command_name), field_name="subcommand")

    subcommand, rest = args[0], list(args[1:])

    if subcommand == RUN:
        if not rest:
            raise ValidationError(f"{command_name} {RUN}: missing command", field_name="command")
        return ProfileRequest(RUN, StageSpec(tuple(rest)))

    if subcommand == RUN_SAVE:
        if not rest:
            raise ValidationError(f"{command_name} {RUN_SAVE}: missing file name", field_name="file")
        if len(rest) < 2:
            raise ValidationError(f"{command_name} {RUN_SAVE}: missing command", field_name="command")
        return ProfileRequest(RUN_SAVE, StageSpec(tuple(rest[1:])), log_path=rest[0])

    if subcommand == MAX_TIME:
        if not rest:
            raise ValidationError(f"{command_name} {MAX_TIME}: missing seconds", field_name="seconds")
        try:
            seconds = validate_positive_integer(rest[0], min_value=1,
                                                max_value=int(threading.TIMEOUT_MAX),
                                                field_name="seconds")
        except ValidationError as e:
            raise ValidationError(
                f"{command_name} {MAX_TIME}: invalid seconds '{rest[0]}'",
                field_name="seconds",
                value=rest[0],
            ) from e
        if len(rest) < 2:
            raise ValidationError(f"{command_name} {MAX_TIME}: missing command", field_name="command")
        return ProfileRequest(MAX_TIME, StageSpec(tuple(rest[1:])), timeout=seconds)

    raise ValidationError(
        f"{command_name}: unknown option '{subcommand}'\n{usage_text(command_name)}",
        field_name="subcommand",
        value=subcommand,
    )


class ProfilerCommand:
    """
    Runs parsed profiler invocations and prints their reports.
    """

    def __init__(self, profiler: Optional[ResourceProfiler] = None,
                 command_name: str = "myprof",
                 stdout: Optional[TextIO] = None,
                 stderr: Optional[TextIO] = None):
        self.stdout = stdout if stdout is not None else sys.stdout
        self.stderr = stderr
        self.profiler = profiler if profiler is not None else ResourceProfiler(error_stream=stderr)
        self.command_name = command_name

    def execute(self, args: Sequence[str]) -> Optional[UsageReport]:
        """
        Parse and run one invocation.

        Returns:
            The UsageReport, or None when nothing was run (usage error,
            unopenable log file, process creation failure).
        """
        try:
            request = parse_profiler_args(args, self.command_name)
        except ValidationError as e:
            report_error(str(e), self.stderr)
            return None

        log_manager: Optional[ProfileLogManager] = None
        if request.log_path is not None:
            try:
                log_manager = ProfileLogManager(request.log_path).open()
            except OSError as e:
                report_error(f"{self.command_name} {RUN_SAVE}: cannot open '{request.log_path}': {e.strerror or e}",
                             self.stderr)
                return None

        try:
            report = self.profiler.profile(
                request.command,
                timeout=request.timeout,
                log_file=log_manager.log_file if log_manager else None,
            )
        except ProcessCreationError as e:
            report_error(str(e), self.stderr)
            return None
        finally:
            if log_manager is not None:
                log_manager.close()

        self.stdout.write(format_usage_report(report))
        self.stdout.flush()
        return report
