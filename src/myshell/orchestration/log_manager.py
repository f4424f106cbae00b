"""
Profiling report formatting and log management.

This module formats UsageReports for the interactive output and for the
persisted profiling log, and manages the append-mode log file.
"""

import logging
from pathlib import Path
from typing import IO, Any, Optional, Union

from ..models.results import UsageReport

logger = logging.getLogger(__name__)

RECORD_HEADER = "===== profiling result: command:"


def format_usage_report(report: UsageReport) -> str:
    """
    Format the interactive report printed after every profiling invocation.

    Args:
        report: The usage report to format

    Returns:
        Four newline-terminated lines: real, user, sys and maxrss.
    """
    return (
        f"real: {report.wall_clock_seconds:.6f} s\n"
        f"user: {report.user_cpu_seconds:.6f} s\n"
        f"sys:  {report.system_cpu_seconds:.6f} s\n"
        f"maxrss: {report.max_rss}\n"
    )


def format_log_record(report: UsageReport) -> str:
    """
    Format one persisted log record.

    The record is the interactive report preceded by a header naming the
    command and followed by a blank separator line.
    """
    header = RECORD_HEADER + "".join(f" {arg}" for arg in report.command)
    return f"{header}\n{format_usage_report(report)}\n"


class ProfileLogManager:
    """
    Owns one profiling log file opened in append mode.

    The file is never truncated; every record is flushed as soon as it is
    written so records survive a crash of the shell.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.log_file: Optional[IO[Any]] = None

    def open(self) -> "ProfileLogManager":
        """
        Open the log file for appending.

        Raises:
            OSError: If the file cannot be opened
        """
        self.log_file = open(self.path, "a", encoding="utf-8")
        logger.debug(f"Opened profiling log {self.path}")
        return self

    def append_record(self, report: UsageReport) -> None:
        """Append and flush one record for ``report``."""
        if self.log_file is None:
            raise ValueError(f"Profiling log {self.path} is not open")
        write_record(self.log_file, report)

    def close(self) -> None:
        """Close the log file, logging instead of raising on failure."""
        if self.log_file is None:
            return
        try:
            self.log_file.close()
            logger.debug(f"Closed profiling log {self.path}")
        except OSError as e:
            logger.warning(f"Failed to close profiling log {self.path}: {e}")
        finally:
            self.log_file = None

    def __enter__(self) -> "ProfileLogManager":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def write_record(log_file: IO[Any], report: UsageReport) -> None:
    """Write one record to an already open text file and flush it."""
    log_file.write(format_log_record(report))
    log_file.flush()
