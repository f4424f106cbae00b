"""
Execution result data models.

This module defines how a terminated process is described to the rest of the
shell: its exit status and, for profiled commands, the resource accounting
gathered when it was reaped.
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class ExitStatus:
    """
    How a process ended: a normal exit code or the terminating signal.

    Both fields are ``None`` when the status could not be retrieved.
    """

    code: Optional[int] = None
    signal: Optional[int] = None
    # True when the shell synthesized the status because the program
    # image could not be loaded.
    not_found: bool = False

    @classmethod
    def from_wait_status(cls, status: int) -> "ExitStatus":
        """Decode a raw status as returned by ``os.wait4``."""
        if os.WIFSIGNALED(status):
            return cls(signal=os.WTERMSIG(status))
        if os.WIFEXITED(status):
            return cls(code=os.WEXITSTATUS(status))
        return cls()

    @classmethod
    def from_returncode(cls, returncode: Optional[int]) -> "ExitStatus":
        """Decode a ``subprocess.Popen.returncode`` (negative for signals)."""
        if returncode is None:
            return cls()
        if returncode < 0:
            return cls(signal=-returncode)
        return cls(code=returncode)

    @property
    def returncode(self) -> Optional[int]:
        """The status in ``subprocess`` convention."""
        if self.signal is not None:
            return -self.signal
        return self.code

    @property
    def signaled(self) -> bool:
        return self.signal is not None

    @property
    def success(self) -> bool:
        return self.code == 0

    @property
    def shell_code(self) -> int:
        """The status as a shell exit code (128 + signal for signals)."""
        if self.signal is not None:
            return 128 + self.signal
        if self.code is None:
            return 1
        return self.code


@dataclass(frozen=True)
class UsageReport:
    """
    Wall-clock, CPU and memory accounting for one profiled invocation.
    """

    # The profiled argument vector.
    command: Tuple[str, ...]
    # Elapsed seconds measured with the monotonic clock.
    wall_clock_seconds: float
    user_cpu_seconds: float
    system_cpu_seconds: float
    # Peak resident set size in the units the OS reports (KiB on Linux).
    max_rss: int
    exit_status: ExitStatus
    # True when the timeout enforcer killed the process.
    timed_out: bool = False

    def __post_init__(self):
        object.__setattr__(self, "command", tuple(self.command))
        if self.wall_clock_seconds < 0:
            raise ValueError("wall_clock_seconds must be >= 0")
