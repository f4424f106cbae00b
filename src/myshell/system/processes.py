"""
Process creation and reaping primitives.

This module provides the single-process creation primitive shared by the
pipeline orchestrator and the profiler, and the reaping helpers that turn a
terminated process into an ExitStatus (and, for profiling, resource usage).

Processes are created with ``subprocess.Popen`` and ``close_fds=True``, so a
child only ever holds the descriptors attached to its standard streams.
"""

import errno
import logging
import os
import resource
import subprocess
import sys
from typing import IO, Any, Callable, Optional, Tuple, Union

from ..models.results import ExitStatus
from ..models.runtime import StageSpec
from ..validation import ProcessCreationError, ProgramNotFoundError

logger = logging.getLogger(__name__)

# Anything accepted by Popen for stdin/stdout: None (inherit), an fd or a file.
StreamTarget = Union[None, int, IO[Any]]

# errno values that mean the program image could not be loaded, as opposed
# to the OS failing to create the process at all.
IMAGE_LOAD_ERRNOS = frozenset({
    errno.ENOENT,
    errno.EACCES,
    errno.ENOEXEC,
    errno.ENOTDIR,
    errno.EISDIR,
    errno.ELOOP,
    errno.ENAMETOOLONG,
    errno.EPERM,
})


def flush_standard_streams() -> None:
    """Flush Python-level buffers so children never see stale output ordering."""
    for stream in (sys.stdout, sys.stderr):
        try:
            stream.flush()
        except (OSError, ValueError):
            pass


def spawn_process(
    stage: StageSpec,
    stdin: StreamTarget = None,
    stdout: StreamTarget = None,
) -> subprocess.Popen:
    """Create one process for ``stage``.

    Args:
        stage: Program name and arguments.
        stdin: Descriptor or file for the child's stdin, None to inherit.
        stdout: Descriptor or file for the child's stdout, None to inherit.

    Returns:
        The started Popen object. The caller owns it and must reap it once.

    Raises:
        ProgramNotFoundError: If the program image could not be loaded.
        ProcessCreationError: If the OS could not create the process.
    """
    try:
        process = subprocess.Popen(
            list(stage.argv),
            stdin=stdin,
            stdout=stdout,
            close_fds=True,
        )
    except OSError as e:
        if e.errno in IMAGE_LOAD_ERRNOS:
            raise ProgramNotFoundError(stage.program, e) from e
        raise ProcessCreationError(stage.program, e) from e

    logger.debug(f"Started '{stage}' with PID {process.pid}")
    return process


def wait_for_exit(process: subprocess.Popen) -> ExitStatus:
    """Reap a process and return its exit status."""
    returncode = process.wait()
    logger.debug(f"PID {process.pid} exited with returncode {returncode}")
    return ExitStatus.from_returncode(returncode)


def reap_with_usage(
    process: subprocess.Popen,
    before_reap: Optional[Callable[[], None]] = None,
) -> Tuple[ExitStatus, resource.struct_rusage]:
    """Block until ``process`` terminates, then reap it and collect its rusage.

    Termination is first observed without reaping (``WNOWAIT``), so the pid
    cannot be recycled while ``before_reap`` runs. The profiler uses that
    window to disarm its watchdog: any kill delivered up to that point hits
    the original process or its zombie, never a new process with the same
    pid. Platforms without ``os.waitid`` call ``before_reap`` right after the
    reap instead.

    Args:
        process: A started, not yet reaped process.
        before_reap: Callback run after termination and before reaping.

    Returns:
        Tuple of (exit status, resource usage of the reaped child).

    Raises:
        ChildProcessError: If the process was already reaped elsewhere.
        OSError: On any other wait failure.
    """
    pid = process.pid
    callback_done = False
    try:
        if hasattr(os, "waitid"):
            os.waitid(os.P_PID, pid, os.WEXITED | os.WNOWAIT)
            if before_reap is not None:
                callback_done = True
                before_reap()
        _, status, usage = os.wait4(pid, 0)
    finally:
        if before_reap is not None and not callback_done:
            before_reap()

    # Record the status on the Popen object so it never tries to reap again.
    process.returncode = os.waitstatus_to_exitcode(status)
    return ExitStatus.from_wait_status(status), usage
