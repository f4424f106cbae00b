"""
Process orchestration for single commands and pipelines.

This module creates one OS process per pipeline stage, connects stage i's
stdout to stage i+1's stdin through a pipe, and waits for every created
process. Data-flow correctness depends only on the pipe close discipline:
the parent closes each endpoint as soon as the child that uses it exists,
so EOF propagates and no descriptor outlives the invocation.

All stages are created before any is waited on. A stage blocked on a full
pipe before its reader starts could in principle stall under adversarial
scheduling; pipe buffering makes this a non-issue for typical workloads.
"""

import logging
import os
import subprocess
from typing import List, Optional, TextIO, Tuple

from ..models.results import ExitStatus
from ..models.runtime import PipelineSpec, StageSpec
from ..system.processes import StreamTarget, flush_standard_streams, spawn_process, wait_for_exit
from ..validation import (
    ErrorSeverity,
    ProcessCreationError,
    ProgramNotFoundError,
    handle_error,
    report_error,
)
from .shared_state import ExitCodes

logger = logging.getLogger(__name__)


def _close_fd(fd: Optional[int]) -> None:
    if fd is None:
        return
    try:
        os.close(fd)
    except OSError as e:
        logger.warning(f"Failed to close descriptor {fd}: {e}")


class PipelineOrchestrator:
    """
    Creates, wires and reaps the processes of one command line.
    """

    def __init__(self, error_stream: Optional[TextIO] = None):
        """
        Args:
            error_stream: Where user-facing errors go, ``sys.stderr`` by default
        """
        self.error_stream = error_stream

    def run_single(self, stage: StageSpec, stdin: StreamTarget = None,
                   stdout: StreamTarget = None) -> ExitStatus:
        """
        Run one command with inherited (or given) standard streams.

        Returns:
            The exit status; a synthesized 127 status if the program could
            not be loaded.

        Raises:
            ProcessCreationError: If the OS could not create the process.
        """
        flush_standard_streams()
        try:
            process = spawn_process(stage, stdin=stdin, stdout=stdout)
        except ProgramNotFoundError as e:
            return self._not_found(e)
        return wait_for_exit(process)

    def run_pipeline(self, pipeline: PipelineSpec, stdin: StreamTarget = None,
                     stdout: StreamTarget = None) -> List[ExitStatus]:
        """
        Run every stage of ``pipeline`` concurrently, connected by pipes.

        Args:
            pipeline: The stages, in data-flow order
            stdin: Input for the first stage, None to inherit the shell's
            stdout: Output for the last stage, None to inherit the shell's

        Returns:
            Exit statuses of the dispatched stages in creation order. Stages
            abandoned after a process-creation failure have no entry.
        """
        flush_standard_streams()
        launched: List[Tuple[StageSpec, Optional[subprocess.Popen], Optional[ExitStatus]]] = []
        last_index = len(pipeline) - 1
        previous_read: Optional[int] = None

        try:
            for index, stage in enumerate(pipeline):
                read_end: Optional[int] = None
                write_end: Optional[int] = None
                if index < last_index:
                    try:
                        read_end, write_end = os.pipe()
                    except OSError as e:
                        self._creation_failed(ProcessCreationError(stage.program, e), index, len(pipeline))
                        break

                stage_stdin = previous_read if previous_read is not None else stdin
                stage_stdout = write_end if write_end is not None else stdout

                try:
                    process = spawn_process(stage, stdin=stage_stdin, stdout=stage_stdout)
                    launched.append((stage, process, None))
                except ProgramNotFoundError as e:
                    launched.append((stage, None, self._not_found(e)))
                except ProcessCreationError as e:
                    _close_fd(read_end)
                    read_end = None
                    self._creation_failed(e, index, len(pipeline))
                    break
                finally:
                    # The child has its own copies now (or never will).
                    _close_fd(write_end)
                    _close_fd(previous_read)
                    previous_read = None

                previous_read = read_end
        finally:
            _close_fd(previous_read)

        return self._wait_all(launched)

    def _wait_all(self, launched) -> List[ExitStatus]:
        """Reap every created process in creation order."""
        statuses: List[ExitStatus] = []
        for stage, process, status in launched:
            if process is None:
                statuses.append(status)
                continue
            try:
                statuses.append(wait_for_exit(process))
            except OSError as e:
                handle_error(e, f"waiting for '{stage.program}'",
                             severity=ErrorSeverity.DEBUG, reraise=False, logger=logger)
                report_error(f"wait failed for {stage.program}: {e}", self.error_stream)
                statuses.append(ExitStatus())
        logger.debug(f"Pipeline finished with returncodes {[s.returncode for s in statuses]}")
        return statuses

    def _not_found(self, error: ProgramNotFoundError) -> ExitStatus:
        logger.debug(f"Image load failed for '{error.program}': {error.cause}")
        report_error(str(error), self.error_stream)
        return ExitStatus(code=ExitCodes.NOT_FOUND, not_found=True)

    def _creation_failed(self, error: ProcessCreationError, index: int, total: int) -> None:
        handle_error(error, f"pipeline stage {index}", severity=ErrorSeverity.DEBUG,
                     reraise=False, logger=logger)
        abandoned = total - index
        report_error(f"{error}; abandoning {abandoned} remaining stage(s)", self.error_stream)


def run_pipeline(pipeline: PipelineSpec, stdin: StreamTarget = None,
                 stdout: StreamTarget = None) -> List[ExitStatus]:
    """Convenience wrapper around PipelineOrchestrator.run_pipeline."""
    return PipelineOrchestrator().run_pipeline(pipeline, stdin=stdin, stdout=stdout)
