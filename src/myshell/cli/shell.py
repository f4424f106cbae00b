"""
The interactive read/dispatch loop.

This module reads one line at a time, splits it into pipeline stages,
and dispatches it to the profiler command, a built-in, the single-process
fast path or the pipeline orchestrator. No error raised while handling a
line ends the loop; only ``exit`` or end of input does.
"""

import logging
import os
import sys
from typing import Callable, Dict, Optional, Sequence, TextIO

from ..config import get_config
from ..models.config import AppConfig
from ..models.results import ExitStatus
from ..models.runtime import PipelineSpec
from ..orchestration.pipeline import PipelineOrchestrator
from ..orchestration.profiler import ResourceProfiler
from ..orchestration.shared_state import ExitCodes
from ..orchestration.signal_handler import SignalHandler
from ..system.tokenizer import parse_line
from ..validation import ShellError, ValidationError, report_error
from .profiler_command import ProfilerCommand

logger = logging.getLogger(__name__)

EXIT_COMMAND = "exit"
CD_COMMAND = "cd"


class InteractiveShell:
    """
    Prompts for lines and executes them until ``exit`` or end of input.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        orchestrator: Optional[PipelineOrchestrator] = None,
        profiler: Optional[ResourceProfiler] = None,
    ):
        """
        Args:
            config: Application configuration, the global one if omitted
            stdin: Stream lines are read from, ``sys.stdin`` by default
            stdout: Stream for prompts and profiler reports, ``sys.stdout`` by default
            stderr: Stream for diagnostics, ``sys.stderr`` by default
            orchestrator: Process orchestrator to use
            profiler: Resource profiler to use for the profiler command
        """
        self.config = config if config is not None else get_config()
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.stderr = stderr

        self.orchestrator = orchestrator or PipelineOrchestrator(error_stream=stderr)
        self.profiler_command = ProfilerCommand(
            profiler=profiler or ResourceProfiler(error_stream=stderr),
            command_name=self.config.profiler.command_name,
            stdout=self.stdout,
            stderr=stderr,
        )
        self.signal_handler = SignalHandler()
        self.builtins: Dict[str, Callable[[Sequence[str]], ExitStatus]] = {
            CD_COMMAND: self._builtin_cd,
        }
        self.last_status: Optional[ExitStatus] = None

    @property
    def exit_code(self) -> int:
        """Exit code derived from the last executed line."""
        if self.last_status is None:
            return ExitCodes.SUCCESS
        return self.last_status.shell_code

    def prompt(self) -> str:
        """Render the prompt for the current working directory."""
        try:
            cwd = os.getcwd()
        except OSError:
            cwd = "?"
        return self.config.shell.prompt_format.format(cwd=cwd)

    def read_line(self) -> Optional[str]:
        """Print the prompt and read one line; None at end of input."""
        self.stdout.write(self.prompt())
        self.stdout.flush()
        line = self.stdin.readline()
        if line == "":
            return None
        return line

    def run(self) -> int:
        """
        Run the interactive loop.

        Returns:
            Exit code of the last executed line.
        """
        if self.config.shell.handle_interrupts:
            self.signal_handler.setup_signal_handlers()
        try:
            while True:
                line = self.read_line()
                if line is None:
                    self.stdout.write("\n")
                    self.stdout.flush()
                    logger.debug("End of input, leaving the loop")
                    break
                if not self.execute_line(line):
                    logger.debug("Exit requested")
                    break
        finally:
            self.signal_handler.cleanup_signal_handlers()
        return self.exit_code

    def execute_line(self, line: str) -> bool:
        """
        Execute one input line.

        Returns:
            False if the line asked the shell to exit, True otherwise.
        """
        stripped = line.strip()
        if not stripped:
            return True
        if stripped == EXIT_COMMAND:
            return False

        limits = self.config.limits
        if len(line.rstrip("\r\n")) > limits.max_line_length:
            report_error(f"line too long (limit {limits.max_line_length} characters)", self.stderr)
            self.last_status = ExitStatus(code=ExitCodes.USAGE)
            return True

        try:
            pipeline = parse_line(stripped, max_stages=limits.max_stages, max_args=limits.max_args)
        except ValidationError as e:
            report_error(str(e), self.stderr)
            self.last_status = ExitStatus(code=ExitCodes.USAGE)
            return True
        if pipeline is None:
            return True

        try:
            self._dispatch(pipeline)
        except ShellError as e:
            report_error(str(e), self.stderr)
            self.last_status = ExitStatus(code=ExitCodes.FAILURE)
        except Exception as e:
            logger.error(f"Unexpected error while running '{stripped}': {type(e).__name__}: {e}",
                         exc_info=True)
            report_error(f"{type(e).__name__}: {e}", self.stderr)
            self.last_status = ExitStatus(code=ExitCodes.FAILURE)
        return True

    def _dispatch(self, pipeline: PipelineSpec) -> None:
        if len(pipeline) > 1:
            statuses = self.orchestrator.run_pipeline(pipeline)
            if len(statuses) == len(pipeline):
                self.last_status = statuses[-1]
            else:
                self.last_status = ExitStatus(code=ExitCodes.FAILURE)
            return

        stage = pipeline.stages[0]
        if stage.program == self.config.profiler.command_name:
            report = self.profiler_command.execute(stage.argv[1:])
            self.last_status = report.exit_status if report else ExitStatus(code=ExitCodes.USAGE)
            return

        builtin = self.builtins.get(stage.program)
        if builtin is not None:
            self.last_status = builtin(stage.argv[1:])
            return

        self.last_status = self.orchestrator.run_single(stage)

    def _builtin_cd(self, args: Sequence[str]) -> ExitStatus:
        if not args:
            report_error(f"{CD_COMMAND}: missing argument", self.stderr)
            return ExitStatus(code=ExitCodes.USAGE)
        try:
            os.chdir(args[0])
        except OSError as e:
            report_error(f"{CD_COMMAND}: {args[0]}: {e.strerror or e}", self.stderr)
            return ExitStatus(code=ExitCodes.FAILURE)
        logger.debug(f"Changed directory to {os.getcwd()}")
        return ExitStatus(code=ExitCodes.SUCCESS)
