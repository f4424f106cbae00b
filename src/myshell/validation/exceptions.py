"""
Exception types and error reporting for the shell.

This module provides the small set of error types the shell actually raises,
plus helpers that log errors consistently and print user-facing diagnostics
to the error stream without ever terminating the interactive loop.
"""

import logging
import sys
from enum import Enum
from typing import Any, Optional, TextIO, Union

logger = logging.getLogger(__name__)

# Prefix used for every user-facing diagnostic line.
ERROR_PREFIX = "myshell"


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ValidationError(Exception):
    """
    Exception raised when validation fails.

    Used both for configuration errors and for usage errors on the command
    line (malformed profiler arguments, missing ``cd`` argument, unterminated
    quotes). A usage error never creates a process.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class ShellError(Exception):
    """Base class for errors raised while running a command."""


class ProcessCreationError(ShellError):
    """
    The OS refused to create a process (fork failure, descriptor exhaustion).

    Aborts the affected stage or invocation only.
    """

    def __init__(self, program: str, cause: OSError):
        super().__init__(f"cannot create process for '{program}': {cause.strerror or cause}")
        self.program = program
        self.cause = cause


class ProgramNotFoundError(ShellError):
    """The program image could not be loaded (not found, not executable)."""

    def __init__(self, program: str, cause: OSError):
        super().__init__(f"command not found: {program}")
        self.program = program
        self.cause = cause


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error


def report_error(message: str, stream: Optional[TextIO] = None) -> None:
    """
    Print a user-facing diagnostic line to the error stream.

    Args:
        message: Text to print after the ``myshell:`` prefix
        stream: Destination stream, defaults to ``sys.stderr``
    """
    target = stream if stream is not None else sys.stderr
    target.write(f"{ERROR_PREFIX}: {message}\n")
    target.flush()


def handle_cli_error(error: Exception, context: str, **kwargs) -> None:
    """Handle fatal CLI startup errors by logging and exiting."""
    exit_code = kwargs.pop('exit_code', 1)
    kwargs.pop('include_traceback', None)

    severity = kwargs.pop('severity', ErrorSeverity.ERROR)
    handle_error(error, f"CLI {context}", severity=severity, reraise=False, **kwargs)
    report_error(f"{context}: {error}")

    sys.exit(exit_code)
