"""
Validation and error handling for the myshell package.

This module provides input validation and error handling
with consistent error reporting across the application.
"""

from .exceptions import (
    ERROR_PREFIX,
    ErrorSeverity,
    ProcessCreationError,
    ProgramNotFoundError,
    ShellError,
    ValidationError,
    handle_cli_error,
    handle_error,
    report_error,
)

from .validators import (
    validate_command_name,
    validate_enum_choice,
    validate_non_empty_string,
    validate_positive_integer,
    validate_prompt_format,
)

__all__ = [
    # Core functionality
    "ERROR_PREFIX",
    "ErrorSeverity",
    "ProcessCreationError",
    "ProgramNotFoundError",
    "ShellError",
    "ValidationError",
    "handle_cli_error",
    "handle_error",
    "report_error",
    # Validators
    "validate_command_name",
    "validate_enum_choice",
    "validate_non_empty_string",
    "validate_positive_integer",
    "validate_prompt_format",
]
