"""
Command-line interface for the myshell package.

This module provides the main CLI entry point, the interactive loop and
the resident profiler command.
"""

from .main import main_cli
from .profiler_command import ProfileRequest, ProfilerCommand, parse_profiler_args
from .shell import InteractiveShell

__all__ = [
    "InteractiveShell",
    "ProfileRequest",
    "ProfilerCommand",
    "main_cli",
    "parse_profiler_args",
]
