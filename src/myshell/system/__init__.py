"""
System interaction utilities.

This module provides the text-level parsing of command lines and the
OS-level primitives for creating and reaping processes:

- Pipeline splitting on unquoted ``|`` and POSIX-style tokenizing
- Single-process creation with explicit stdin/stdout wiring
- Reaping with exit status decoding and resource usage collection
"""

from .processes import (
    IMAGE_LOAD_ERRNOS,
    flush_standard_streams,
    reap_with_usage,
    spawn_process,
    wait_for_exit,
)
from .tokenizer import PIPE_DELIMITER, parse_line, split_pipeline, tokenize

__all__ = [
    # Processes
    "IMAGE_LOAD_ERRNOS",
    "flush_standard_streams",
    "reap_with_usage",
    "spawn_process",
    "wait_for_exit",
    # Parsing
    "PIPE_DELIMITER",
    "parse_line",
    "split_pipeline",
    "tokenize",
]
