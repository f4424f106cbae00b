"""
Data models and structures for the shell.

Configuration Models:
- Interactive loop settings, parsing limits and profiler settings

Runtime Models:
- Immutable stage and pipeline descriptions produced by the tokenizer

Result Models:
- Exit statuses and profiling usage reports

All models are dataclasses with type hints.
"""

from .config import AppConfig, LimitsConfig, ProfilerConfig, ShellSettings
from .runtime import PipelineSpec, StageSpec
from .results import ExitStatus, UsageReport

__all__ = [
    # Configuration
    "AppConfig",
    "LimitsConfig",
    "ProfilerConfig",
    "ShellSettings",
    # Runtime
    "PipelineSpec",
    "StageSpec",
    # Results
    "ExitStatus",
    "UsageReport",
]
