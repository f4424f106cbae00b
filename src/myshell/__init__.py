"""
myshell: an interactive command shell with a resident resource profiler.

The package is organized into specialized modules:
- config: Configuration management and validation
- models: Data structures and type definitions
- validation: Input validation and error handling
- system: Command-line parsing and process primitives
- orchestration: Pipelines, profiling and timeout enforcement
- cli: Command-line interface and interactive loop

Usage:
    From command line:
        myshell
        myshell -c "ls -l | wc -l"

    Programmatically:
        from myshell import InteractiveShell, get_config
        shell = InteractiveShell(config=get_config())
        shell.run()
"""

# Main interfaces
from .config import clear_config_cache, get_config, set_config_path
from .cli import InteractiveShell, ProfilerCommand, main_cli

# Model classes for external use
from .models import (
    AppConfig,
    ExitStatus,
    LimitsConfig,
    PipelineSpec,
    ProfilerConfig,
    ShellSettings,
    StageSpec,
    UsageReport,
)

# Orchestration
from .orchestration import (
    PipelineOrchestrator,
    ResourceProfiler,
    TimeoutEnforcer,
    run_pipeline,
)

# System utilities
from .system import parse_line, split_pipeline, tokenize

# Validation utilities
from .validation import (
    ProcessCreationError,
    ProgramNotFoundError,
    ShellError,
    ValidationError,
)

__version__ = "1.0.0"

__all__ = [
    # Main interfaces
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "InteractiveShell",
    "ProfilerCommand",
    "main_cli",
    # Models
    "AppConfig",
    "ExitStatus",
    "LimitsConfig",
    "PipelineSpec",
    "ProfilerConfig",
    "ShellSettings",
    "StageSpec",
    "UsageReport",
    # Orchestration
    "PipelineOrchestrator",
    "ResourceProfiler",
    "TimeoutEnforcer",
    "run_pipeline",
    # System utilities
    "parse_line",
    "split_pipeline",
    "tokenize",
    # Validation
    "ProcessCreationError",
    "ProgramNotFoundError",
    "ShellError",
    "ValidationError",
]
