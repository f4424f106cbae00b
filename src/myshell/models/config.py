"""
Configuration data models.

This module contains the configuration structures for the interactive loop,
the parsing sanity limits, and the profiler command, plus the root object
that aggregates them.
"""

from dataclasses import dataclass, field


@dataclass
class ShellSettings:
    """
    Settings for the interactive loop, loaded from the ``[shell]`` table.
    """

    # Prompt template; ``{cwd}`` is replaced by the current working directory.
    prompt_format: str = "myshell:{cwd}$ "
    # Level for the stderr log handler configured by the CLI.
    log_level: str = "WARNING"
    # Install the interactive SIGINT handler so Ctrl-C never ends the shell.
    handle_interrupts: bool = True


@dataclass
class LimitsConfig:
    """
    Sanity limits on input size, loaded from the ``[limits]`` table.

    These bound what a single line may ask for; they are not memory layout
    constraints and can be raised freely.
    """

    max_line_length: int = 4096
    max_args: int = 256
    max_stages: int = 128


@dataclass
class ProfilerConfig:
    """
    Settings for the resident profiling command, loaded from ``[profiler]``.
    """

    # First token that routes a single-stage line to the profiler.
    command_name: str = "myprof"


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    shell: ShellSettings = field(default_factory=ShellSettings)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    profiler: ProfilerConfig = field(default_factory=ProfilerConfig)
