"""
Configuration validation utilities.

This module turns the raw TOML tables into validated configuration models.
Missing keys fall back to the model defaults.
"""

import logging
from typing import Any, Dict

from ..models.config import AppConfig, LimitsConfig, ProfilerConfig, ShellSettings
from ..validation import (
    ValidationError,
    validate_command_name,
    validate_enum_choice,
    validate_positive_integer,
    validate_prompt_format,
)

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Names the profiler command may not shadow.
RESERVED_COMMAND_NAMES = {"cd", "exit"}


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ValidationError(f"[{name}] must be a table", field_name=name, value=section)
    return section


def validate_shell_settings(shell_data: Dict[str, Any]) -> ShellSettings:
    """
    Validate and create ShellSettings from the ``[shell]`` table.

    Raises:
        ValidationError: If validation fails
    """
    defaults = ShellSettings()

    prompt_format = validate_prompt_format(
        shell_data.get("prompt_format", defaults.prompt_format),
        field_name="shell.prompt_format",
    )

    log_level = validate_enum_choice(
        shell_data.get("log_level", defaults.log_level),
        valid_choices=LOG_LEVELS,
        field_name="shell.log_level",
        case_sensitive=False,
    )

    handle_interrupts = shell_data.get("handle_interrupts", defaults.handle_interrupts)
    if not isinstance(handle_interrupts, bool):
        raise ValidationError(
            "shell.handle_interrupts must be a boolean",
            field_name="shell.handle_interrupts",
            value=handle_interrupts,
        )

    return ShellSettings(
        prompt_format=prompt_format,
        log_level=log_level,
        handle_interrupts=handle_interrupts,
    )


def validate_limits_config(limits_data: Dict[str, Any]) -> LimitsConfig:
    """
    Validate and create LimitsConfig from the ``[limits]`` table.

    Raises:
        ValidationError: If validation fails
    """
    defaults = LimitsConfig()

    max_line_length = validate_positive_integer(
        limits_data.get("max_line_length", defaults.max_line_length),
        min_value=16,
        max_value=1048576,
        field_name="limits.max_line_length",
    )
    max_args = validate_positive_integer(
        limits_data.get("max_args", defaults.max_args),
        min_value=1,
        max_value=65536,
        field_name="limits.max_args",
    )
    max_stages = validate_positive_integer(
        limits_data.get("max_stages", defaults.max_stages),
        min_value=1,
        max_value=4096,
        field_name="limits.max_stages",
    )

    return LimitsConfig(
        max_line_length=max_line_length,
        max_args=max_args,
        max_stages=max_stages,
    )


def validate_profiler_config(profiler_data: Dict[str, Any]) -> ProfilerConfig:
    """
    Validate and create ProfilerConfig from the ``[profiler]`` table.

    Raises:
        ValidationError: If validation fails
    """
    command_name = validate_command_name(
        profiler_data.get("command_name", ProfilerConfig().command_name),
        field_name="profiler.command_name",
    )
    if command_name in RESERVED_COMMAND_NAMES:
        raise ValidationError(
            f"profiler.command_name cannot be the built-in '{command_name}'",
            field_name="profiler.command_name",
            value=command_name,
        )
    return ProfilerConfig(command_name=command_name)


def validate_app_config(config_data: Dict[str, Any]) -> AppConfig:
    """
    Validate the complete parsed configuration file.

    Unknown top-level tables are ignored with a warning.

    Raises:
        ValidationError: If any section fails validation
    """
    known = {"shell", "limits", "profiler"}
    for name in config_data:
        if name not in known:
            logger.warning(f"Ignoring unknown configuration section [{name}]")

    return AppConfig(
        shell=validate_shell_settings(_section(config_data, "shell")),
        limits=validate_limits_config(_section(config_data, "limits")),
        profiler=validate_profiler_config(_section(config_data, "profiler")),
    )
