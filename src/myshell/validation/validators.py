"""
Simplified validation functions.

This module provides the value checks used when loading configuration and
when parsing profiler sub-command arguments.
"""

import re
from typing import Any, List, Optional

from .exceptions import ValidationError


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is a positive integer.

    Booleans and floats are rejected; strings must hold a plain decimal
    integer (``"5"``, not ``"5.0"`` or ``"5s"``).

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if isinstance(value, str) and not re.fullmatch(r"[+-]?[0-9]+", value.strip()):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_non_empty_string(value: Any, field_name: str = "value") -> str:
    """
    Validate that a value is a non-blank string.

    Raises:
        ValidationError: If value is not a string or is blank
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=value
        )
    return value


def validate_command_name(name: Any, field_name: str = "command_name") -> str:
    """
    Validate a built-in command name.

    Allows alphanumerics, underscores, dots and hyphens, so the name can
    never contain whitespace, quotes or the pipe delimiter.

    Raises:
        ValidationError: If name is invalid
    """
    validate_non_empty_string(name, field_name=field_name)
    if not re.match(r'^[a-zA-Z0-9_.-]+$', name):
        raise ValidationError(
            f"{field_name} must contain only alphanumeric characters, dots, underscores, and hyphens: {name}",
            field_name=field_name,
            value=name
        )
    return name


def validate_prompt_format(template: Any, field_name: str = "prompt_format") -> str:
    """
    Validate the prompt template.

    The template may reference ``{cwd}`` and nothing else.

    Raises:
        ValidationError: If template is invalid
    """
    validate_non_empty_string(template, field_name=field_name)
    try:
        template.format(cwd="/")
    except (KeyError, IndexError, ValueError) as e:
        raise ValidationError(
            f"{field_name} may only use the {{cwd}} placeholder: {e}",
            field_name=field_name,
            value=template
        )
    return template


def validate_enum_choice(
    value: Any,
    valid_choices: List[str] = None,
    choices: List[str] = None,
    field_name: str = "value",
    case_sensitive: bool = True
) -> str:
    """
    Validate that a value is one of the allowed choices.

    Args:
        value: Value to validate
        valid_choices: List of allowed choices
        choices: Alias for ``valid_choices``
        field_name: Name of the field being validated
        case_sensitive: Whether the comparison should be case-sensitive

    Returns:
        Validated choice, in the spelling used by the choice list

    Raises:
        ValidationError: If value is not in choices
    """
    choice_list = valid_choices or choices
    if choice_list is None:
        raise ValidationError(
            f"No valid choices provided for {field_name}",
            field_name=field_name,
            value=value
        )

    str_value = str(value)

    if case_sensitive:
        if str_value not in choice_list:
            raise ValidationError(
                f"{field_name} must be one of {choice_list}, got {value}",
                field_name=field_name,
                value=value
            )
        return str_value

    lower_choices = [choice.lower() for choice in choice_list]
    lower_value = str_value.lower()
    if lower_value not in lower_choices:
        raise ValidationError(
            f"{field_name} must be one of {choice_list}, got {value}",
            field_name=field_name,
            value=value
        )
    return choice_list[lower_choices.index(lower_value)]
