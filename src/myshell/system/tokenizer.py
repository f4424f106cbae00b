"""
Command line splitting and tokenizing.

This module turns an input line into pipeline stage strings and each stage
string into an argument vector. Quoting follows POSIX shell rules as
implemented by ``shlex``: single quotes are fully literal, double quotes
group words and allow backslash escapes.
"""

import logging
import shlex
from typing import List, Optional

from ..models.runtime import PipelineSpec, StageSpec
from ..validation import ValidationError

logger = logging.getLogger(__name__)

PIPE_DELIMITER = "|"
QUOTE_CHARS = ("'", '"')


def split_pipeline(line: str, max_stages: Optional[int] = None) -> List[str]:
    """Split a line into stage command strings on unquoted pipe characters.

    Each stage is trimmed of surrounding whitespace and empty segments are
    dropped, so ``"ls | | wc"`` and ``"ls |"`` behave like ``"ls | wc"`` and
    ``"ls"``. Quote balancing is left to :func:`tokenize`.

    Args:
        line: The raw input line.
        max_stages: Optional sanity limit on the number of stages.

    Returns:
        Ordered list of non-empty stage strings.

    Raises:
        ValidationError: If the line has more than ``max_stages`` stages.

    Examples:
        >>> split_pipeline("cat f | grep 'a|b' | wc -l")
        ['cat f', "grep 'a|b'", 'wc -l']
    """
    segments: List[str] = []
    current: List[str] = []
    quote: Optional[str] = None
    escaped = False

    for char in line:
        if escaped:
            current.append(char)
            escaped = False
        elif char == "\\" and quote != "'":
            current.append(char)
            escaped = True
        elif quote is not None:
            current.append(char)
            if char == quote:
                quote = None
        elif char in QUOTE_CHARS:
            current.append(char)
            quote = char
        elif char == PIPE_DELIMITER:
            segments.append("".join(current))
            current = []
        else:
            current.append(char)
    segments.append("".join(current))

    stages = [segment.strip() for segment in segments if segment.strip()]

    if max_stages is not None and len(stages) > max_stages:
        raise ValidationError(
            f"too many pipeline stages ({len(stages)}, limit {max_stages})",
            field_name="stages",
            value=len(stages),
        )
    return stages


def tokenize(command: str, max_args: Optional[int] = None) -> StageSpec:
    """Split one stage command string into its argument vector.

    Examples:
        >>> tokenize('echo "a b" c').argv
        ('echo', 'a b', 'c')

    Raises:
        ValidationError: On an unterminated quote or trailing escape, or
            when the token count exceeds ``max_args``.
    """
    try:
        tokens = shlex.split(command, posix=True)
    except ValueError as e:
        raise ValidationError(
            f"cannot parse '{command}': {e}",
            field_name="command",
            value=command,
        )

    if max_args is not None and len(tokens) > max_args:
        raise ValidationError(
            f"too many arguments ({len(tokens)}, limit {max_args})",
            field_name="argv",
            value=len(tokens),
        )
    return StageSpec(tuple(tokens))


def parse_line(
    line: str,
    max_stages: Optional[int] = None,
    max_args: Optional[int] = None,
) -> Optional[PipelineSpec]:
    """Split and tokenize a whole line.

    Returns:
        The PipelineSpec, or None when the line holds no command at all.

    Raises:
        ValidationError: On any tokenizing or limit error.
    """
    stage_strings = split_pipeline(line, max_stages=max_stages)
    stages = [tokenize(stage, max_args=max_args) for stage in stage_strings]
    stages = [stage for stage in stages if not stage.is_empty]
    if not stages:
        return None
    logger.debug(f"Parsed line into {len(stages)} stage(s): {[s.argv for s in stages]}")
    return PipelineSpec(tuple(stages))
