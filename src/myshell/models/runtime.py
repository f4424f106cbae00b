"""
Runtime data models.

This module contains the immutable command descriptions handed from the
tokenizer to the process orchestration layer.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, Tuple


@dataclass(frozen=True)
class StageSpec:
    """
    One program invocation: program name followed by its arguments.

    Produced by the tokenizer and consumed exactly once by process creation.
    """

    argv: Tuple[str, ...]

    def __post_init__(self):
        # Accept any iterable of strings but always store a tuple.
        object.__setattr__(self, "argv", tuple(self.argv))

    @property
    def program(self) -> str:
        """The program name (first argument)."""
        if not self.argv:
            raise ValueError("StageSpec has no program name")
        return self.argv[0]

    @property
    def is_empty(self) -> bool:
        return not self.argv

    def __len__(self) -> int:
        return len(self.argv)

    def __iter__(self) -> Iterator[str]:
        return iter(self.argv)

    def __str__(self) -> str:
        return " ".join(self.argv)


@dataclass(frozen=True)
class PipelineSpec:
    """
    Ordered stages connected stdout to stdin; stage ``i`` feeds stage ``i + 1``.
    """

    stages: Tuple[StageSpec, ...]

    def __post_init__(self):
        stages = tuple(self.stages)
        if not stages:
            raise ValueError("PipelineSpec requires at least one stage")
        if any(stage.is_empty for stage in stages):
            raise ValueError("PipelineSpec stages must not be empty")
        object.__setattr__(self, "stages", stages)

    @classmethod
    def from_argvs(cls, argvs: Iterable[Iterable[str]]) -> "PipelineSpec":
        """Build a pipeline from plain argument lists."""
        return cls(tuple(StageSpec(tuple(argv)) for argv in argvs))

    def __len__(self) -> int:
        return len(self.stages)

    def __iter__(self) -> Iterator[StageSpec]:
        return iter(self.stages)
