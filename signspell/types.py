"""
Type definitions for the sign spelling commit pipeline.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Sequence, Union, runtime_checkable

import numpy as np


@dataclass(frozen=True)
class Classification:
    """One per-frame classifier result."""
    label: str
    confidence: float  # in [0, 1]


@dataclass(frozen=True)
class AppendLetter:
    """Command to append a single letter to the output text."""
    letter: str

    @property
    def kind(self) -> str:
        return "append_letter"


@dataclass(frozen=True)
class ClearOutput:
    """Command to clear the output text."""

    @property
    def kind(self) -> str:
        return "clear_output"


@dataclass(frozen=True)
class TriggerSearch:
    """Command to run an external search with the current output text."""

    @property
    def kind(self) -> str:
        return "trigger_search"


Action = Union[AppendLetter, ClearOutput, TriggerSearch]


class CommitPhase(str, Enum):
    IDLE = "idle"
    DWELLING = "dwelling"


@dataclass(frozen=True)
class CommitStatus:
    """Snapshot of the commit state machine for display."""
    phase: CommitPhase
    leading_label: Optional[str]
    vote_count: int
    remaining_ms: float  # display only, never used for control decisions


@runtime_checkable
class FrameClassifier(Protocol):
    """Anything that turns one feature vector into a classification."""

    def classify(self, features: np.ndarray) -> Optional[Classification]:
        """Return a classification, or None when the classifier abstains."""
        ...


@runtime_checkable
class ActionExecutor(Protocol):
    """Abstract protocol for executors that apply committed actions."""

    async def append_letter(self, letter: str) -> None:
        """Append a letter to the output text."""
        ...

    async def clear_output(self) -> None:
        """Clear the output text."""
        ...

    async def trigger_search(self, query: str) -> None:
        """Run an external search for the given query."""
        ...


Landmarks = Sequence[Sequence[float]]
