"""
Sign Spelling

Turns per-frame hand sign classifications into typed text. A sign is
committed once it has been held for the dwell duration, by majority vote
over the frames seen while it was held.
"""

__version__ = "0.1.0"

from .types import (
    Action,
    ActionExecutor,
    AppendLetter,
    Classification,
    ClearOutput,
    CommitPhase,
    CommitStatus,
    FrameClassifier,
    TriggerSearch,
)
from .config import Cfg, CommitConfig, ConfigError, load_config
from .alphabet import ACTION_CLEAR, ACTION_COMMIT_SEARCH, DEFAULT_ALPHABET, Alphabet
from .commit import (
    CommitState,
    CommitStateMachine,
    CommitTimer,
    EmptyVoteBufferError,
    VoteBuffer,
    advance,
    advance_timer,
)
from .classifier import LandmarkClassifier, format_predictions, landmarks_to_features
from .executor import TextBufferExecutor, dispatch_action
from .session import SpellingSession

__all__ = [
    "Action",
    "ActionExecutor",
    "AppendLetter",
    "Classification",
    "ClearOutput",
    "CommitPhase",
    "CommitStatus",
    "FrameClassifier",
    "TriggerSearch",
    "Cfg",
    "CommitConfig",
    "ConfigError",
    "load_config",
    "ACTION_CLEAR",
    "ACTION_COMMIT_SEARCH",
    "DEFAULT_ALPHABET",
    "Alphabet",
    "CommitState",
    "CommitStateMachine",
    "CommitTimer",
    "EmptyVoteBufferError",
    "VoteBuffer",
    "advance",
    "advance_timer",
    "LandmarkClassifier",
    "format_predictions",
    "landmarks_to_features",
    "TextBufferExecutor",
    "dispatch_action",
    "SpellingSession",
]
