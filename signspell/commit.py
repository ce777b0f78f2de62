"""
Dwell-and-vote commit logic that turns per-frame classifications into actions.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from .alphabet import DEFAULT_ALPHABET, Alphabet
from .config import CommitConfig
from .types import Action, Classification, CommitPhase, CommitStatus

logger = logging.getLogger(__name__)


class EmptyVoteBufferError(LookupError):
    """Raised when a majority is requested from an empty vote buffer."""


class VoteBuffer:
    """
    Labels collected while a commit window is open.

    Insertion order is kept so that ties resolve deterministically: the
    label that reaches the highest count first wins.
    """

    def __init__(self):
        self._labels: List[str] = []

    def push(self, label: str) -> None:
        self._labels.append(label)

    def clear(self) -> None:
        self._labels.clear()

    def majority(self) -> str:
        """
        Return the most frequent label.

        Raises:
            EmptyVoteBufferError: if no votes have been pushed
        """
        if not self._labels:
            raise EmptyVoteBufferError("majority() called on an empty vote buffer")

        counts: Dict[str, int] = {}
        best_label = self._labels[0]
        best_count = 0
        for label in self._labels:
            counts[label] = counts.get(label, 0) + 1
            # Strictly greater: a later label must overtake, not merely tie
            if counts[label] > best_count:
                best_label = label
                best_count = counts[label]
        return best_label

    def __len__(self) -> int:
        return len(self._labels)

    def __iter__(self) -> Iterator[str]:
        return iter(self._labels)


class CommitTimer:
    """
    Dwell countdown measured against caller-supplied timestamps (ms).

    A clock that moves backwards counts as zero elapsed time, so the timer
    never reports negative remaining time and never fires early.
    """

    def __init__(self):
        self._origin_ms: Optional[float] = None
        self._duration_ms: float = 0.0

    def start(self, now_ms: float, duration_ms: float) -> None:
        if duration_ms <= 0:
            raise ValueError(f"duration_ms must be positive, got {duration_ms}")
        self._origin_ms = now_ms
        self._duration_ms = duration_ms

    def cancel(self) -> None:
        self._origin_ms = None
        self._duration_ms = 0.0

    @property
    def running(self) -> bool:
        return self._origin_ms is not None

    @property
    def origin_ms(self) -> Optional[float]:
        return self._origin_ms

    @property
    def duration_ms(self) -> float:
        return self._duration_ms

    def _elapsed_ms(self, now_ms: float) -> float:
        if self._origin_ms is None:
            return 0.0
        return max(0.0, now_ms - self._origin_ms)

    def remaining(self, now_ms: float) -> float:
        """Time left in the window, for display only."""
        if not self.running:
            return 0.0
        return max(0.0, self._duration_ms - self._elapsed_ms(now_ms))

    def elapsed(self, now_ms: float) -> bool:
        return self.running and self._elapsed_ms(now_ms) >= self._duration_ms


@dataclass(frozen=True)
class CommitState:
    """Immutable snapshot of a commit state machine."""
    phase: CommitPhase = CommitPhase.IDLE
    leading_label: Optional[str] = None
    votes: Tuple[str, ...] = ()
    window_start_ms: Optional[float] = None
    window_duration_ms: float = 0.0


class CommitStateMachine:
    """
    Debounced majority-vote commit state machine.

    Features:
    - A window opens when a known label reaches the confidence threshold
    - Repeats of the leading label extend the vote without touching the timer
    - A different confident label restarts the full dwell
    - Low-confidence samples still vote but never open or restart a window
    - Losing the hand (no classification) aborts the window
    - When the dwell elapses the majority label is committed as an action

    The machine is owned by exactly one caller; it does no locking.
    """

    def __init__(self, config: Optional[CommitConfig] = None,
                 alphabet: Alphabet = DEFAULT_ALPHABET):
        self.config = config or CommitConfig()
        self.alphabet = alphabet
        self._votes = VoteBuffer()
        self._timer = CommitTimer()
        self._leading_label: Optional[str] = None

    @classmethod
    def from_state(cls, state: CommitState, config: CommitConfig,
                   alphabet: Alphabet = DEFAULT_ALPHABET) -> "CommitStateMachine":
        """Rebuild a machine from a snapshot taken with the `state` property."""
        machine = cls(config, alphabet)
        if state.phase is CommitPhase.IDLE:
            if state.votes:
                raise ValueError("an idle state cannot carry votes")
            return machine
        if not state.votes or state.leading_label is None or state.window_start_ms is None:
            raise ValueError("a dwelling state needs votes, a leading label and a window start")

        for label in state.votes:
            machine._votes.push(label)
        machine._timer.start(state.window_start_ms, state.window_duration_ms)
        machine._leading_label = state.leading_label
        return machine

    @property
    def phase(self) -> CommitPhase:
        return CommitPhase.DWELLING if self._timer.running else CommitPhase.IDLE

    @property
    def leading_label(self) -> Optional[str]:
        return self._leading_label

    @property
    def votes(self) -> Tuple[str, ...]:
        return tuple(self._votes)

    @property
    def state(self) -> CommitState:
        return CommitState(
            phase=self.phase,
            leading_label=self._leading_label,
            votes=self.votes,
            window_start_ms=self._timer.origin_ms,
            window_duration_ms=self._timer.duration_ms,
        )

    def status(self, now_ms: float) -> CommitStatus:
        return CommitStatus(
            phase=self.phase,
            leading_label=self._leading_label,
            vote_count=len(self._votes),
            remaining_ms=self._timer.remaining(now_ms),
        )

    def update(self, classification: Optional[Classification], now_ms: float) -> Optional[Action]:
        """
        Feed one per-frame classification.

        Args:
            classification: Classifier output, or None if no hand was detected
            now_ms: Current timestamp in milliseconds

        Returns:
            The committed action if the dwell window completed on this tick,
            None otherwise
        """
        # Unknown labels are indistinguishable from no classification
        if classification is not None and classification.label not in self.alphabet:
            classification = None

        if self.phase is CommitPhase.DWELLING and self._timer.elapsed(now_ms):
            if self._is_vote_only(classification):
                self._votes.push(classification.label)
                return self._commit()
            # The window expired before this input arrived
            action = self._commit()
            self._apply(classification, now_ms)
            return action

        self._apply(classification, now_ms)
        return None

    def tick(self, now_ms: float) -> Optional[Action]:
        """Timer poll: commit the open window if its dwell has elapsed."""
        if self.phase is CommitPhase.DWELLING and self._timer.elapsed(now_ms):
            return self._commit()
        return None

    def reset(self) -> None:
        """Abort any open window without committing."""
        if self.phase is CommitPhase.DWELLING:
            logger.debug("Commit window for %s reset", self._leading_label)
        self._close_window()

    def _is_vote_only(self, classification: Optional[Classification]) -> bool:
        if classification is None:
            return False
        return (classification.label == self._leading_label or
                classification.confidence < self.config.confidence_threshold)

    def _apply(self, classification: Optional[Classification], now_ms: float) -> None:
        threshold = self.config.confidence_threshold

        if self.phase is CommitPhase.IDLE:
            if classification is not None and classification.confidence >= threshold:
                self._open_window(classification.label, now_ms)
            return

        if classification is None:
            logger.debug("Hand lost, aborting window for %s", self._leading_label)
            self._close_window()
            return

        if classification.confidence < threshold or classification.label == self._leading_label:
            self._votes.push(classification.label)
            return

        logger.debug("Leading label switched %s -> %s, restarting dwell",
                     self._leading_label, classification.label)
        self._open_window(classification.label, now_ms)

    def _open_window(self, label: str, now_ms: float) -> None:
        self._votes.clear()
        self._votes.push(label)
        self._timer.start(now_ms, self.config.dwell_duration_ms)
        self._leading_label = label

    def _close_window(self) -> None:
        self._votes.clear()
        self._timer.cancel()
        self._leading_label = None

    def _commit(self) -> Optional[Action]:
        try:
            label = self._votes.majority()
        except EmptyVoteBufferError:
            # Contract violation: raise in debug runs, drop the window under -O
            if __debug__:
                raise
            self._close_window()
            return None

        vote_count = len(self._votes)
        self._close_window()
        logger.debug("Committed %s from %d votes", label, vote_count)
        return self.alphabet.action_for(label)


def advance(state: CommitState, classification: Optional[Classification], now_ms: float,
            config: CommitConfig,
            alphabet: Alphabet = DEFAULT_ALPHABET) -> Tuple[CommitState, Optional[Action]]:
    """
    Pure form of `CommitStateMachine.update`.

    Returns:
        Tuple of (next_state, committed_action)
    """
    machine = CommitStateMachine.from_state(state, config, alphabet)
    action = machine.update(classification, now_ms)
    return machine.state, action


def advance_timer(state: CommitState, now_ms: float, config: CommitConfig,
                  alphabet: Alphabet = DEFAULT_ALPHABET) -> Tuple[CommitState, Optional[Action]]:
    """Pure form of `CommitStateMachine.tick`."""
    machine = CommitStateMachine.from_state(state, config, alphabet)
    action = machine.tick(now_ms)
    return machine.state, action
