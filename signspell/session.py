"""
Spelling session: the single owner of one commit stream.
"""
import asyncio
import logging
import time
from typing import Callable, Optional

from .alphabet import DEFAULT_ALPHABET, Alphabet
from .commit import CommitStateMachine
from .config import CommitConfig
from .executor import TextBufferExecutor, dispatch_action
from .types import Action, ActionExecutor, Classification, CommitStatus

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class SpellingSession:
    """
    Feeds classifications into a commit state machine and applies the
    committed actions to an executor.

    All calls must come from one event loop; the session does no locking.
    """

    def __init__(self, config: Optional[CommitConfig] = None,
                 alphabet: Alphabet = DEFAULT_ALPHABET,
                 executor: Optional[ActionExecutor] = None,
                 clock: Clock = monotonic_ms):
        self.alphabet = alphabet
        self.machine = CommitStateMachine(config or CommitConfig(), alphabet)
        self.executor = executor if executor is not None else TextBufferExecutor()
        self.clock = clock
        self._clock_offset_ms = 0.0
        self.commit_count = 0

    @property
    def config(self) -> CommitConfig:
        return self.machine.config

    @config.setter
    def config(self, config: CommitConfig) -> None:
        logger.info("Commit config updated: threshold=%.2f dwell=%dms",
                    config.confidence_threshold, config.dwell_duration_ms)
        self.machine.config = config

    @property
    def text(self) -> str:
        return getattr(self.executor, "text", "")

    def status(self, now_ms: Optional[float] = None) -> CommitStatus:
        return self.machine.status(self._now(now_ms))

    async def submit(self, classification: Optional[Classification],
                     now_ms: Optional[float] = None) -> Optional[Action]:
        """
        Process one per-frame classification.

        Args:
            classification: Classifier output, or None if no hand was detected
            now_ms: Timestamp in milliseconds; the session clock when omitted

        Returns:
            The committed action, if any
        """
        if classification is not None and classification.label not in self.alphabet:
            logger.warning("Ignoring out-of-alphabet label %r (confidence %.2f)",
                           classification.label, classification.confidence)
            classification = None

        action = self.machine.update(classification, self._now(now_ms))
        return await self._apply(action)

    async def poll(self, now_ms: Optional[float] = None) -> Optional[Action]:
        """Timer poll; commits the open window once its dwell has elapsed."""
        action = self.machine.tick(self._now(now_ms))
        return await self._apply(action)

    async def reset(self, clear_text: bool = True) -> None:
        """Abort the open window and optionally clear the output text."""
        self.machine.reset()
        if clear_text:
            await self.executor.clear_output()

    async def run_poller(self, stop: asyncio.Event) -> None:
        """Poll the timer every poll_interval_ms until `stop` is set."""
        while not stop.is_set():
            try:
                await self.poll()
            except Exception:
                # Keep polling; the failed window is already closed
                logger.exception("Timer poll failed")
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.config.poll_interval_ms / 1000.0)
            except asyncio.TimeoutError:
                pass

    def _now(self, now_ms: Optional[float]) -> float:
        """
        Resolve a tick timestamp in the caller's clock domain.

        An explicit timestamp re-anchors the session to the caller's clock;
        untimed calls (the background poll, status) advance from that anchor
        by the session clock.
        """
        if now_ms is None:
            return self.clock() + self._clock_offset_ms
        self._clock_offset_ms = now_ms - self.clock()
        return now_ms

    async def _apply(self, action: Optional[Action]) -> Optional[Action]:
        if action is None:
            return None
        self.commit_count += 1
        logger.info("Committed %s (commit #%d)", action, self.commit_count)
        await dispatch_action(action, self.executor, self.text)
        return action
