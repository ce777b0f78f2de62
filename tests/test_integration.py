"""
Integration test: landmarks -> classifier -> session -> executor.
"""
import sys
import unittest
from pathlib import Path

import numpy as np

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from signspell import (
    Alphabet,
    LandmarkClassifier,
    SpellingSession,
    TextBufferExecutor,
    load_config,
)


class ScriptedModel:
    """Model stand-in that replays one score row per call."""

    def __init__(self, labels, script):
        self.labels = list(labels)
        self.script = list(script)

    def predict(self, batch):
        label, confidence = self.script.pop(0)
        scores = np.full((1, len(self.labels)), (1.0 - confidence) / (len(self.labels) - 1))
        scores[0, self.labels.index(label)] = confidence
        return scores


class TestPipeline(unittest.IsolatedAsyncioTestCase):
    """Run a frame trace through every layer except the camera."""

    async def test_spell_with_noisy_frames(self):
        config = load_config()
        alphabet = Alphabet.from_config(config.alphabet)
        searches = []
        session = SpellingSession(config.commit, alphabet,
                                  TextBufferExecutor(search_launcher=searches.append))
        hand = [(0.5, 0.5, 0.0)] * 21

        # ~30 fps frames, each sign held ~3.5s with one noisy low-confidence frame
        trace = []
        for label in ("H", "I", "SEARCH"):
            trace += [(label, 0.9)] * 45 + [("N", 0.3)] + [(label, 0.9)] * 60
        classifier = LandmarkClassifier(ScriptedModel(alphabet.labels, trace), alphabet.labels)

        committed = []
        t = 0.0
        for _ in range(len(trace)):
            action = await session.submit(classifier.classify_landmarks(hand), t)
            if action is None:
                action = await session.poll(t)
            if action is not None:
                committed.append(action)
            t += 33.0

        self.assertEqual([a.kind for a in committed], ["append_letter", "append_letter", "trigger_search"])
        self.assertEqual(session.text, "HI")
        self.assertEqual(searches, ["HI"])


if __name__ == '__main__':
    unittest.main()
