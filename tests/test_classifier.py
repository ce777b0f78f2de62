"""
Test cases for feature extraction and the landmark classifier wrapper.
"""
import sys
import unittest
from pathlib import Path

import numpy as np

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from signspell.alphabet import DEFAULT_ALPHABET
from signspell.classifier import (
    FEATURE_SIZE,
    ClassifierError,
    LandmarkClassifier,
    format_predictions,
    landmarks_to_features,
)
from signspell.types import Classification, FrameClassifier


class FixedModel:
    """Stand-in for a Keras model that always returns the same scores."""

    def __init__(self, scores):
        self.scores = np.asarray([scores], dtype=np.float32)
        self.calls = []

    def predict(self, batch):
        self.calls.append(batch)
        return self.scores


def one_hot(index: int, size: int = 28, value: float = 0.9) -> list:
    rest = (1.0 - value) / (size - 1)
    scores = [rest] * size
    scores[index] = value
    return scores


class TestLandmarksToFeatures(unittest.TestCase):
    """Test landmark flattening."""

    def test_flattens_21_points(self):
        landmarks = [(0.1 * i, 0.2, 0.3) for i in range(21)]
        features = landmarks_to_features(landmarks)

        self.assertEqual(features.shape, (FEATURE_SIZE,))
        self.assertEqual(features.dtype, np.float32)
        np.testing.assert_allclose(features[:6], [0.0, 0.2, 0.3, 0.1, 0.2, 0.3], rtol=1e-6)

    def test_wrong_point_count(self):
        with self.assertLogs("signspell.classifier", level="WARNING"):
            self.assertIsNone(landmarks_to_features([(0.5, 0.5, 0.0)] * 20))

    def test_missing_z(self):
        with self.assertLogs("signspell.classifier", level="WARNING"):
            self.assertIsNone(landmarks_to_features([(0.5, 0.5)] * 21))

    def test_no_landmarks(self):
        with self.assertLogs("signspell.classifier", level="WARNING"):
            self.assertIsNone(landmarks_to_features(None))


class TestLandmarkClassifier(unittest.TestCase):
    """Test argmax classification over model scores."""

    def setUp(self):
        self.features = np.zeros(FEATURE_SIZE, dtype=np.float32)

    def test_argmax_label(self):
        model = FixedModel(one_hot(2))
        classifier = LandmarkClassifier(model, DEFAULT_ALPHABET.labels)

        result = classifier.classify(self.features)

        self.assertEqual(result.label, "C")
        self.assertAlmostEqual(result.confidence, 0.9, places=5)
        self.assertEqual(model.calls[0].shape, (1, FEATURE_SIZE))

    def test_control_label(self):
        classifier = LandmarkClassifier(FixedModel(one_hot(26)), DEFAULT_ALPHABET.labels)
        self.assertEqual(classifier.classify(self.features).label, "CLEAR")

    def test_no_features_abstains(self):
        classifier = LandmarkClassifier(FixedModel(one_hot(0)), DEFAULT_ALPHABET.labels)
        self.assertIsNone(classifier.classify(None))

    def test_output_width_mismatch(self):
        classifier = LandmarkClassifier(FixedModel(one_hot(0, size=26)), DEFAULT_ALPHABET.labels)
        with self.assertRaises(ClassifierError):
            classifier.classify(self.features)

    def test_classify_landmarks(self):
        classifier = LandmarkClassifier(FixedModel(one_hot(7)), DEFAULT_ALPHABET.labels)
        result = classifier.classify_landmarks([(0.5, 0.5, 0.0)] * 21)
        self.assertEqual(result, Classification("H", result.confidence))

    def test_describe_last_scores(self):
        classifier = LandmarkClassifier(FixedModel(one_hot(2)), DEFAULT_ALPHABET.labels)
        self.assertEqual(classifier.describe(), "")

        classifier.classify(self.features)
        self.assertEqual(classifier.describe(), "C: 90.0%")

        classifier.classify(None)
        self.assertEqual(classifier.describe(), "")

    def test_implements_frame_classifier(self):
        classifier = LandmarkClassifier(FixedModel(one_hot(0)), DEFAULT_ALPHABET.labels)
        self.assertIsInstance(classifier, FrameClassifier)


class TestFormatPredictions(unittest.TestCase):
    """Test prediction display formatting."""

    def test_lists_labels_above_threshold(self):
        text = format_predictions([0.05, 0.91, 0.5], "ABC")
        self.assertEqual(text, "B: 91.0%\nC: 50.0%")

    def test_nothing_confident(self):
        self.assertEqual(format_predictions([0.01, 0.02], "AB"), "No confident predictions")

    def test_custom_threshold(self):
        self.assertEqual(format_predictions([0.4, 0.6], "AB", threshold=0.5), "B: 60.0%")


if __name__ == '__main__':
    unittest.main()
