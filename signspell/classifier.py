"""
Feature extraction and a model-agnostic wrapper around the sign classifier.
"""
import logging
from typing import Any, Optional, Sequence

import numpy as np

from .types import Classification, Landmarks

logger = logging.getLogger(__name__)

NUM_LANDMARKS = 21
FEATURE_SIZE = NUM_LANDMARKS * 3  # x, y, z per landmark


class ClassifierError(RuntimeError):
    """Raised when the wrapped model produces output of the wrong shape."""


def landmarks_to_features(landmarks: Optional[Landmarks]) -> Optional[np.ndarray]:
    """
    Flatten hand landmarks into the classifier's input vector.

    Args:
        landmarks: 21 (x, y, z) points in normalized image coordinates

    Returns:
        Float32 vector of length 63, or None if the landmarks are invalid
    """
    if landmarks is None or len(landmarks) != NUM_LANDMARKS:
        logger.warning("Invalid landmarks: expected %d points, got %s",
                       NUM_LANDMARKS, None if landmarks is None else len(landmarks))
        return None

    try:
        points = np.asarray(landmarks, dtype=np.float32)
    except (TypeError, ValueError) as e:
        logger.warning("Invalid landmarks: %s", e)
        return None
    if points.shape != (NUM_LANDMARKS, 3):
        logger.warning("Invalid landmark shape %s, expected (%d, 3)", points.shape, NUM_LANDMARKS)
        return None
    return points.reshape(FEATURE_SIZE)


class LandmarkClassifier:
    """
    Classifies a landmark feature vector with an injected model.

    The model can be anything with a `predict(batch)` method returning one row
    of per-label scores per input row, e.g. a Keras model.
    """

    def __init__(self, model: Any, labels: Sequence[str]):
        self.model = model
        self.labels = tuple(labels)
        self.last_scores: Optional[np.ndarray] = None

    def scores(self, features: np.ndarray) -> np.ndarray:
        """Return the model's score vector for one feature vector."""
        batch = np.asarray(features, dtype=np.float32).reshape(1, -1)
        output = np.asarray(self.model.predict(batch))
        scores = output.reshape(-1)
        if scores.shape[0] != len(self.labels):
            raise ClassifierError(
                f"Model returned {scores.shape[0]} scores for {len(self.labels)} labels")
        return scores

    def classify(self, features: Optional[np.ndarray]) -> Optional[Classification]:
        if features is None:
            self.last_scores = None
            return None

        scores = self.scores(features)
        self.last_scores = scores
        index = int(np.argmax(scores))
        confidence = float(np.clip(scores[index], 0.0, 1.0))
        label = self.labels[index]
        logger.debug("Predicted index %d -> %s (confidence %.2f)", index, label, confidence)
        return Classification(label=label, confidence=confidence)

    def classify_landmarks(self, landmarks: Optional[Landmarks]) -> Optional[Classification]:
        return self.classify(landmarks_to_features(landmarks))

    def describe(self, threshold: float = 0.1) -> str:
        """Format the scores from the last classify() call for display."""
        if self.last_scores is None:
            return ""
        return format_predictions(self.last_scores.tolist(), self.labels, threshold)


def format_predictions(confidences: Sequence[float], labels: Sequence[str],
                       threshold: float = 0.1) -> str:
    """
    Format per-label confidences for display.

    Only labels scoring at or above `threshold` are listed, one per line.
    """
    lines = [f"{label}: {confidence * 100:.1f}%"
             for label, confidence in zip(labels, confidences)
             if confidence >= threshold]
    if not lines:
        return "No confident predictions"
    return "\n".join(lines)
