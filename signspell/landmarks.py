"""
Hand landmark detection using MediaPipe, plus debug drawing.
"""
import cv2
import mediapipe as mp
import numpy as np
from typing import List, Optional, Tuple

from .types import Landmarks

# Finger joint connections forming the hand skeleton
HAND_CONNECTIONS: Tuple[Tuple[int, int], ...] = (
    # Thumb
    (0, 1), (1, 2), (2, 3), (3, 4),
    # Index finger
    (0, 5), (5, 6), (6, 7), (7, 8),
    # Middle finger
    (0, 9), (9, 10), (10, 11), (11, 12),
    # Ring finger
    (0, 13), (13, 14), (14, 15), (15, 16),
    # Pinky
    (0, 17), (17, 18), (18, 19), (19, 20),
    # Palm
    (5, 9), (9, 13), (13, 17),
)


class HandsTracker:
    """Hand landmark tracker using MediaPipe Hands."""

    def __init__(self, max_num_hands: int = 1, min_detection_conf: float = 0.6, min_tracking_conf: float = 0.6):
        """
        Initialize the hands tracker.

        Args:
            max_num_hands: Maximum number of hands to detect
            min_detection_conf: Minimum confidence for hand detection
            min_tracking_conf: Minimum confidence for hand tracking
        """
        self.mp_hands = mp.solutions.hands
        self.hands = self.mp_hands.Hands(
            static_image_mode=False,
            max_num_hands=max_num_hands,
            min_detection_confidence=min_detection_conf,
            min_tracking_confidence=min_tracking_conf
        )

    def process(self, frame_bgr: np.ndarray) -> Optional[List[Tuple[float, float, float]]]:
        """
        Process a frame and return hand landmarks.

        Args:
            frame_bgr: Input frame in BGR format

        Returns:
            List of 21 (x, y, z) coordinates, x/y in [0..1] range, or None if no hand detected
        """
        # MediaPipe expects RGB
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        results = self.hands.process(frame_rgb)

        if not results.multi_hand_landmarks:
            return None

        # Single commit stream: only the first hand counts
        hand_landmarks = results.multi_hand_landmarks[0]
        return [(lm.x, lm.y, lm.z) for lm in hand_landmarks.landmark]

    def close(self) -> None:
        self.hands.close()


def to_pixel(point: Tuple[float, ...], width: int, height: int, flip_horizontal: bool = True) -> Tuple[int, int]:
    """Convert a normalized landmark to pixel coordinates, mirroring x if asked."""
    x = width - point[0] * width if flip_horizontal else point[0] * width
    y = point[1] * height
    return int(x), int(y)


def draw_landmarks(frame: np.ndarray, landmarks: Landmarks, flip_horizontal: bool = False) -> np.ndarray:
    """
    Draw the hand skeleton and numbered landmarks on the frame.

    Args:
        frame: Input frame, drawn on in place
        landmarks: 21 normalized landmarks
        flip_horizontal: Mirror x, for frames that were flipped for display

    Returns:
        Frame with landmarks drawn
    """
    height, width = frame.shape[:2]
    pixels = [to_pixel(p, width, height, flip_horizontal) for p in landmarks]

    for i, j in HAND_CONNECTIONS:
        if i < len(pixels) and j < len(pixels):
            cv2.line(frame, pixels[i], pixels[j], (48, 255, 48), 2)

    for index, (px, py) in enumerate(pixels):
        # Wrist in red, joints in green (BGR)
        color = (48, 48, 255) if index == 0 else (48, 255, 48)
        cv2.circle(frame, (px, py), 5, color, -1)
        cv2.putText(frame, str(index), (px + 10, py + 5), cv2.FONT_HERSHEY_SIMPLEX, 0.3, (255, 255, 255), 1)

    return frame
