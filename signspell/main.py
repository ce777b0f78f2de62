"""
Main application for sign spelling.

Serves the HTTP API by default; with --camera it runs the local webcam loop.
"""
import argparse
import asyncio
import importlib
import logging
import sys
from typing import Callable, Optional, Sequence

import cv2
from dotenv import load_dotenv

from .alphabet import Alphabet
from .classifier import landmarks_to_features
from .config import Cfg, load_config
from .executor import TextBufferExecutor, web_search_launcher
from .landmarks import HandsTracker, draw_landmarks
from .session import SpellingSession
from .types import AppendLetter, CommitPhase, FrameClassifier


class SignSpellingApp:
    """Webcam loop: landmarks -> classifier -> commit session -> text."""

    def __init__(self, classifier: FrameClassifier, config: Cfg):
        """Initialize the application with a classifier and configuration."""
        self.config = config
        self.classifier = classifier
        self.tracker = HandsTracker(
            max_num_hands=self.config.mediapipe.max_num_hands,
            min_detection_conf=self.config.mediapipe.min_detection_confidence,
            min_tracking_conf=self.config.mediapipe.min_tracking_confidence
        )
        self.executor = TextBufferExecutor(web_search_launcher(self.config.search.url_template))
        self.session = SpellingSession(
            self.config.commit,
            Alphabet.from_config(self.config.alphabet),
            self.executor,
        )

        # Initialize camera
        self.cap = cv2.VideoCapture(self.config.camera.index)
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.camera.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.camera.height)
        self.cap.set(cv2.CAP_PROP_FPS, self.config.camera.fps)

        if not self.cap.isOpened():
            raise RuntimeError(f"Failed to open camera {self.config.camera.index}")

    async def run(self):
        """Run the main application loop."""
        print(f"Starting {self.config.display.window_name}")
        print(f"Hold a sign for {self.config.commit.dwell_duration_ms / 1000:.1f}s to type it")
        print(f"  - {self.config.alphabet.clear_label} = clear text")
        print(f"  - {self.config.alphabet.search_label} = search typed text")
        print("Press 'q' to quit")

        stop = asyncio.Event()
        poller = asyncio.create_task(self.session.run_poller(stop))
        try:
            await self._frame_loop()
        finally:
            stop.set()
            await poller
            self.cap.release()
            self.tracker.close()
            cv2.destroyAllWindows()

    async def _frame_loop(self):
        while True:
            ret, frame = self.cap.read()
            if not ret:
                print("Failed to read frame from camera")
                break

            landmarks = self.tracker.process(frame)
            classification = None
            if landmarks is not None:
                classification = self.classifier.classify(landmarks_to_features(landmarks))

            action = await self.session.submit(classification)
            if isinstance(action, AppendLetter):
                print(f"Typed: {action.letter} -> {self.session.text}")
            elif action is not None:
                print(f"Action: {action.kind} -> '{self.session.text}'")

            if self.config.display.flip_horizontal:
                frame = cv2.flip(frame, 1)
            if landmarks and self.config.display.show_landmarks:
                frame = draw_landmarks(frame, landmarks, self.config.display.flip_horizontal)

            self._draw_status(frame, classification)
            cv2.imshow(self.config.display.window_name, frame)

            if cv2.waitKey(1) & 0xFF == ord('q'):
                break

            # Let the timer poll run between frames
            await asyncio.sleep(0)

    def _draw_status(self, frame, classification):
        status = self.session.status()
        if classification is None:
            prediction_text = "No hand detected"
        else:
            prediction_text = f"Sign: {classification.label} ({classification.confidence * 100:.0f}%)"

        if status.phase is CommitPhase.DWELLING:
            dwell_text = f"Holding {status.leading_label}: {status.remaining_ms / 1000:.1f}s ({status.vote_count} votes)"
            dwell_color = (0, 255, 0)
        else:
            dwell_text = "Waiting for a confident sign"
            dwell_color = (0, 0, 255)

        cv2.putText(frame, prediction_text, (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 255), 2)
        cv2.putText(frame, dwell_text, (10, 60), cv2.FONT_HERSHEY_SIMPLEX, 0.6, dwell_color, 2)

        # Per-label scores, when the classifier can report them
        describe = getattr(self.classifier, "describe", None)
        if classification is not None and describe is not None:
            for i, line in enumerate(describe().splitlines()[:5]):
                cv2.putText(frame, line, (10, 90 + i * 20), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (200, 200, 200), 1)

        cv2.putText(frame, f"Text: {self.session.text}", (10, frame.shape[0] - 50),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.8, (255, 255, 0), 2)
        cv2.putText(frame, "Press 'q' to quit", (10, frame.shape[0] - 20), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1)


def load_classifier_factory(target: str) -> Callable[[Sequence[str]], FrameClassifier]:
    """
    Resolve a 'package.module:callable' string.

    The callable receives the label list and returns a FrameClassifier.
    """
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Classifier must look like 'module:factory', got {target!r}")
    module = importlib.import_module(module_name)
    return getattr(module, attr)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Turn held hand signs into typed text")
    parser.add_argument("--config", help="Path to a YAML config file")
    parser.add_argument("--camera", action="store_true", help="Run the local webcam loop instead of the HTTP server")
    parser.add_argument("--classifier", help="Classifier factory as 'module:callable' (required with --camera)")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None):
    """Entry point for the application."""
    load_dotenv()
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    if not args.camera:
        import uvicorn
        from .server import create_app

        uvicorn.run(create_app(config), host=config.server.host, port=config.server.port)
        return

    if not args.classifier:
        print("Error: --camera needs --classifier module:callable")
        sys.exit(2)

    factory = load_classifier_factory(args.classifier)
    classifier = factory(Alphabet.from_config(config.alphabet).labels)

    try:
        app = SignSpellingApp(classifier, config)
        asyncio.run(app.run())
    except KeyboardInterrupt:
        print("\nApplication interrupted by user")


if __name__ == "__main__":
    main()
