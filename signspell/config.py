"""
Configuration management for the sign spelling pipeline.
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.default.yaml"
CONFIG_ENV_VAR = "SIGNSPELL_CONFIG"

# Operator-tunable ranges; values outside them are allowed but logged
RECOMMENDED_THRESHOLD_RANGE = (0.3, 0.9)
RECOMMENDED_DWELL_RANGE_MS = (500, 3000)


class ConfigError(ValueError):
    """Raised when a configuration value is out of its valid domain."""


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    index: int
    width: int
    height: int
    fps: int


@dataclass
class MediaPipeConfig:
    """MediaPipe Hands configuration settings."""
    max_num_hands: int
    min_detection_confidence: float
    min_tracking_confidence: float


@dataclass(frozen=True)
class CommitConfig:
    """Commit state machine configuration. Replaced, never mutated."""
    confidence_threshold: float = 0.6
    dwell_duration_ms: int = 3000
    poll_interval_ms: int = 100

    def __post_init__(self):
        validate_commit_config(self)


@dataclass
class AlphabetConfig:
    """Classifier label set."""
    letters: str
    clear_label: str
    search_label: str


@dataclass
class SearchConfig:
    """External search settings."""
    url_template: str


@dataclass
class DisplayConfig:
    """Display configuration settings."""
    show_landmarks: bool
    flip_horizontal: bool
    window_name: str


@dataclass
class ServerConfig:
    """HTTP service settings."""
    host: str
    port: int
    poll_in_background: bool


@dataclass
class Cfg:
    """Main configuration class."""
    camera: CameraConfig
    mediapipe: MediaPipeConfig
    commit: CommitConfig
    alphabet: AlphabetConfig
    search: SearchConfig
    display: DisplayConfig
    server: ServerConfig


def validate_commit_config(commit: CommitConfig) -> None:
    """
    Check hard limits and warn about values outside the recommended ranges.

    Raises:
        ConfigError: if a value is outside its valid domain
    """
    threshold = commit.confidence_threshold
    if not 0.0 < threshold <= 1.0:
        raise ConfigError(f"confidence_threshold must be in (0, 1], got {threshold}")
    if int(commit.dwell_duration_ms) != commit.dwell_duration_ms or commit.dwell_duration_ms <= 0:
        raise ConfigError(f"dwell_duration_ms must be a positive integer, got {commit.dwell_duration_ms}")
    if commit.poll_interval_ms <= 0:
        raise ConfigError(f"poll_interval_ms must be positive, got {commit.poll_interval_ms}")

    low, high = RECOMMENDED_THRESHOLD_RANGE
    if not low <= threshold <= high:
        logger.warning("confidence_threshold %.2f is outside the recommended range [%.1f, %.1f]",
                       threshold, low, high)
    low_ms, high_ms = RECOMMENDED_DWELL_RANGE_MS
    if not low_ms <= commit.dwell_duration_ms <= high_ms:
        logger.warning("dwell_duration_ms %d is outside the recommended range [%d, %d]",
                       commit.dwell_duration_ms, low_ms, high_ms)


def resolve_config_path(path: Optional[str] = None) -> Path:
    """Pick the explicit path, then $SIGNSPELL_CONFIG, then the packaged default."""
    if path is not None:
        return Path(path)
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


def load_config(path: Optional[str] = None) -> Cfg:
    """
    Load configuration from YAML file.

    Args:
        path: Path to config file. If None, uses $SIGNSPELL_CONFIG or the
            packaged config.default.yaml

    Returns:
        Configuration object with all settings

    Raises:
        FileNotFoundError: if the config file does not exist
        ConfigError: if a section is missing or a value is invalid
    """
    config_path = resolve_config_path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f)

    logger.debug("Loaded config from %s", config_path)
    return _dict_to_config(data or {})


def _dict_to_config(data: Dict[str, Any]) -> Cfg:
    """Convert dictionary to configuration object."""
    try:
        camera_data = data['camera']
        camera = CameraConfig(
            index=camera_data['index'],
            width=camera_data['width'],
            height=camera_data['height'],
            fps=camera_data['fps']
        )

        mp_data = data['mediapipe']
        mediapipe = MediaPipeConfig(
            max_num_hands=mp_data['max_num_hands'],
            min_detection_confidence=mp_data['min_detection_confidence'],
            min_tracking_confidence=mp_data['min_tracking_confidence']
        )

        commit_data = data['commit']
        commit = CommitConfig(
            confidence_threshold=float(commit_data['confidence_threshold']),
            dwell_duration_ms=commit_data['dwell_duration_ms'],
            poll_interval_ms=commit_data['poll_interval_ms']
        )

        alphabet_data = data['alphabet']
        alphabet = AlphabetConfig(
            letters=alphabet_data['letters'],
            clear_label=alphabet_data['clear_label'],
            search_label=alphabet_data['search_label']
        )

        search = SearchConfig(url_template=data['search']['url_template'])

        display_data = data['display']
        display = DisplayConfig(
            show_landmarks=display_data['show_landmarks'],
            flip_horizontal=display_data['flip_horizontal'],
            window_name=display_data['window_name']
        )

        server_data = data['server']
        server = ServerConfig(
            host=server_data['host'],
            port=server_data['port'],
            poll_in_background=server_data['poll_in_background']
        )
    except KeyError as e:
        raise ConfigError(f"Missing config key: {e}") from e

    return Cfg(
        camera=camera,
        mediapipe=mediapipe,
        commit=commit,
        alphabet=alphabet,
        search=search,
        display=display,
        server=server
    )
