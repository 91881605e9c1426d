"""Configuration loading and validation for the speech session state machine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, TypeVar

from infra.errors import InvalidConfigError
from infra.time_utils import frame_duration_ms

T = TypeVar("T")


@dataclass(frozen=True)
class SessionConfig:
    """Debounce and hysteresis thresholds, fixed for the lifetime of a machine."""

    speech_start_frames: int = 3
    speech_end_frames: int = 10
    pause_frames: int = 5
    pause_resume_frames: int = 2
    min_speech_duration_ms: float = 200.0
    max_pause_duration_ms: float = 1000.0


DEFAULT_SESSION_CONFIG = SessionConfig()


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    hop_size: int = 256
    sample_rate: int = 16000
    speech_start_frames: int = 3
    speech_end_frames: int = 10
    pause_frames: int = 5
    pause_resume_frames: int = 2
    min_speech_duration_ms: float = 200.0
    max_pause_duration_ms: float = 1000.0
    log_path: str = "/var/log/speech_session.log"

    @property
    def session_config(self) -> SessionConfig:
        return SessionConfig(
            speech_start_frames=self.speech_start_frames,
            speech_end_frames=self.speech_end_frames,
            pause_frames=self.pause_frames,
            pause_resume_frames=self.pause_resume_frames,
            min_speech_duration_ms=self.min_speech_duration_ms,
            max_pause_duration_ms=self.max_pause_duration_ms,
        )

    @property
    def frame_duration_ms(self) -> float:
        return frame_duration_ms(self.hop_size, self.sample_rate)


def load_dotenv(path: str = ".env") -> None:
    """Load .env key-value pairs into environment without overriding existing values."""
    env_path = Path(path)
    if not env_path.exists():
        return

    for line in env_path.read_text().splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Load and validate application settings from environment."""
    source = os.environ if env is None else env
    settings = Settings(
        hop_size=_read(source, "VAD_HOP_SIZE", int, 256),
        sample_rate=_read(source, "VAD_SAMPLE_RATE", int, 16000),
        speech_start_frames=_read(source, "SPEECH_START_FRAMES", int, 3),
        speech_end_frames=_read(source, "SPEECH_END_FRAMES", int, 10),
        pause_frames=_read(source, "PAUSE_FRAMES", int, 5),
        pause_resume_frames=_read(source, "PAUSE_RESUME_FRAMES", int, 2),
        min_speech_duration_ms=_read(source, "MIN_SPEECH_DURATION_MS", float, 200.0),
        max_pause_duration_ms=_read(source, "MAX_PAUSE_DURATION_MS", float, 1000.0),
        log_path=source.get("SPEECH_SESSION_LOG_PATH", "/var/log/speech_session.log"),
    )
    _validate(settings)
    return settings


def validate_session_config(config: SessionConfig) -> None:
    """Reject thresholds the transition rules cannot honor."""
    frame_fields = {
        "speech_start_frames": config.speech_start_frames,
        "speech_end_frames": config.speech_end_frames,
        "pause_frames": config.pause_frames,
        "pause_resume_frames": config.pause_resume_frames,
    }
    for name, value in frame_fields.items():
        if value < 1:
            raise InvalidConfigError(f"{name} must be at least 1, got {value}")
    if config.min_speech_duration_ms < 0:
        raise InvalidConfigError("min_speech_duration_ms must not be negative")
    if config.max_pause_duration_ms < 0:
        raise InvalidConfigError("max_pause_duration_ms must not be negative")


def _read(source: Mapping[str, str], key: str, cast: Callable[[str], T], default: T) -> T:
    raw = source.get(key)
    if raw is None:
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        raise InvalidConfigError(f"{key} has invalid value '{raw}'") from exc


def _validate(settings: Settings) -> None:
    if settings.hop_size <= 0:
        raise InvalidConfigError("VAD_HOP_SIZE must be positive")
    if settings.sample_rate <= 0:
        raise InvalidConfigError("VAD_SAMPLE_RATE must be positive")
    if not settings.log_path:
        raise InvalidConfigError("SPEECH_SESSION_LOG_PATH must not be empty")
    validate_session_config(settings.session_config)
