"""Frame timing helpers used by the session state machine."""

from __future__ import annotations

from infra.errors import InvalidConfigError


def frame_duration_ms(hop_size: int, sample_rate: int) -> float:
    """Return the duration of one hop in milliseconds."""
    if hop_size <= 0:
        raise InvalidConfigError(f"hop_size must be positive, got {hop_size}")
    if sample_rate <= 0:
        raise InvalidConfigError(f"sample_rate must be positive, got {sample_rate}")
    return hop_size * 1000.0 / sample_rate


def frames_to_ms(frames: int, duration_ms: float) -> float:
    return frames * duration_ms
