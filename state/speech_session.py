"""Speech session state machine driven by per-frame VAD decisions."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from infra.config import DEFAULT_SESSION_CONFIG, SessionConfig, validate_session_config
from infra.errors import InvalidHandleError
from infra.time_utils import frame_duration_ms, frames_to_ms


class SpeechState(str, Enum):
    SILENCE = "SILENCE"
    SPEECH_START = "SPEECH_START"
    SPEECH_CONTINUE = "SPEECH_CONTINUE"
    SPEECH_PAUSE = "SPEECH_PAUSE"
    SPEECH_END = "SPEECH_END"


UNKNOWN_STATE_NAME = "UNKNOWN"

_STATE_ORDER = tuple(SpeechState)


def state_name(state: object) -> str:
    """Return the stable label for a state, or UNKNOWN for anything else.

    Integer ordinals 0..4 are accepted in declaration order.
    """
    if isinstance(state, SpeechState):
        return state.value
    if isinstance(state, int) and not isinstance(state, bool) and 0 <= state < len(_STATE_ORDER):
        return _STATE_ORDER[state].value
    return UNKNOWN_STATE_NAME


@dataclass(frozen=True)
class SessionCounters:
    """Run-length and bookkeeping counters at a point in time."""

    speech_frame_count: int = 0
    silence_frame_count: int = 0
    total_frame_count: int = 0
    current_state_frames: int = 0
    speech_start_frame: int | None = None
    last_speech_frame: int | None = None


class TransitionListener(Protocol):
    def __call__(self, old_state: SpeechState, new_state: SpeechState) -> None: ...


def evaluate_transition(
    state: SpeechState,
    counters: SessionCounters,
    config: SessionConfig,
    duration_ms: float,
    voiced: bool,
) -> SpeechState:
    """Resolve the next state for one frame.

    Conditions for a state are checked in order and the first match wins.
    Returns ``state`` unchanged when no condition holds.
    """
    if state is SpeechState.SILENCE:
        if counters.speech_frame_count >= config.speech_start_frames:
            return SpeechState.SPEECH_START
        return state

    if state is SpeechState.SPEECH_START:
        if voiced:
            return SpeechState.SPEECH_CONTINUE
        if counters.silence_frame_count >= config.speech_end_frames:
            # Too short to be real speech: treat the onset as a false trigger.
            if frames_to_ms(counters.current_state_frames, duration_ms) < config.min_speech_duration_ms:
                return SpeechState.SILENCE
            return SpeechState.SPEECH_END
        return state

    if state is SpeechState.SPEECH_CONTINUE:
        if counters.silence_frame_count >= config.pause_frames:
            return SpeechState.SPEECH_PAUSE
        return state

    if state is SpeechState.SPEECH_PAUSE:
        if counters.speech_frame_count >= config.pause_resume_frames:
            return SpeechState.SPEECH_CONTINUE
        if frames_to_ms(counters.silence_frame_count, duration_ms) >= config.max_pause_duration_ms:
            return SpeechState.SPEECH_END
        return state

    if state is SpeechState.SPEECH_END:
        if counters.speech_frame_count >= config.speech_start_frames:
            return SpeechState.SPEECH_START
        return SpeechState.SILENCE

    raise ValueError(f"unhandled speech state: {state!r}")


class SpeechSessionStateMachine:
    """Debounces a stream of VAD frames into speech session states.

    Not thread-safe: callers must serialize ``process`` calls on one instance.
    The transition callback runs inline and must not call back into ``process``.
    """

    def __init__(
        self,
        config: SessionConfig | None = None,
        *,
        hop_size: int,
        sample_rate: int,
        on_transition: TransitionListener | None = None,
        session_id: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config if config is not None else DEFAULT_SESSION_CONFIG
        validate_session_config(self._config)
        self._hop_size = hop_size
        self._sample_rate = sample_rate
        self._frame_duration_ms = frame_duration_ms(hop_size, sample_rate)
        self._on_transition = on_transition
        self._session_id = session_id or uuid.uuid4().hex[:12]
        self._logger = logger or logging.getLogger("speech_session.state")
        self._destroyed = False
        self._restore_initial_state()

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def hop_size(self) -> int:
        return self._hop_size

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def frame_duration_ms(self) -> float:
        return self._frame_duration_ms

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def state(self) -> SpeechState:
        self._ensure_alive()
        return self._state

    @property
    def previous_state(self) -> SpeechState:
        self._ensure_alive()
        return self._previous_state

    @property
    def counters(self) -> SessionCounters:
        self._ensure_alive()
        return SessionCounters(
            speech_frame_count=self._speech_frame_count,
            silence_frame_count=self._silence_frame_count,
            total_frame_count=self._total_frame_count,
            current_state_frames=self._current_state_frames,
            speech_start_frame=self._speech_start_frame,
            last_speech_frame=self._last_speech_frame,
        )

    def process(self, flag: bool, probability: float) -> SpeechState:
        """Consume one frame and return the resulting state.

        ``probability`` is recorded in transition logs only; decisions use ``flag``.
        """
        self._ensure_alive()
        voiced = bool(flag)
        self._total_frame_count += 1
        self._current_state_frames += 1

        if voiced:
            self._speech_frame_count += 1
            self._silence_frame_count = 0
            self._last_speech_frame = self._total_frame_count
        else:
            self._silence_frame_count += 1
            self._speech_frame_count = 0

        next_state = evaluate_transition(
            self._state,
            self.counters,
            self._config,
            self._frame_duration_ms,
            voiced,
        )
        if next_state is SpeechState.SPEECH_START and self._state is not SpeechState.SPEECH_START:
            self._speech_start_frame = self._total_frame_count - self._speech_frame_count + 1
        self._change_state(next_state, probability)
        return self._state

    def get_current_state(self) -> SpeechState:
        return self.state

    def get_current_state_duration(self) -> float:
        """Milliseconds spent in the current state."""
        self._ensure_alive()
        return frames_to_ms(self._current_state_frames, self._frame_duration_ms)

    def reset(self) -> None:
        """Return to the initial SILENCE state without notifying the callback."""
        self._ensure_alive()
        self._restore_initial_state()

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        self._on_transition = None

    def _change_state(self, new_state: SpeechState, probability: float) -> None:
        if new_state is self._state:
            return
        old_state = self._state
        elapsed_ms = self.get_current_state_duration()
        self._previous_state = old_state
        self._state = new_state
        self._logger.info(
            "%s -> %s",
            old_state.value,
            new_state.value,
            extra={
                "event_type": "state_transition",
                "state": new_state,
                "session_id": self._session_id,
                "metadata": {
                    "from": old_state.value,
                    "to": new_state.value,
                    "frame": self._total_frame_count,
                    "probability": probability,
                    "previous_state_duration_ms": elapsed_ms,
                },
            },
        )
        try:
            if self._on_transition is not None:
                self._on_transition(old_state, new_state)
        finally:
            self._current_state_frames = 0

    def _restore_initial_state(self) -> None:
        self._state = SpeechState.SILENCE
        self._previous_state = SpeechState.SILENCE
        self._speech_frame_count = 0
        self._silence_frame_count = 0
        self._total_frame_count = 0
        self._current_state_frames = 0
        self._speech_start_frame: int | None = None
        self._last_speech_frame: int | None = None

    def _ensure_alive(self) -> None:
        if self._destroyed:
            raise InvalidHandleError(f"speech session {self._session_id} has been destroyed")
