"""Voice activity detection contracts and frame replay helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol, Sequence

from state.speech_session import SpeechSessionStateMachine, SpeechState

# silence -> speech -> short pause -> speech -> trailing silence
DEMO_SCENARIO: tuple[int, ...] = (
    (0,) * 5
    + (1,) * 10
    + (1,) * 15
    + (0,) * 8
    + (1,) * 10
    + (0,) * 20
)


@dataclass(frozen=True)
class VADFrame:
    """Per-frame detector output."""

    flag: bool
    probability: float


class VADFrameSource(Protocol):
    """Streaming source of per-frame VAD decisions."""

    def frames(self) -> Iterable[VADFrame]: ...


@dataclass
class ScriptedVAD:
    """In-memory source replaying a fixed 0/1 script."""

    script: Sequence[int]
    voiced_probability: float = 0.9
    silent_probability: float = 0.1

    def frames(self) -> Iterable[VADFrame]:
        for value in self.script:
            voiced = bool(value)
            yield VADFrame(
                flag=voiced,
                probability=self.voiced_probability if voiced else self.silent_probability,
            )


def run_session(source: VADFrameSource, machine: SpeechSessionStateMachine) -> list[SpeechState]:
    """Feed every frame from source into machine in order and collect the states."""
    return [machine.process(frame.flag, frame.probability) for frame in source.frames()]
