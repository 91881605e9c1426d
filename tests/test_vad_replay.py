from audio.vad import DEMO_SCENARIO, ScriptedVAD, VADFrame, run_session
from infra.config import SessionConfig
from state.speech_session import SpeechSessionStateMachine, SpeechState


def test_scripted_vad_maps_script_to_frames() -> None:
    source = ScriptedVAD([1, 0, 1], voiced_probability=0.8, silent_probability=0.2)
    assert list(source.frames()) == [
        VADFrame(flag=True, probability=0.8),
        VADFrame(flag=False, probability=0.2),
        VADFrame(flag=True, probability=0.8),
    ]


def test_demo_scenario_walks_through_pause_and_resume() -> None:
    transitions: list[tuple[SpeechState, SpeechState]] = []
    machine = SpeechSessionStateMachine(
        hop_size=256,
        sample_rate=16000,
        on_transition=lambda old, new: transitions.append((old, new)),
    )

    states = run_session(ScriptedVAD(DEMO_SCENARIO), machine)

    assert len(states) == len(DEMO_SCENARIO) == 68
    assert states[7] == SpeechState.SPEECH_START
    assert states[8] == SpeechState.SPEECH_CONTINUE
    assert states[-1] == SpeechState.SPEECH_PAUSE
    assert transitions == [
        (SpeechState.SILENCE, SpeechState.SPEECH_START),
        (SpeechState.SPEECH_START, SpeechState.SPEECH_CONTINUE),
        (SpeechState.SPEECH_CONTINUE, SpeechState.SPEECH_PAUSE),
        (SpeechState.SPEECH_PAUSE, SpeechState.SPEECH_CONTINUE),
        (SpeechState.SPEECH_CONTINUE, SpeechState.SPEECH_PAUSE),
    ]
    assert machine.counters.speech_start_frame == 6
    assert machine.counters.last_speech_frame == 48


def test_demo_scenario_ends_speech_with_tight_pause_limit() -> None:
    machine = SpeechSessionStateMachine(
        SessionConfig(max_pause_duration_ms=240.0),
        hop_size=256,
        sample_rate=16000,
    )
    states = run_session(ScriptedVAD(DEMO_SCENARIO), machine)
    assert SpeechState.SPEECH_END in states
    assert states[-1] == SpeechState.SILENCE
