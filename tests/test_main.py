import logging
from pathlib import Path
from typing import Iterator

import pytest

from audio.vad import DEMO_SCENARIO
from infra.config import Settings
from main import replay_demo, run_startup_health_checks
from state.speech_session import SpeechState


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SPEECH_SESSION_LOG_PATH", str(tmp_path / "session.log"))
    logger = logging.getLogger("speech_session")
    saved = list(logger.handlers)
    for handler in saved:
        logger.removeHandler(handler)
    yield tmp_path
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    for handler in saved:
        logger.addHandler(handler)


def test_health_checks_pass_with_writable_log(isolated_env: Path) -> None:
    ok, checks = run_startup_health_checks()
    assert ok
    assert checks == {"config_loadable": True, "logger_writable": True}
    assert (isolated_env / "session.log").exists()


def test_health_checks_fail_on_invalid_settings(isolated_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VAD_HOP_SIZE", "0")
    ok, checks = run_startup_health_checks()
    assert not ok
    assert checks["config_loadable"] is False


def test_replay_demo_logs_every_frame(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("speech_session_test_replay")
    caplog.set_level(logging.INFO, logger="speech_session_test_replay")

    states = replay_demo(Settings(), logger)

    frame_records = [r for r in caplog.records if getattr(r, "event_type", None) == "frame"]
    assert len(states) == len(frame_records) == len(DEMO_SCENARIO)
    assert states[-1] == SpeechState.SPEECH_PAUSE
    assert frame_records[7].metadata["state_name"] == "SPEECH_START"
    assert frame_records[7].metadata["state_duration_ms"] == 0.0
