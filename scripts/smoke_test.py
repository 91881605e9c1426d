"""Smoke test: health checks plus one scripted replay through the state machine."""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from infra.config import load_settings
from infra.logging import get_logger
from main import replay_demo, run_startup_health_checks
from state.speech_session import state_name


if __name__ == "__main__":
    ok, details = run_startup_health_checks()
    print(details)
    if not ok:
        raise SystemExit(1)
    settings = load_settings()
    states = replay_demo(settings, get_logger(primary_path=settings.log_path))
    print(f"frames={len(states)} final_state={state_name(states[-1])}")
    raise SystemExit(0)
