"""Speech session entry point: health checks and scripted replay."""

from __future__ import annotations

import logging

from audio.vad import DEMO_SCENARIO, ScriptedVAD
from infra.config import Settings, load_dotenv, load_settings
from infra.errors import SpeechSessionError
from infra.logging import get_logger
from state.speech_session import SpeechSessionStateMachine, SpeechState, state_name


def run_startup_health_checks() -> tuple[bool, dict[str, bool]]:
    """Run lightweight startup checks for configuration and logging."""
    checks = {"config_loadable": False, "logger_writable": False}
    try:
        load_dotenv()
        settings = load_settings()
        checks["config_loadable"] = True
        logger = get_logger(primary_path=settings.log_path)
        logger.info("startup health checks completed", extra={"event_type": "health_check", "metadata": checks})
        checks["logger_writable"] = True
    except (SpeechSessionError, OSError):
        return False, checks
    return all(checks.values()), checks


def replay_demo(settings: Settings, logger: logging.Logger) -> list[SpeechState]:
    """Run the demo scenario through a machine built from settings."""
    machine = SpeechSessionStateMachine(
        settings.session_config,
        hop_size=settings.hop_size,
        sample_rate=settings.sample_rate,
    )
    states = []
    try:
        for index, frame in enumerate(ScriptedVAD(DEMO_SCENARIO).frames()):
            state = machine.process(frame.flag, frame.probability)
            states.append(state)
            logger.info(
                "frame processed",
                extra={
                    "event_type": "frame",
                    "state": state,
                    "session_id": machine.session_id,
                    "metadata": {
                        "index": index,
                        "flag": frame.flag,
                        "probability": frame.probability,
                        "state_name": state_name(state),
                        "state_duration_ms": machine.get_current_state_duration(),
                    },
                },
            )
    finally:
        machine.destroy()
    return states


def main() -> int:
    ok, checks = run_startup_health_checks()
    if not ok:
        # Settings may be what failed, so use the default log path.
        get_logger().error("startup health checks failed", extra={"event_type": "health_check", "metadata": checks})
        return 1

    settings = load_settings()
    logger = get_logger(primary_path=settings.log_path)
    states = replay_demo(settings, logger)
    logger.info(
        "demo replay finished",
        extra={"event_type": "replay_done", "state": states[-1], "metadata": {"frames": len(states)}},
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
