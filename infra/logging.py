"""Structured logging utilities for speech session tracking."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

FALLBACK_LOG_PATH = "/tmp/speech_session.log"


class JsonFormatter(logging.Formatter):
    """Emit logs as JSON objects with a stable schema."""

    def format(self, record: logging.LogRecord) -> str:
        state = getattr(record, "state", None)
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "event_type": getattr(record, "event_type", "log"),
            "state": getattr(state, "value", state),
            "session_id": getattr(record, "session_id", None),
            "message": record.getMessage(),
            "metadata": getattr(record, "metadata", {}),
        }
        return json.dumps(payload, ensure_ascii=False, default=str)


def get_logger(
    name: str = "speech_session",
    primary_path: str = "/var/log/speech_session.log",
) -> logging.Logger:
    """Configure and return a structured application logger.

    Child loggers such as ``speech_session.state`` propagate into the
    handler installed here.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)

    if logger.handlers:
        return logger

    formatter = JsonFormatter()
    try:
        handler = logging.FileHandler(primary_path)
    except (OSError, PermissionError):
        print(f"[speech_session] warning: cannot open {primary_path}; falling back to {FALLBACK_LOG_PATH}")
        Path(FALLBACK_LOG_PATH).parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(FALLBACK_LOG_PATH)

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return logger
