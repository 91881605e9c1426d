"""Custom exceptions for the speech session state machine."""


class SpeechSessionError(Exception):
    """Base class for speech session errors."""


class InvalidConfigError(SpeechSessionError, ValueError):
    """Raised when frame geometry or session thresholds are invalid."""


class InvalidHandleError(SpeechSessionError):
    """Raised when a destroyed state machine is used."""
