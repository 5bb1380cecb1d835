"""Exception hierarchy for recognition sessions.

Every error carries a short ``kind`` tag and a human readable message so the
presentation layer can render a terminal message without the original
trigger.
"""


class RecognitionError(Exception):
    """Base exception for recognition errors."""

    kind = "recognition_error"

    def __init__(self, message: str, cause: Exception | None = None):
        self.message = message
        self.cause = cause
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {"kind": self.kind, "message": self.message}


class ConfigurationError(RecognitionError):
    """Missing or invalid credentials, settings or vendor tags."""

    kind = "configuration"


class ConcurrentSessionError(RecognitionError):
    """Raised when start() is called while another lifecycle is active."""

    kind = "concurrent_session"

    def __init__(self, state: str):
        self.state = state
        super().__init__(f"A recognition session is already active (state={state})")


class TransportError(RecognitionError):
    """Connect, send, close or service-side failure."""

    kind = "transport"

    def __init__(self, message: str, cause: Exception | None = None, code: int | None = None, sid: str | None = None):
        self.code = code
        self.sid = sid
        super().__init__(message, cause)

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.code is not None:
            data["code"] = self.code
        if self.sid:
            data["sid"] = self.sid
        return data


class ParseError(RecognitionError):
    """Malformed inbound message."""

    kind = "parse"


class CaptureUnavailableError(RecognitionError):
    """Capture device missing or failed to start."""

    kind = "capture_unavailable"


class CaptureReadError(RecognitionError):
    """File-based audio input could not be read."""

    kind = "capture_read"


__all__ = [
    "RecognitionError",
    "ConfigurationError",
    "ConcurrentSessionError",
    "TransportError",
    "ParseError",
    "CaptureUnavailableError",
    "CaptureReadError",
]
