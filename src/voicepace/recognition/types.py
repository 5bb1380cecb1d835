"""Type definitions for streaming recognition.

Provides:
- Credentials: identity and audio parameters for one client
- SessionState: lifecycle of a recognition session
- FrameStatus / CorrectionMode: wire-level enums
- InboundFragment: one parsed message from the service
- RecognitionResult: the event handed to consumers
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any

from ..exceptions import ConfigurationError


@dataclass(frozen=True)
class Credentials:
    """Service credentials, immutable once a session starts."""

    app_id: str
    api_key: str
    api_secret: str
    language: str = "zh_cn"
    sample_rate: int = 16000

    def validate(self) -> "Credentials":
        """Raise ConfigurationError unless all identity fields are set."""
        missing = [
            name for name in ("app_id", "api_key", "api_secret") if not str(getattr(self, name) or "").strip()
        ]
        if missing:
            raise ConfigurationError(f"Missing credentials: {', '.join(missing)}")
        if self.sample_rate <= 0:
            raise ConfigurationError(f"Invalid sample rate: {self.sample_rate}")
        return self

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "Credentials":
        """Build from a config/credential-source mapping (snake or camel case keys)."""

        def pick(*keys: str, default: Any = "") -> Any:
            for key in keys:
                if data.get(key) not in (None, ""):
                    return data[key]
            return default

        return cls(
            app_id=str(pick("app_id", "appId")),
            api_key=str(pick("api_key", "apiKey")),
            api_secret=str(pick("api_secret", "apiSecret")),
            language=str(pick("language", default="zh_cn")),
            sample_rate=int(pick("sample_rate", "sampleRate", default=16000)),
        )

    def __repr__(self) -> str:
        return f"Credentials(app_id={self.app_id!r}, language={self.language!r}, sample_rate={self.sample_rate})"


class SessionState(Enum):
    """State of a recognition session."""

    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    CLOSING = "closing"
    CLOSED = "closed"
    FAILED = "failed"


# States in which a lifecycle holds the transport
ACTIVE_STATES = frozenset({SessionState.CONNECTING, SessionState.STREAMING, SessionState.CLOSING})


class FrameStatus(IntEnum):
    """Value of ``data.status`` on outbound packets."""

    INITIAL = 0
    CONTINUE = 1
    FINAL = 2


class CorrectionMode(Enum):
    """Dynamic correction mode carried in the ``pgs`` field."""

    NONE = None
    APPEND = "apd"
    REPLACE = "rpl"


@dataclass(frozen=True)
class InboundFragment:
    """One recognition message received from the service."""

    words: tuple[str, ...] = ()
    correction_mode: CorrectionMode = CorrectionMode.NONE
    is_finished: bool = False
    code: int = 0
    status: int = 0
    sid: str = ""
    message: str = ""
    has_result: bool = True
    raw: dict | None = field(default=None, repr=False, compare=False)

    @property
    def text(self) -> str:
        return "".join(self.words)


@dataclass
class RecognitionResult:
    """Result event delivered to the consumer callback."""

    text: str
    is_finished: bool = False
    raw: dict | None = field(default=None, repr=False)

    def to_dict(self) -> dict:
        return {"text": self.text, "is_finished": self.is_finished}
