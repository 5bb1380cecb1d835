"""Session settings loaded from the voicepace config.

Provides SessionSettings with the service defaults (40 ms frames, 60 s
duration limit, 10 s end-of-speech detection).
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..audio.framing import DEFAULT_FRAME_SIZE
from .protocol import DEFAULT_VAD_EOS_MS
from .signer import DEFAULT_SERVICE_URL

if TYPE_CHECKING:
    from ..core.config import ConfigLoader


@dataclass
class SessionSettings:
    """Configuration for recognition sessions.

    Loaded from config.toml ``[voicepace.session]`` with sensible defaults.
    """

    service_url: str = DEFAULT_SERVICE_URL

    # Business parameters
    vad_eos: int = DEFAULT_VAD_EOS_MS
    dynamic_correction: bool = False

    # Framing
    frame_size: int = DEFAULT_FRAME_SIZE

    # Session policy; None disables the duration limit
    max_duration_s: float | None = 60.0

    # Delay between file frames (the service expects real-time pacing)
    file_frame_interval_s: float = 0.04

    @classmethod
    def from_config(cls, config: "ConfigLoader | None" = None) -> "SessionSettings":
        """Load session settings from the global config."""
        if config is None:
            from ..core.config import get_config

            config = get_config()

        session_cfg = config.get("session", {})
        max_duration = session_cfg.get("max_duration_s", 60.0)
        return cls(
            service_url=str(config.get("service.url", DEFAULT_SERVICE_URL)),
            vad_eos=int(session_cfg.get("vad_eos", DEFAULT_VAD_EOS_MS)),
            dynamic_correction=bool(session_cfg.get("dynamic_correction", False)),
            frame_size=int(session_cfg.get("frame_size", DEFAULT_FRAME_SIZE)),
            max_duration_s=float(max_duration) if max_duration else None,
            file_frame_interval_s=float(session_cfg.get("file_frame_interval_s", 0.04)),
        )
