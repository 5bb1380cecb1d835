"""VoicePace - streaming speech recognition with live speaking-rate analytics."""

from importlib import metadata
from importlib import import_module
from pathlib import Path
import tomllib
from typing import TYPE_CHECKING


def _get_version() -> str:
    try:
        return metadata.version("voicepace")
    except Exception:
        pass

    try:
        pyproject_path = Path(__file__).resolve().parents[2] / "pyproject.toml"
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
        return str(data["project"]["version"])
    except Exception:
        return "unknown"


__version__ = _get_version()

if TYPE_CHECKING:
    from .analytics import RateAnalyticsEngine, RateBands, RateSummary
    from .core.config import ConfigLoader, get_config
    from .recognition import (
        Credentials,
        RecognitionResult,
        SessionState,
        StreamingRecognitionSession,
        create_service,
    )

_LAZY_EXPORTS = {
    "ConfigLoader": (".core.config", "ConfigLoader"),
    "get_config": (".core.config", "get_config"),
    "Credentials": (".recognition.types", "Credentials"),
    "RecognitionResult": (".recognition.types", "RecognitionResult"),
    "SessionState": (".recognition.types", "SessionState"),
    "StreamingRecognitionSession": (".recognition.session", "StreamingRecognitionSession"),
    "create_service": (".recognition.registry", "create_service"),
    "RateAnalyticsEngine": (".analytics.rate", "RateAnalyticsEngine"),
    "RateBands": (".analytics.rate", "RateBands"),
    "RateSummary": (".analytics.rate", "RateSummary"),
}


def __getattr__(name):
    if name in {"analytics", "audio", "core", "recognition"}:
        module = import_module(f".{name}", __name__)
        globals()[name] = module
        return module

    if name not in _LAZY_EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module_name, attr_name = _LAZY_EXPORTS[name]
    module = import_module(module_name, __name__)
    value = getattr(module, attr_name)
    globals()[name] = value
    return value


__all__ = [
    "ConfigLoader",
    "get_config",
    "Credentials",
    "RecognitionResult",
    "SessionState",
    "StreamingRecognitionSession",
    "create_service",
    "RateAnalyticsEngine",
    "RateBands",
    "RateSummary",
]
