"""Audio input: framing, capture devices and file loading."""

from importlib import import_module
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .capture import AudioCapture, PyAudioCapture
    from .file_source import read_audio_file
    from .framing import AudioFrame, AudioFramer, FrameSequencer

__all__ = ["AudioCapture", "PyAudioCapture", "AudioFrame", "AudioFramer", "FrameSequencer", "read_audio_file"]

_LAZY_EXPORTS = {
    "AudioCapture": (".capture", "AudioCapture"),
    "PyAudioCapture": (".capture", "PyAudioCapture"),
    "AudioFrame": (".framing", "AudioFrame"),
    "AudioFramer": (".framing", "AudioFramer"),
    "FrameSequencer": (".framing", "FrameSequencer"),
    "read_audio_file": (".file_source", "read_audio_file"),
}


def __getattr__(name):
    if name not in _LAZY_EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module_name, attr_name = _LAZY_EXPORTS[name]
    module = import_module(module_name, __name__)
    value = getattr(module, attr_name)
    globals()[name] = value
    return value
