"""Tests for the PyAudio capture adapter."""

import sys
import types

import pytest

from voicepace.audio.capture import AudioCapture, PyAudioCapture
from voicepace.exceptions import CaptureUnavailableError


class _FakeStream:
    def __init__(self):
        self.started = False
        self.closed = False

    def start_stream(self):
        self.started = True

    def stop_stream(self):
        self.started = False

    def close(self):
        self.closed = True


@pytest.fixture
def fake_pyaudio(monkeypatch):
    module = types.ModuleType("pyaudio")
    module.paInt16 = 8
    module.paContinue = 0
    module.opened = []

    class PyAudio:
        def __init__(self):
            self.terminated = False

        def open(self, **kwargs):
            stream = _FakeStream()
            module.opened.append((kwargs, stream))
            return stream

        def terminate(self):
            self.terminated = True

    module.PyAudio = PyAudio
    monkeypatch.setitem(sys.modules, "pyaudio", module)
    return module


def test_satisfies_capture_protocol(fake_pyaudio):
    assert isinstance(PyAudioCapture(), AudioCapture)


def test_missing_pyaudio_fails_at_construction(monkeypatch):
    monkeypatch.setitem(sys.modules, "pyaudio", None)
    with pytest.raises(CaptureUnavailableError, match="PyAudio is not installed"):
        PyAudioCapture()


def test_frames_and_final_frame(fake_pyaudio):
    frames = []
    stopped = []
    capture = PyAudioCapture(device_index=2)
    capture.on_frame_recorded = frames.append
    capture.on_stop = stopped.append

    capture.start(sample_rate=16000, frame_size=1280)
    kwargs, stream = fake_pyaudio.opened[0]
    assert kwargs["frames_per_buffer"] == 640
    assert kwargs["input_device_index"] == 2
    assert kwargs["format"] == fake_pyaudio.paInt16
    assert stream.started is True

    chunk = b"\x01\x00" * 640
    assert capture._audio_callback(chunk, 640, None, 0) == (None, fake_pyaudio.paContinue)
    capture.stop()
    capture.stop()

    assert [frame.payload for frame in frames] == [chunk, b""]
    assert [frame.is_final for frame in frames] == [False, True]
    assert stopped == [[chunk]]
    assert stream.closed is True
    assert capture.is_recording is False


def test_open_failure(fake_pyaudio, monkeypatch):
    def broken_open(self, **kwargs):
        raise OSError("Invalid input device")

    monkeypatch.setattr(fake_pyaudio.PyAudio, "open", broken_open)
    capture = PyAudioCapture()
    with pytest.raises(CaptureUnavailableError, match="Invalid input device"):
        capture.start()
    assert capture.is_recording is False
