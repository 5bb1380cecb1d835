"""Capture device interface and the PyAudio-backed implementation.

A capture device is anything with ``start(sample_rate, frame_size)`` and
``stop()`` that reports frames through ``on_frame_recorded`` and the
collected buffers through ``on_stop``. The session only depends on this
narrow interface, never on a vendor type.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from ..exceptions import CaptureUnavailableError
from .framing import DEFAULT_FRAME_SIZE, DEFAULT_SAMPLE_RATE, SAMPLE_WIDTH_BYTES, AudioFrame

logger = logging.getLogger(__name__)

FrameCallback = Callable[[AudioFrame], None]
StopCallback = Callable[[list[bytes]], None]


@runtime_checkable
class AudioCapture(Protocol):
    """Capture device collaborator."""

    on_frame_recorded: FrameCallback | None
    on_stop: StopCallback | None

    def start(self, sample_rate: int, frame_size: int) -> None: ...

    def stop(self) -> None: ...


class PyAudioCapture:
    """Microphone capture through PortAudio.

    PortAudio invokes its stream callback on its own thread; frames are
    handed back to the event loop that called ``start()`` so all session
    state is mutated on one thread. ``stop()`` emits the last buffered
    audio as the final frame, then ``on_stop`` with every buffer captured.
    """

    def __init__(self, device_index: int | None = None):
        """Bind to PortAudio; raises CaptureUnavailableError without PyAudio."""
        try:
            import pyaudio
        except ImportError as e:
            raise CaptureUnavailableError(
                "PyAudio is not installed. Install it with: pip install voicepace[capture]", cause=e
            ) from e

        self._pa = pyaudio
        self.device_index = device_index
        self.on_frame_recorded: FrameCallback | None = None
        self.on_stop: StopCallback | None = None

        self._pyaudio = None
        self._stream = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._buffers: list[bytes] = []
        self.is_recording = False

    def start(self, sample_rate: int = DEFAULT_SAMPLE_RATE, frame_size: int = DEFAULT_FRAME_SIZE) -> None:
        """Open the input stream and begin emitting frames."""
        if self.is_recording:
            return

        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None

        self._buffers = []
        try:
            self._pyaudio = self._pa.PyAudio()
            self._stream = self._pyaudio.open(
                format=self._pa.paInt16,
                channels=1,
                rate=sample_rate,
                input=True,
                input_device_index=self.device_index,
                frames_per_buffer=frame_size // SAMPLE_WIDTH_BYTES,
                stream_callback=self._audio_callback,
            )
            self._stream.start_stream()
        except Exception as e:
            self._release()
            raise CaptureUnavailableError(f"Failed to open microphone: {e}", cause=e) from e

        self.is_recording = True
        logger.info(f"Microphone capture started: {sample_rate}Hz, {frame_size} bytes/frame")

    def stop(self) -> None:
        """Stop capture; safe to call when not recording."""
        if not self.is_recording:
            return
        self.is_recording = False
        self._release()

        self._dispatch(AudioFrame(payload=b"", is_final=True))
        buffers = list(self._buffers)
        if self.on_stop:
            self._call_in_loop(self.on_stop, buffers)
        logger.info(f"Microphone capture stopped: {len(buffers)} frames")

    def _release(self) -> None:
        if self._stream is not None:
            try:
                self._stream.stop_stream()
                self._stream.close()
            except OSError as e:
                logger.warning(f"Error closing input stream: {e}")
            self._stream = None
        if self._pyaudio is not None:
            self._pyaudio.terminate()
            self._pyaudio = None

    def _audio_callback(self, in_data, frame_count, time_info, status):
        """PyAudio callback for real-time audio processing."""
        if status:
            logger.warning(f"Audio callback status: {status}")

        payload = bytes(in_data)
        self._buffers.append(payload)
        self._dispatch(AudioFrame(payload=payload))
        return (None, self._pa.paContinue)

    def _dispatch(self, frame: AudioFrame) -> None:
        if self.on_frame_recorded:
            self._call_in_loop(self.on_frame_recorded, frame)

    def _call_in_loop(self, callback: Callable, arg) -> None:
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(callback, arg)
        else:
            callback(arg)
