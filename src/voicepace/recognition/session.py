"""Streaming recognition session.

StreamingRecognitionSession drives one connect-stream-disconnect lifecycle
at a time:

    IDLE -> CONNECTING -> STREAMING -> CLOSING -> CLOSED
                 \\            \\
                  +-> FAILED --+-> CLOSED

Everything runs on one asyncio event loop. ``start()`` and
``recognize_file()`` return as soon as the lifecycle task is scheduled; all
progress is reported through callbacks. A single writer task sends packets
in frame order and a single reader task processes inbound messages in
arrival order.

Example:
    session = StreamingRecognitionSession(credentials, capture=PyAudioCapture())
    session.start(on_result=print, on_error=print)
    await session.wait_closed()

"""

import asyncio
import json
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from ..audio.capture import AudioCapture
from ..audio.file_source import read_audio_file
from ..audio.framing import AudioFrame, AudioFramer, FrameSequencer
from ..core.logging import setup_logging
from ..exceptions import (
    CaptureUnavailableError,
    ConcurrentSessionError,
    ConfigurationError,
    RecognitionError,
    TransportError,
)
from .config import SessionSettings
from .protocol import OutboundPacket, build_handshake, parse_inbound
from .reconciler import TranscriptReconciler
from .signer import AuthSigner
from .transport import Transport, WebSocketTransport
from .types import ACTIVE_STATES, Credentials, InboundFragment, RecognitionResult, SessionState

logger = setup_logging(__name__)

ResultCallback = Callable[[RecognitionResult], None]
ErrorCallback = Callable[[RecognitionError], None]
ProgressCallback = Callable[[float], None]


class SessionObserver(Protocol):
    """Parallel consumer of the transcript stream (e.g. rate analytics)."""

    def on_session_start(self, timestamp_ms: float) -> None: ...

    def on_transcript_update(self, text: str, timestamp_ms: float) -> None: ...

    def on_session_end(self, timestamp_ms: float) -> object: ...


@dataclass
class _Callbacks:
    on_result: ResultCallback
    on_error: ErrorCallback
    on_start: Callable[[], None] | None = None
    on_stop: Callable[[], None] | None = None
    on_progress: ProgressCallback | None = None


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class StreamingRecognitionSession:
    """Recognition client owning at most one active lifecycle.

    Collaborators are injected: ``transport_factory`` builds a fresh
    ``Transport`` per lifecycle, ``capture`` is the microphone for ``start()``
    and ``signer`` produces the authenticated URL.
    """

    vendor = "xfyun"

    def __init__(
        self,
        credentials: Credentials | None = None,
        *,
        transport_factory: Callable[[], Transport] = WebSocketTransport,
        capture: AudioCapture | None = None,
        signer: AuthSigner | None = None,
        settings: SessionSettings | None = None,
        observers: list[SessionObserver] | tuple = (),
        clock: Callable[[], float] = _monotonic_ms,
    ):
        """Initialize the session.

        Args:
            credentials: Service credentials; validated immediately
            transport_factory: Callable returning a new Transport
            capture: Capture device used by start()
            signer: URL signer (defaults to one for settings.service_url)
            settings: Session settings (defaults to SessionSettings())
            observers: Objects notified of session start, updates and end
            clock: Milliseconds clock used for observer timestamps

        Raises:
            ConfigurationError: If credentials are given but incomplete

        """
        self.settings = settings or SessionSettings()
        self.credentials = credentials.validate() if credentials is not None else None
        self.transport_factory = transport_factory
        self.capture = capture
        self.signer = signer or AuthSigner(self.settings.service_url)
        self.observers = list(observers)
        self.clock = clock

        self._state = SessionState.IDLE
        self._reconciler = TranscriptReconciler()
        self._framer = AudioFramer(self.settings.frame_size, self._sample_rate)
        self._sequencer = FrameSequencer()
        self._callbacks: _Callbacks | None = None

        self._transport: Transport | None = None
        self._capture_active: AudioCapture | None = None
        self._outbox: asyncio.Queue | None = None
        self._task: asyncio.Task | None = None
        self._writer_task: asyncio.Task | None = None
        self._feed_task: asyncio.Task | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._closed: asyncio.Event | None = None
        self._observers_started = False

        self.last_error: RecognitionError | None = None
        self.frames_sent = 0
        self.frames_dropped = 0

    # ------------------------------------------------------------------
    # Public state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_processing(self) -> bool:
        return self._state in ACTIVE_STATES

    @property
    def text(self) -> str:
        """Reconciled text of the current (or last) lifecycle."""
        return self._reconciler.text

    @property
    def _sample_rate(self) -> int:
        return self.credentials.sample_rate if self.credentials else 16000

    def initialize(self, credentials: Credentials) -> bool:
        """Validate and install credentials; raises ConfigurationError."""
        if self.is_processing:
            raise ConcurrentSessionError(self._state.value)
        self.credentials = credentials.validate()
        self._framer = AudioFramer(self.settings.frame_size, self._sample_rate)
        return True

    # ------------------------------------------------------------------
    # Lifecycle entry points
    # ------------------------------------------------------------------

    def start(
        self,
        on_result: ResultCallback,
        on_error: ErrorCallback,
        on_start: Callable[[], None] | None = None,
        on_stop: Callable[[], None] | None = None,
    ) -> None:
        """Start real-time recognition from the capture device.

        Raises:
            ConfigurationError: If no valid credentials are installed
            ConcurrentSessionError: If a lifecycle is already active

        """
        loop = self._check_can_start()
        callbacks = _Callbacks(on_result=on_result, on_error=on_error, on_start=on_start, on_stop=on_stop)

        if self.capture is None:
            self._reject(callbacks, CaptureUnavailableError("No audio capture device available"))
            return

        self._begin(callbacks)
        self._task = loop.create_task(self._run(source=None))
        self._task.add_done_callback(self._on_lifecycle_done)

    def recognize_file(
        self,
        source: str | Path | bytes,
        on_result: ResultCallback,
        on_error: ErrorCallback,
        on_start: Callable[[], None] | None = None,
        on_stop: Callable[[], None] | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        """Start recognition of a PCM/WAV file or an in-memory PCM buffer."""
        loop = self._check_can_start()
        callbacks = _Callbacks(
            on_result=on_result, on_error=on_error, on_start=on_start, on_stop=on_stop, on_progress=on_progress
        )
        self._begin(callbacks)
        self._task = loop.create_task(self._run(source=source))
        self._task.add_done_callback(self._on_lifecycle_done)

    def stop(self) -> None:
        """Stop capture and close the connection immediately.

        Safe to call in any state; a no-op unless a lifecycle is active.
        """
        if self._state not in (SessionState.CONNECTING, SessionState.STREAMING):
            return
        logger.info(f"Stopping session (state={self._state.value})")
        self._set_state(SessionState.CLOSING)
        self._cancel_timer()
        self._stop_capture()
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def cancel(self) -> None:
        """Cancel the active lifecycle; idempotent."""
        self.stop()

    def finish(self) -> None:
        """End microphone input but wait for the service's final result.

        The capture device emits its last frame flagged final; the session
        closes when the service reports completion.
        """
        if self._state is SessionState.STREAMING and self._capture_active is not None:
            logger.info("Finishing capture, awaiting final result")
            self._stop_capture()

    async def wait_closed(self) -> None:
        """Wait until the current lifecycle reaches CLOSED."""
        if self._closed is not None:
            await self._closed.wait()

    def dispose(self) -> None:
        """Cancel any lifecycle and drop credentials."""
        self.cancel()
        self.credentials = None

    # ------------------------------------------------------------------
    # Lifecycle internals
    # ------------------------------------------------------------------

    def _check_can_start(self) -> asyncio.AbstractEventLoop:
        if self._state in ACTIVE_STATES:
            raise ConcurrentSessionError(self._state.value)
        if self.credentials is None:
            raise ConfigurationError("Recognition session is not initialized with credentials")
        return asyncio.get_running_loop()

    def _reject(self, callbacks: _Callbacks, error: RecognitionError) -> None:
        logger.error(f"Cannot start session: {error.message}")
        self.last_error = error
        self._emit("error", callbacks.on_error, error)

    def _begin(self, callbacks: _Callbacks) -> None:
        self._callbacks = callbacks
        self._reconciler.reset()
        self._sequencer = FrameSequencer()
        self._outbox = asyncio.Queue()
        self._closed = asyncio.Event()
        self._observers_started = False
        self.last_error = None
        self.frames_sent = 0
        self.frames_dropped = 0
        self._set_state(SessionState.CONNECTING)

    def _set_state(self, state: SessionState) -> None:
        if state is not self._state:
            logger.debug(f"Session state {self._state.value} -> {state.value}")
            self._state = state

    async def _run(self, source: str | Path | bytes | None) -> None:
        try:
            pcm = None
            if source is not None:
                pcm = await asyncio.to_thread(read_audio_file, source, self._sample_rate)

            url = self.signer.sign(self.credentials)
            self._transport = self.transport_factory()
            await self._transport.connect(url)
            if self._state is not SessionState.CONNECTING:
                return

            await self._open_stream()
            if pcm is None:
                self._start_capture()
            else:
                self._feed_task = asyncio.create_task(self._feed_file(pcm))

            await self._read_loop()
        except RecognitionError as e:
            self._fail(e)
        finally:
            await self._teardown()

    async def _open_stream(self) -> None:
        handshake = build_handshake(
            self.credentials,
            vad_eos=self.settings.vad_eos,
            dynamic_correction=self.settings.dynamic_correction,
        )
        # The handshake is packet #0 and carries the INITIAL status
        self._sequencer.next_status()
        await self._transport.send(json.dumps(handshake))
        logger.info(f"Handshake sent (language={self.credentials.language}, vad_eos={self.settings.vad_eos})")

        self._set_state(SessionState.STREAMING)
        self._writer_task = asyncio.create_task(self._write_loop())
        if self.settings.max_duration_s:
            loop = asyncio.get_running_loop()
            self._timer = loop.call_later(self.settings.max_duration_s, self._on_duration_limit)

        self._notify_observers("on_session_start", self.clock())
        self._observers_started = True
        self._emit("start", self._callbacks.on_start)

    def _start_capture(self) -> None:
        capture = self.capture
        capture.on_frame_recorded = self._on_frame
        try:
            capture.start(sample_rate=self._sample_rate, frame_size=self.settings.frame_size)
        except CaptureUnavailableError:
            raise
        except Exception as e:
            raise CaptureUnavailableError(f"Failed to start audio capture: {e}", cause=e) from e
        self._capture_active = capture

    def _stop_capture(self) -> None:
        capture, self._capture_active = self._capture_active, None
        if capture is None:
            return
        try:
            capture.stop()
        except Exception as e:
            logger.warning(f"Error stopping audio capture: {e}")

    async def _feed_file(self, pcm: bytes) -> None:
        total = self._framer.frame_count(pcm)
        interval = self.settings.file_frame_interval_s
        for index, frame in enumerate(self._framer.frames(pcm), start=1):
            if self._state is not SessionState.STREAMING:
                break
            self._on_frame(frame)
            self._emit("progress", self._callbacks.on_progress, index / total)
            await asyncio.sleep(interval if not frame.is_final else 0)
        logger.info(f"File fed: {total} frames, {len(pcm)} bytes")

    def _on_frame(self, frame: AudioFrame) -> None:
        """Capture callback: queue one frame, or drop it if not streaming."""
        transport = self._transport
        if self._state is not SessionState.STREAMING or transport is None or not transport.is_open:
            self.frames_dropped += 1
            logger.debug(f"Dropped frame ({len(frame.payload)} bytes): transport not open")
            return

        status = self._sequencer.next_status(frame.is_final)
        if status is None:
            self.frames_dropped += 1
            logger.debug("Dropped frame after final frame")
            return

        packet = OutboundPacket.from_audio(frame.payload, status, self._sample_rate)
        self._outbox.put_nowait(packet.to_json())

    async def _write_loop(self) -> None:
        while True:
            message = await self._outbox.get()
            try:
                await self._transport.send(message)
            except RecognitionError as e:
                self._fail(e)
                if self._task is not None and not self._task.done():
                    self._task.cancel()
                return
            self.frames_sent += 1

    async def _read_loop(self) -> None:
        async for message in self._transport.messages():
            if self._state is not SessionState.STREAMING:
                break
            fragment = parse_inbound(message)
            self._handle_fragment(fragment)
            if fragment.is_finished:
                logger.info(f"Recognition finished (sid={fragment.sid or '-'})")
                self._set_state(SessionState.CLOSING)
                return

        if self._state is SessionState.STREAMING:
            logger.warning("Recognition service closed the connection before the final result")

    def _handle_fragment(self, fragment: InboundFragment) -> None:
        if fragment.code != 0:
            raise TransportError(
                f"Recognition service error {fragment.code}: {fragment.message or 'unknown error'}",
                code=fragment.code,
                sid=fragment.sid or None,
            )

        text = self._reconciler.update(fragment)
        self._notify_observers("on_transcript_update", text, self.clock())
        self._emit("result", self._callbacks.on_result, RecognitionResult(text, fragment.is_finished, fragment.raw))

    def _fail(self, error: RecognitionError) -> None:
        if self.last_error is not None or self._state not in ACTIVE_STATES:
            return
        logger.error(f"Session failed ({error.kind}): {error.message}")
        self.last_error = error
        self._set_state(SessionState.FAILED)
        self._cancel_timer()
        self._stop_capture()
        self._emit("error", self._callbacks.on_error, error)

    async def _teardown(self) -> None:
        if self._state is not SessionState.FAILED:
            self._set_state(SessionState.CLOSING)
        self._cancel_timer()
        self._stop_capture()

        for task in (self._feed_task, self._writer_task):
            if task is not None and task is not asyncio.current_task() and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._feed_task = None
        self._writer_task = None

        transport, self._transport = self._transport, None
        if transport is not None:
            try:
                await transport.close()
            except RecognitionError as e:
                logger.warning(f"Error closing transport: {e.message}")

        self._set_state(SessionState.CLOSED)
        if self._observers_started:
            self._notify_observers("on_session_end", self.clock())
            self._observers_started = False
        logger.info(
            f"Session closed: {self.frames_sent} packets sent, {self.frames_dropped} frames dropped, "
            f"{len(self.text)} chars"
        )
        self._emit("stop", self._callbacks.on_stop)
        self._closed.set()

    def _on_lifecycle_done(self, task: asyncio.Task) -> None:
        # A task cancelled before its first step never runs its finally block.
        # The callback fires after wait_closed() waiters resume, so a newer
        # lifecycle may already own the session state.
        if task is not self._task or self._closed is None or self._closed.is_set():
            return
        self._cancel_timer()
        self._stop_capture()
        self._set_state(SessionState.CLOSED)
        self._emit("stop", self._callbacks.on_stop)
        self._closed.set()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_duration_limit(self) -> None:
        self._timer = None
        logger.info(f"Duration limit of {self.settings.max_duration_s}s reached")
        self.stop()

    # ------------------------------------------------------------------
    # Callback dispatch
    # ------------------------------------------------------------------

    def _emit(self, name: str, callback: Callable | None, *args) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.exception(f"Error in {name} callback: {e}")

    def _notify_observers(self, method: str, *args) -> None:
        for observer in self.observers:
            handler = getattr(observer, method, None)
            if handler is not None:
                self._emit(f"{type(observer).__name__}.{method}", handler, *args)
