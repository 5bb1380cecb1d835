"""Shared fixtures: in-memory transport and capture doubles for session tests."""

import asyncio
import json

import pytest

from voicepace.audio.framing import AudioFrame
from voicepace.exceptions import TransportError
from voicepace.recognition.config import SessionSettings
from voicepace.recognition.types import Credentials

_END = object()


class FakeTransport:
    """Records outbound packets; inbound messages are pushed by the test."""

    def __init__(self, connect_error: Exception | None = None):
        self.connect_error = connect_error
        self.send_error: Exception | None = None
        self.url: str | None = None
        self.sent: list[dict] = []
        self.close_calls = 0
        self.is_open = False
        self._inbound: asyncio.Queue = asyncio.Queue()

    async def connect(self, url):
        if self.connect_error is not None:
            raise self.connect_error
        self.url = url
        self.is_open = True

    async def send(self, message):
        if not self.is_open:
            raise TransportError("WebSocket connection is closed - cannot send")
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(json.loads(message))

    async def messages(self):
        while True:
            message = await self._inbound.get()
            if message is _END:
                return
            if isinstance(message, Exception):
                raise message
            yield message

    async def close(self):
        self.close_calls += 1
        self.is_open = False

    def push(self, payload):
        """Queue an inbound message (dicts are JSON encoded)."""
        if isinstance(payload, dict):
            payload = json.dumps(payload, ensure_ascii=False)
        self._inbound.put_nowait(payload)

    def end(self):
        """Simulate a clean close by the server."""
        self._inbound.put_nowait(_END)

    @property
    def statuses(self) -> list[int]:
        return [packet["data"]["status"] for packet in self.sent]


class FakeCapture:
    """Capture device that emits frames only when the test says so."""

    def __init__(self, start_error: Exception | None = None):
        self.start_error = start_error
        self.on_frame_recorded = None
        self.on_stop = None
        self.started = False
        self.start_args: tuple | None = None
        self.stop_calls = 0
        self.buffers: list[bytes] = []
        self.stopped_with: list[bytes] | None = None

    def start(self, sample_rate, frame_size):
        if self.start_error is not None:
            raise self.start_error
        self.start_args = (sample_rate, frame_size)
        self.started = True

    def stop(self):
        self.stop_calls += 1
        if not self.started:
            return
        self.started = False
        self.emit(b"", is_final=True)
        self.stopped_with = list(self.buffers)
        if self.on_stop:
            self.on_stop(self.stopped_with)

    def emit(self, payload: bytes, is_final: bool = False):
        if payload:
            self.buffers.append(payload)
        if self.on_frame_recorded:
            self.on_frame_recorded(AudioFrame(payload=payload, is_final=is_final))


def fragment(text="", status=1, code=0, pgs=None, sid="iat000000@dx1", message="success"):
    """Inbound service message carrying ``text`` as a single word."""
    result = {"ws": [{"cw": [{"w": text}]}] if text else []}
    if pgs is not None:
        result["pgs"] = pgs
    return {"code": code, "message": message, "sid": sid, "data": {"status": status, "result": result}}


@pytest.fixture
def credentials():
    return Credentials(app_id="5f0a1b2c", api_key="test-api-key", api_secret="test-api-secret")


@pytest.fixture
def settings():
    return SessionSettings(max_duration_s=None, file_frame_interval_s=0)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def capture():
    return FakeCapture()


@pytest.fixture
def wait_until():
    async def _wait_until(predicate, timeout: float = 2.0):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not reached before timeout")
            await asyncio.sleep(0.001)

    return _wait_until


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch, tmp_path):
    """Keep tests away from the user's config file and log directory."""
    from voicepace.core.config import reset_config

    monkeypatch.setenv("VOICEPACE_CONFIG", str(tmp_path / "missing.toml"))
    monkeypatch.setenv("VOICEPACE_LOG_DIR", str(tmp_path / "logs"))
    for name in ("VOICEPACE_APP_ID", "VOICEPACE_API_KEY", "VOICEPACE_API_SECRET", "VOICEPACE_LANGUAGE"):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def make_fragment():
    return fragment


@pytest.fixture
def make_transport():
    return FakeTransport


@pytest.fixture
def make_capture():
    return FakeCapture
