"""Audio frame contract.

The service expects 16-bit little-endian mono PCM at 16 kHz, sent in frames
of 1280 bytes (40 ms). Exactly one frame per session carries ``is_final``.
"""

from collections.abc import Iterator
from dataclasses import dataclass

from ..recognition.types import FrameStatus

SAMPLE_WIDTH_BYTES = 2
CHANNELS = 1
DEFAULT_SAMPLE_RATE = 16000
DEFAULT_FRAME_SIZE = 1280


@dataclass(frozen=True)
class AudioFrame:
    """One chunk of raw PCM produced by a capture device or file."""

    payload: bytes
    is_final: bool = False

    def __len__(self) -> int:
        return len(self.payload)


def frame_duration_ms(frame_size: int = DEFAULT_FRAME_SIZE, sample_rate: int = DEFAULT_SAMPLE_RATE) -> float:
    """Duration of a full frame in milliseconds."""
    return frame_size / (sample_rate * SAMPLE_WIDTH_BYTES * CHANNELS) * 1000.0


class AudioFramer:
    """Splits PCM buffers into frames of a fixed size."""

    def __init__(self, frame_size: int = DEFAULT_FRAME_SIZE, sample_rate: int = DEFAULT_SAMPLE_RATE):
        if frame_size <= 0 or frame_size % SAMPLE_WIDTH_BYTES:
            raise ValueError(f"frame_size must be a positive multiple of {SAMPLE_WIDTH_BYTES}: {frame_size}")
        self.frame_size = frame_size
        self.sample_rate = sample_rate

    def frame_count(self, data: bytes) -> int:
        return max(1, -(-len(data) // self.frame_size))

    def frames(self, data: bytes) -> Iterator[AudioFrame]:
        """Yield frames of ``data``; the last one is flagged final.

        An empty buffer still yields one (empty) final frame so the remote
        side is told the stream ended.
        """
        total = self.frame_count(data)
        view = memoryview(data)
        for index in range(total):
            start = index * self.frame_size
            yield AudioFrame(
                payload=bytes(view[start : start + self.frame_size]),
                is_final=index == total - 1,
            )


class FrameSequencer:
    """Assigns wire statuses to outbound packets in generation order.

    The first packet of a connection (the handshake) is INITIAL, the packet
    built from the final frame is FINAL, everything in between is CONTINUE.
    Nothing may follow the FINAL packet.
    """

    def __init__(self) -> None:
        self.packets = 0
        self.finished = False

    def next_status(self, is_final: bool = False) -> FrameStatus | None:
        """Return the status for the next packet, or None once finished."""
        if self.finished:
            return None
        if self.packets == 0:
            status = FrameStatus.INITIAL
        elif is_final:
            status = FrameStatus.FINAL
            self.finished = True
        else:
            status = FrameStatus.CONTINUE
        self.packets += 1
        return status
