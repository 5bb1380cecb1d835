"""Load audio files for file-based recognition.

WAV files are validated against the frame contract (16-bit, 16 kHz) and
down-mixed to mono; any other file is treated as headerless PCM.
"""

import logging
import wave
from pathlib import Path

from ..exceptions import CaptureReadError
from .conversion import downmix_to_mono
from .framing import DEFAULT_SAMPLE_RATE, SAMPLE_WIDTH_BYTES

logger = logging.getLogger(__name__)

RAW_EXTENSIONS = {".pcm", ".raw", ".s16le"}
SUPPORTED_EXTENSIONS = RAW_EXTENSIONS | {".wav"}


def _read_wav(path: Path, sample_rate: int) -> bytes:
    try:
        with wave.open(str(path), "rb") as wav_file:
            channels = wav_file.getnchannels()
            width = wav_file.getsampwidth()
            rate = wav_file.getframerate()
            frames = wav_file.readframes(wav_file.getnframes())
    except (wave.Error, EOFError) as e:
        raise CaptureReadError(f"Invalid WAV file {path.name}: {e}", cause=e) from e

    if width != SAMPLE_WIDTH_BYTES:
        raise CaptureReadError(f"{path.name}: expected 16-bit samples, got {width * 8}-bit")
    if rate != sample_rate:
        raise CaptureReadError(f"{path.name}: expected {sample_rate} Hz, got {rate} Hz")

    logger.debug(f"Loaded WAV {path.name}: {channels}ch, {rate}Hz, {len(frames)} bytes")
    return downmix_to_mono(frames, channels)


def read_audio_file(source: str | Path | bytes, sample_rate: int = DEFAULT_SAMPLE_RATE) -> bytes:
    """Return mono 16-bit PCM for a file path or an in-memory buffer.

    Raises:
        CaptureReadError: If the file is missing, unreadable, empty or has an
            unsupported format

    """
    if isinstance(source, (bytes, bytearray)):
        if not source:
            raise CaptureReadError("Audio buffer is empty")
        return bytes(source)

    path = Path(source)
    if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
        raise CaptureReadError(f"Unsupported format: {path.suffix or '(none)'}. Supported: {sorted(SUPPORTED_EXTENSIONS)}")

    try:
        if path.suffix.lower() == ".wav":
            pcm = _read_wav(path, sample_rate)
        else:
            pcm = path.read_bytes()
    except OSError as e:
        raise CaptureReadError(f"Failed to read {path}: {e}", cause=e) from e

    if not pcm:
        raise CaptureReadError(f"Audio file is empty: {path}")
    if len(pcm) % SAMPLE_WIDTH_BYTES:
        pcm = pcm[:-1]
    return pcm
