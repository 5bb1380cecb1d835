"""Channel conversion for 16-bit PCM payloads."""

import numpy as np


def downmix_to_mono(pcm: bytes, channels: int) -> bytes:
    """Average interleaved 16-bit PCM channels into a single channel.

    A trailing partial frame is dropped.
    """
    if channels <= 1:
        return pcm
    samples = np.frombuffer(pcm, dtype="<i2")
    usable = len(samples) - len(samples) % channels
    frames = samples[:usable].reshape(-1, channels).astype(np.int32)
    return frames.mean(axis=1).astype("<i2").tobytes()
