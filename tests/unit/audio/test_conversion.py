"""Tests for PCM channel conversion."""

import numpy as np

from voicepace.audio.conversion import downmix_to_mono


def test_downmix_ignores_mono():
    pcm = np.array([1, 2, 3], dtype=np.int16).tobytes()
    assert downmix_to_mono(pcm, 1) == pcm


def test_downmix_averages_channels():
    pcm = np.array([100, -100, 32767, 32767, -32768, -32768], dtype="<i2").tobytes()
    assert np.frombuffer(downmix_to_mono(pcm, 2), dtype="<i2").tolist() == [0, 32767, -32768]


def test_downmix_drops_partial_frame():
    pcm = np.array([10, 20, 30], dtype=np.int16).tobytes()
    assert np.frombuffer(downmix_to_mono(pcm, 2), dtype=np.int16).tolist() == [15]
