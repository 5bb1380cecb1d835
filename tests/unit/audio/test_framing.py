"""Tests for the audio frame contract."""

import pytest

from voicepace.audio.framing import AudioFramer, FrameSequencer, frame_duration_ms
from voicepace.recognition.types import FrameStatus


class TestAudioFramer:
    def test_default_frame_is_40ms(self):
        assert frame_duration_ms() == 40.0

    def test_splits_and_flags_last_frame(self):
        framer = AudioFramer(frame_size=4)
        frames = list(framer.frames(b"abcdefghij"))

        assert [frame.payload for frame in frames] == [b"abcd", b"efgh", b"ij"]
        assert [frame.is_final for frame in frames] == [False, False, True]
        assert framer.frame_count(b"abcdefghij") == 3

    def test_exact_multiple(self):
        frames = list(AudioFramer(frame_size=4).frames(b"abcdefgh"))
        assert len(frames) == 2
        assert frames[-1].is_final is True
        assert len(frames[-1]) == 4

    def test_empty_buffer_yields_one_final_frame(self):
        frames = list(AudioFramer().frames(b""))
        assert len(frames) == 1
        assert frames[0].payload == b""
        assert frames[0].is_final is True

    @pytest.mark.parametrize("frame_size", [0, -2, 3])
    def test_invalid_frame_size(self, frame_size):
        with pytest.raises(ValueError):
            AudioFramer(frame_size=frame_size)


class TestFrameSequencer:
    def test_status_order(self):
        sequencer = FrameSequencer()
        statuses = [sequencer.next_status(), sequencer.next_status(), sequencer.next_status()]
        statuses.append(sequencer.next_status(is_final=True))

        assert statuses == [FrameStatus.INITIAL, FrameStatus.CONTINUE, FrameStatus.CONTINUE, FrameStatus.FINAL]
        assert sequencer.finished is True

    def test_nothing_after_final(self):
        sequencer = FrameSequencer()
        sequencer.next_status()
        sequencer.next_status(is_final=True)
        assert sequencer.next_status() is None
        assert sequencer.next_status(is_final=True) is None
        assert sequencer.packets == 2

    def test_first_packet_is_initial_even_if_final(self):
        sequencer = FrameSequencer()
        assert sequencer.next_status(is_final=True) is FrameStatus.INITIAL
        assert sequencer.finished is False
