"""Tests for speaking-rate analytics."""

import pytest

from voicepace.analytics.rate import RateAnalyticsEngine, RateBands, count_words, round_half_up
from voicepace.core.config import ConfigLoader


class TestCountWords:
    def test_counts_characters(self):
        assert count_words("你好世界") == 4

    def test_strips_punctuation_and_whitespace(self):
        assert count_words("你好，世界！ (测试)…") == 6
        assert count_words("“好”、「对」 。") == 2

    def test_empty(self):
        assert count_words("") == 0
        assert count_words("，。 ") == 0


class TestRounding:
    @pytest.mark.parametrize("value, expected", [(0.5, 1), (1.5, 2), (2.5, 3), (119.49, 119), (119.5, 120)])
    def test_half_up(self, value, expected):
        assert round_half_up(value) == expected


class TestRateBands:
    @pytest.mark.parametrize(
        "rate, label",
        [(0, "not started"), (1, "slow"), (119, "slow"), (120, "moderate"), (179, "moderate"),
         (180, "fast"), (249, "fast"), (250, "very fast"), (400, "very fast")],
    )
    def test_default_boundaries(self, rate, label):
        assert RateBands().classify(rate) == label

    def test_from_mapping(self):
        bands = RateBands.from_mapping({"calm": 0, "brisk": 100, "idle_label": "waiting"})
        assert bands.classify(0) == "waiting"
        assert bands.classify(99) == "calm"
        assert bands.classify(100) == "brisk"

    def test_empty_mapping_uses_defaults(self):
        assert RateBands.from_mapping({}) == RateBands()

    def test_unsorted_bands_rejected(self):
        with pytest.raises(ValueError):
            RateBands(bands=((120.0, "moderate"), (0.0, "slow")))


class TestRateAnalyticsEngine:
    def test_window_rate(self):
        engine = RateAnalyticsEngine()
        engine.on_session_start(0)
        engine.on_transcript_update("", 0)
        engine.on_transcript_update("一" * 20, 10000)

        assert [(s.timestamp_ms, s.cumulative_char_count) for s in engine.samples] == [(0, 0), (10000, 20)]
        assert engine.current_rate == 120
        assert engine.classification == "moderate"
        assert engine.average_rate == 120

    def test_samples_only_on_change(self):
        engine = RateAnalyticsEngine()
        engine.on_session_start(0)
        engine.on_transcript_update("你好", 1000)
        engine.on_transcript_update("你好。", 2000)
        engine.on_transcript_update("你好世界", 3000)

        assert [s.cumulative_char_count for s in engine.samples] == [2, 4]

    def test_falls_back_to_session_rate_outside_window(self):
        engine = RateAnalyticsEngine(window_seconds=10)
        engine.on_session_start(0)
        engine.on_transcript_update("一" * 10, 5000)
        engine.on_transcript_update("一" * 30, 20000)

        # Only one sample inside the window; 30 chars over 20 s of session
        assert engine.current_rate == 90
        assert engine.classification == "slow"

    def test_single_sample_is_zero(self):
        engine = RateAnalyticsEngine()
        engine.on_session_start(0)
        engine.on_transcript_update("你好", 3000)

        assert engine.current_rate == 0
        assert engine.classification == "not started"
        assert engine.average_rate == 40

    def test_timestamps_never_go_backwards(self):
        engine = RateAnalyticsEngine()
        engine.on_session_start(0)
        engine.on_transcript_update("你好", 6000)
        engine.on_transcript_update("你好世界", 3000)

        assert [s.timestamp_ms for s in engine.samples] == [6000, 6000]
        assert engine.current_rate == 40

    def test_session_end_summary(self):
        engine = RateAnalyticsEngine()
        engine.on_session_start(1000)
        engine.on_transcript_update("你好世界", 13000)
        summary = engine.on_session_end(31000)

        assert summary.final_word_count == 4
        assert summary.final_average_rate == 8
        assert summary.duration_ms == 30000
        assert summary.classification == "slow"
        assert engine.last_summary is summary

    def test_session_start_resets(self):
        engine = RateAnalyticsEngine()
        engine.on_session_start(0)
        engine.on_transcript_update("你好", 1000)
        engine.on_transcript_update("你好世界", 2000)
        engine.on_session_end(3000)

        engine.on_session_start(10000)
        assert engine.samples == ()
        assert engine.current_rate == 0
        assert engine.average_rate == 0
        assert engine.word_count == 0
        assert engine.last_summary is None

    def test_update_without_start_begins_session(self):
        engine = RateAnalyticsEngine()
        engine.on_transcript_update("你好", 500)
        assert engine.elapsed_ms(2500) == 2000

    def test_from_config(self, tmp_path):
        config_file = tmp_path / "config.toml"
        config_file.write_text(
            "[voicepace.analytics]\nwindow_seconds = 5\n[voicepace.analytics.bands]\n\"very fast\" = 300\n",
            encoding="utf-8",
        )
        engine = RateAnalyticsEngine.from_config(ConfigLoader(config_file))

        assert engine.window_seconds == 5.0
        assert engine.rate_bands.classify(299) == "fast"
        assert engine.rate_bands.classify(300) == "very fast"
