"""Live speaking-rate analytics.

RateAnalyticsEngine observes the reconciled transcript of a session and
derives:
- current_rate: characters per minute over a trailing window (default 10 s),
  falling back to the cumulative session rate
- average_rate: characters per minute over the whole session
- classification: a label for the current rate

One character counts as one word unit, which is the natural unit for
Chinese speech; punctuation and whitespace are not counted.
"""

import math
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..core.logging import setup_logging

if TYPE_CHECKING:
    from ..core.config import ConfigLoader

logger = setup_logging(__name__)

DEFAULT_WINDOW_SECONDS = 10.0

# Ideographic punctuation, full-width forms, ASCII punctuation, brackets and whitespace
_STRIP_CHARS = (
    "，。！？、；：“”‘’「」『』（）【】《》〈〉…—～·"
    ",.!?;:'\"()[]{}<>-_~`@#$%^&*+=|\\/"
)
_STRIP_PATTERN = re.compile(f"[{re.escape(_STRIP_CHARS)}\\s　]")


def count_words(text: str) -> int:
    """Count word units: characters left after stripping punctuation and spaces."""
    if not text:
        return 0
    return len(_STRIP_PATTERN.sub("", text))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class RateSample:
    timestamp_ms: float
    cumulative_char_count: int


@dataclass(frozen=True)
class RateBands:
    """Rate classification thresholds (words per minute).

    ``bands`` holds (lower bound, label) pairs in ascending order; a rate of
    zero or less is labelled ``idle_label``.
    """

    bands: tuple[tuple[float, str], ...] = (
        (0.0, "slow"),
        (120.0, "moderate"),
        (180.0, "fast"),
        (250.0, "very fast"),
    )
    idle_label: str = "not started"

    def __post_init__(self) -> None:
        lowers = [lower for lower, _ in self.bands]
        if not lowers or lowers != sorted(lowers):
            raise ValueError(f"Rate bands must be non-empty and ascending: {self.bands}")

    def classify(self, rate: float) -> str:
        if rate <= 0:
            return self.idle_label
        label = self.bands[0][1]
        for lower, band_label in self.bands:
            if rate >= lower:
                label = band_label
        return label

    @classmethod
    def from_mapping(cls, data: dict | None) -> "RateBands":
        """Build from ``{"slow": 0, "moderate": 120, ...}`` style config."""
        if not data:
            return cls()
        data = dict(data)
        idle_label = str(data.pop("idle_label", "not started"))
        bands = tuple(sorted((float(lower), str(label)) for label, lower in data.items()))
        return cls(bands=bands, idle_label=idle_label)


@dataclass
class RateSummary:
    """Final figures reported when a session ends."""

    final_word_count: int
    final_average_rate: int
    duration_ms: float = 0.0
    classification: str = ""


@dataclass
class RateAnalyticsEngine:
    """Sliding-window and cumulative speaking-rate computation.

    Implements the session observer interface, so it can be passed to
    ``StreamingRecognitionSession(observers=[engine])``.
    """

    window_seconds: float = DEFAULT_WINDOW_SECONDS
    rate_bands: RateBands = field(default_factory=RateBands)

    current_rate: int = field(default=0, init=False)
    average_rate: int = field(default=0, init=False)
    word_count: int = field(default=0, init=False)
    last_summary: RateSummary | None = field(default=None, init=False)

    _samples: list[RateSample] = field(default_factory=list, init=False, repr=False)
    _session_start_ms: float | None = field(default=None, init=False, repr=False)
    _last_update_ms: float | None = field(default=None, init=False, repr=False)

    @classmethod
    def from_config(cls, config: "ConfigLoader | None" = None) -> "RateAnalyticsEngine":
        """Build an engine from ``[voicepace.analytics]``."""
        if config is None:
            from ..core.config import get_config

            config = get_config()
        return cls(
            window_seconds=config.analytics_window_seconds,
            rate_bands=RateBands.from_mapping(config.analytics_bands),
        )

    @property
    def classification(self) -> str:
        return self.rate_bands.classify(self.current_rate)

    @property
    def samples(self) -> tuple[RateSample, ...]:
        return tuple(self._samples)

    def elapsed_ms(self, now_ms: float) -> float:
        if self._session_start_ms is None:
            return 0.0
        return max(0.0, now_ms - self._session_start_ms)

    def on_session_start(self, timestamp_ms: float) -> None:
        """Reset all history; rates never carry across sessions."""
        self._samples.clear()
        self._session_start_ms = timestamp_ms
        self._last_update_ms = timestamp_ms
        self.current_rate = 0
        self.average_rate = 0
        self.word_count = 0
        self.last_summary = None
        logger.debug(f"Rate tracking started at {timestamp_ms:.0f}ms")

    def on_transcript_update(self, text: str, timestamp_ms: float) -> None:
        """Record the latest transcript and recompute the rates."""
        if self._session_start_ms is None:
            self.on_session_start(timestamp_ms)
        if self._last_update_ms is not None and timestamp_ms < self._last_update_ms:
            # Samples must stay in non-decreasing time order
            timestamp_ms = self._last_update_ms
        self._last_update_ms = timestamp_ms

        count = count_words(text)
        self.word_count = count
        if not self._samples or self._samples[-1].cumulative_char_count != count:
            self._samples.append(RateSample(timestamp_ms, count))

        self.current_rate = self._compute_current_rate(timestamp_ms)
        self.average_rate = self._compute_average_rate(timestamp_ms)

    def on_session_end(self, timestamp_ms: float) -> RateSummary:
        """Finalize the average rate with the measured session duration."""
        duration = self.elapsed_ms(timestamp_ms)
        self.average_rate = self._compute_average_rate(timestamp_ms)
        summary = RateSummary(
            final_word_count=self.word_count,
            final_average_rate=self.average_rate,
            duration_ms=duration,
            classification=self.rate_bands.classify(self.average_rate),
        )
        self.last_summary = summary
        logger.info(
            f"Session rate summary: {summary.final_word_count} words in {duration / 1000:.1f}s, "
            f"average {summary.final_average_rate}/min ({summary.classification})"
        )
        return summary

    def window(self, now_ms: float) -> list[RateSample]:
        """Samples inside the trailing window ending at ``now_ms``."""
        start = now_ms - self.window_seconds * 1000.0
        return [sample for sample in self._samples if sample.timestamp_ms >= start]

    def _compute_current_rate(self, now_ms: float) -> int:
        windowed = self.window(now_ms)
        if len(windowed) >= 2:
            first, last = windowed[0], windowed[-1]
            delta_count = last.cumulative_char_count - first.cumulative_char_count
            delta_minutes = (last.timestamp_ms - first.timestamp_ms) / 60000.0
            if delta_count > 0 and delta_minutes > 0:
                return round_half_up(delta_count / delta_minutes)

        if len(self._samples) >= 2:
            rate = self._cumulative_rate(now_ms)
            if rate > 0:
                return rate
        return 0

    def _compute_average_rate(self, now_ms: float) -> int:
        return self._cumulative_rate(now_ms)

    def _cumulative_rate(self, now_ms: float) -> int:
        minutes = self.elapsed_ms(now_ms) / 60000.0
        if minutes <= 0 or self.word_count <= 0:
            return 0
        return round_half_up(self.word_count / minutes)
