"""Speaking-rate analytics."""

from .rate import RateAnalyticsEngine, RateBands, RateSample, RateSummary, count_words

__all__ = ["RateAnalyticsEngine", "RateBands", "RateSample", "RateSummary", "count_words"]
