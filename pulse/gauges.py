"""
Gauge data model and the update pipeline applied on each observation.

Every function here is pure: it takes a GaugeData snapshot plus ``now`` and
returns a new snapshot. Serializing access per category is the store's job.

Update steps:
    normalized = clamp(raw, value_range)
    smoothed   = α × normalized + (1 − α) × smoothed_prev          (α = 0.3)
    history    = [(now, normalized)] + history, pruned to 30 days / 1000 points
    baselines  = mean(history within 7d), mean(history within 30d)
    trend      = OLS slope of the last 10 points in time order
    confidence = min(1, 0.5 + 0.3·min(n/100, 1) + 0.2·recency + 0.2·meta_conf)
"""

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Mapping

import numpy as np

from pulse.config import (
    GAUGE_HISTORY_DAYS,
    GAUGE_MAX_HISTORY,
    GAUGE_SMOOTHING_ALPHA,
    GAUGE_TREND_THRESHOLD,
    GAUGE_TREND_WINDOW,
    GAUGE_UNKNOWN_CONFIDENCE,
)


class GaugeCategory(str, Enum):
    SENTIMENT = "sentiment"
    FINANCIAL = "financial"
    NATURAL_EVENTS = "natural_events"
    SOCIAL_TRENDS = "social_trends"


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


@dataclass(frozen=True)
class HistoryPoint:
    timestamp: datetime
    normalized_value: float


_BACKGROUND = {"background": "#1f2937", "text": "#f3f4f6"}

COLOR_SCHEMES: dict[str, dict[str, str]] = {
    GaugeCategory.SENTIMENT.value: {
        "negative": "#ef4444", "neutral": "#f59e0b", "positive": "#10b981",
        **_BACKGROUND, "accent": "#3b82f6",
    },
    GaugeCategory.FINANCIAL.value: {
        "low": "#ef4444", "medium": "#f59e0b", "high": "#10b981",
        **_BACKGROUND, "accent": "#8b5cf6",
    },
    # Low severity is good news here, hence green at the bottom.
    GaugeCategory.NATURAL_EVENTS.value: {
        "low": "#10b981", "medium": "#f59e0b", "high": "#ef4444",
        **_BACKGROUND, "accent": "#f97316",
    },
    GaugeCategory.SOCIAL_TRENDS.value: {
        "low": "#6b7280", "medium": "#3b82f6", "high": "#8b5cf6",
        **_BACKGROUND, "accent": "#ec4899",
    },
}

DEFAULT_COLOR_SCHEME = {"low": "#6b7280", "medium": "#f59e0b", "high": "#ef4444", **_BACKGROUND,
                        "accent": "#3b82f6"}


@dataclass(frozen=True)
class CategoryProfile:
    """Static description of a gauge category used to build its default state."""
    name: str
    value_range: tuple[float, float]
    initial_value: float
    confidence: float = 0.5
    color_scheme: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_COLOR_SCHEME))

    def __post_init__(self) -> None:
        lo, hi = self.value_range
        if not lo < hi:
            raise ValueError(f"value_range for {self.name!r} must satisfy min < max, got {self.value_range}")
        if not lo <= self.initial_value <= hi:
            raise ValueError(f"initial_value for {self.name!r} must lie within {self.value_range}")


BUILTIN_PROFILES: dict[str, CategoryProfile] = {
    GaugeCategory.SENTIMENT.value: CategoryProfile(
        "sentiment", (-1.0, 1.0), 0.0, color_scheme=COLOR_SCHEMES["sentiment"]),
    GaugeCategory.FINANCIAL.value: CategoryProfile(
        "financial", (0.0, 100.0), 50.0, color_scheme=COLOR_SCHEMES["financial"]),
    GaugeCategory.NATURAL_EVENTS.value: CategoryProfile(
        "natural_events", (0.0, 10.0), 2.0, color_scheme=COLOR_SCHEMES["natural_events"]),
    GaugeCategory.SOCIAL_TRENDS.value: CategoryProfile(
        "social_trends", (0.0, 100.0), 50.0, color_scheme=COLOR_SCHEMES["social_trends"]),
}


def category_key(category: "GaugeCategory | str") -> str:
    if isinstance(category, GaugeCategory):
        return category.value
    return str(category).strip().lower()


def unknown_profile(category: "GaugeCategory | str") -> CategoryProfile:
    return CategoryProfile(category_key(category), (0.0, 1.0), 0.5,
                           confidence=GAUGE_UNKNOWN_CONFIDENCE)


@dataclass(frozen=True)
class GaugeData:
    category: str
    current_value: float
    smoothed_value: float
    baseline_7d: float
    baseline_30d: float
    trend_direction: TrendDirection
    trend_strength: float
    confidence: float
    value_range: tuple[float, float]
    last_updated: datetime
    history: tuple[HistoryPoint, ...] = ()
    color_scheme: dict[str, str] = field(default_factory=dict)

    def to_dict(self, history_limit: int | None = None) -> dict[str, Any]:
        points = self.history if history_limit is None else self.history[:history_limit]
        return {
            "category": self.category,
            "current_value": self.current_value,
            "smoothed_value": round(self.smoothed_value, 6),
            "baseline_7d": round(self.baseline_7d, 6),
            "baseline_30d": round(self.baseline_30d, 6),
            "trend_direction": self.trend_direction.value,
            "trend_strength": round(self.trend_strength, 4),
            "confidence": round(self.confidence, 4),
            "value_range": list(self.value_range),
            "last_updated": self.last_updated.isoformat(),
            "history": [
                {"timestamp": p.timestamp.isoformat(), "normalized_value": p.normalized_value}
                for p in points
            ],
            "color_scheme": dict(self.color_scheme),
        }


def default_gauge(category: "GaugeCategory | str",
                  profiles: Mapping[str, CategoryProfile] | None = None,
                  now: datetime | None = None) -> GaugeData:
    """The one place cold-start and fallback gauge state comes from.

    Known categories start at their profile's initial value with confidence
    0.5; unknown ones get a generic (0, 1) gauge at its midpoint with low
    confidence.
    """
    profiles = BUILTIN_PROFILES if profiles is None else profiles
    key = category_key(category)
    profile = profiles.get(key) or unknown_profile(key)
    v = profile.initial_value
    return GaugeData(
        category=key,
        current_value=v,
        smoothed_value=v,
        baseline_7d=v,
        baseline_30d=v,
        trend_direction=TrendDirection.STABLE,
        trend_strength=0.0,
        confidence=profile.confidence,
        value_range=profile.value_range,
        last_updated=now or datetime.now(timezone.utc),
        history=(),
        color_scheme=dict(profile.color_scheme),
    )


# ── pipeline steps ──

def normalize_value(value: float, value_range: tuple[float, float]) -> float:
    lo, hi = value_range
    return max(lo, min(hi, value))


def apply_smoothing(previous: float, value: float, alpha: float = GAUGE_SMOOTHING_ALPHA) -> float:
    return alpha * value + (1.0 - alpha) * previous


def update_history(history: tuple[HistoryPoint, ...], point: HistoryPoint,
                   max_days: int = GAUGE_HISTORY_DAYS,
                   max_points: int = GAUGE_MAX_HISTORY) -> tuple[HistoryPoint, ...]:
    """Prepend ``point`` and evict points older than ``max_days`` or beyond ``max_points``."""
    cutoff = point.timestamp - timedelta(days=max_days)
    kept = [point, *(p for p in history if p.timestamp > cutoff)]
    return tuple(kept[:max_points])


def calculate_baseline(history: tuple[HistoryPoint, ...], days: int, now: datetime) -> float:
    """Mean of values within the trailing ``days`` window; 0.0 if the window is empty."""
    cutoff = now - timedelta(days=days)
    values = [p.normalized_value for p in history if p.timestamp > cutoff]
    if not values:
        return 0.0
    return float(np.mean(values))


def ols_slope(values: list[float]) -> float:
    """Least-squares slope of ``values`` against their index 0..n-1."""
    n = len(values)
    if n < 2:
        return 0.0
    x = np.arange(n, dtype=float)
    y = np.asarray(values, dtype=float)
    x_mean = x.mean()
    denom = float(((x - x_mean) ** 2).sum())
    if denom == 0.0:
        return 0.0
    return float(((x - x_mean) * (y - y.mean())).sum() / denom)


def detect_trend(history: tuple[HistoryPoint, ...],
                 window: int = GAUGE_TREND_WINDOW,
                 threshold: float = GAUGE_TREND_THRESHOLD) -> tuple[TrendDirection, float]:
    """Direction and strength of the most recent ``window`` points.

    History is newest-first; the slope is taken oldest → newest so a rising
    series reads as ``up``.
    """
    if len(history) < window:
        return TrendDirection.STABLE, 0.0
    chronological = [p.normalized_value for p in reversed(history[:window])]
    slope = ols_slope(chronological)
    if slope > threshold:
        return TrendDirection.UP, min(slope * 10.0, 1.0)
    if slope < -threshold:
        return TrendDirection.DOWN, min(abs(slope) * 10.0, 1.0)
    return TrendDirection.STABLE, 0.0


def metadata_confidence(metadata: Mapping[str, Any] | None) -> float:
    """Caller-supplied confidence in [0, 1]; anything unusable counts as 0."""
    if not isinstance(metadata, Mapping):
        return 0.0
    try:
        value = float(metadata.get("confidence", 0.0))
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return max(0.0, min(1.0, value))


def compute_confidence(history: tuple[HistoryPoint, ...], meta_confidence: float,
                       now: datetime) -> float:
    data_conf = min(len(history) / 100.0, 1.0) * 0.3
    if history:
        hours_ago = (now - history[0].timestamp).total_seconds() / 3600.0
        recency_conf = max(0.0, (24.0 - hours_ago) / 24.0) * 0.2
    else:
        recency_conf = 0.0
    meta_conf = max(0.0, min(1.0, meta_confidence)) * 0.2
    return min(1.0, 0.5 + data_conf + recency_conf + meta_conf)


def apply_update(gauge: GaugeData, raw_value: float,
                 metadata: Mapping[str, Any] | None, now: datetime) -> GaugeData:
    """Return ``gauge`` after ingesting ``raw_value`` at ``now``."""
    normalized = normalize_value(raw_value, gauge.value_range)
    smoothed = normalize_value(apply_smoothing(gauge.smoothed_value, normalized), gauge.value_range)
    history = update_history(gauge.history, HistoryPoint(now, normalized))
    direction, strength = detect_trend(history)
    return replace(
        gauge,
        current_value=normalized,
        smoothed_value=smoothed,
        baseline_7d=calculate_baseline(history, 7, now),
        baseline_30d=calculate_baseline(history, 30, now),
        trend_direction=direction,
        trend_strength=strength,
        confidence=compute_confidence(history, metadata_confidence(metadata), now),
        last_updated=now,
        history=history,
    )


def recalculate_baselines(gauge: GaugeData, now: datetime) -> GaugeData:
    """Refresh only the 7d/30d baselines from the existing history."""
    return replace(
        gauge,
        baseline_7d=calculate_baseline(gauge.history, 7, now),
        baseline_30d=calculate_baseline(gauge.history, 30, now),
    )
