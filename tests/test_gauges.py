"""Tests for pulse/gauges.py — gauge model and update pipeline."""

from datetime import datetime, timedelta, timezone

import pytest

from pulse.gauges import (
    BUILTIN_PROFILES,
    CategoryProfile,
    GaugeCategory,
    HistoryPoint,
    TrendDirection,
    apply_update,
    calculate_baseline,
    compute_confidence,
    default_gauge,
    detect_trend,
    metadata_confidence,
    normalize_value,
    ols_slope,
    recalculate_baselines,
    update_history,
)

NOW = datetime(2024, 6, 3, 14, 0, tzinfo=timezone.utc)


def _history(values, start=NOW, step=timedelta(minutes=1)):
    """Newest-first history where ``values`` is given oldest → newest."""
    points = [HistoryPoint(start + i * step, v) for i, v in enumerate(values)]
    return tuple(reversed(points))


def _feed(gauge, values, start=NOW, step=timedelta(minutes=1), metadata=None):
    now = start
    for v in values:
        gauge = apply_update(gauge, v, metadata, now)
        now += step
    return gauge


class TestDefaults:
    def test_builtin_categories(self):
        assert set(BUILTIN_PROFILES) == {c.value for c in GaugeCategory}

    def test_financial_default(self):
        g = default_gauge(GaugeCategory.FINANCIAL, now=NOW)
        assert g.current_value == 50.0
        assert g.smoothed_value == 50.0
        assert g.value_range == (0.0, 100.0)
        assert g.confidence == 0.5
        assert g.trend_direction == TrendDirection.STABLE
        assert g.history == ()
        assert g.color_scheme["accent"] == "#8b5cf6"

    def test_sentiment_default(self):
        g = default_gauge("sentiment", now=NOW)
        assert g.value_range == (-1.0, 1.0)
        assert g.current_value == 0.0

    def test_unknown_category_default(self):
        g = default_gauge("weather", now=NOW)
        assert g.category == "weather"
        assert g.value_range == (0.0, 1.0)
        assert g.current_value == 0.5
        assert g.confidence == 0.3

    def test_profile_validation(self):
        with pytest.raises(ValueError):
            CategoryProfile("bad", (1.0, 1.0), 1.0)
        with pytest.raises(ValueError):
            CategoryProfile("bad", (0.0, 1.0), 2.0)


class TestPipelineSteps:
    def test_normalize(self):
        assert normalize_value(150.0, (0.0, 100.0)) == 100.0
        assert normalize_value(-3.0, (0.0, 100.0)) == 0.0
        assert normalize_value(float("inf"), (-1.0, 1.0)) == 1.0
        assert normalize_value(0.2, (-1.0, 1.0)) == 0.2

    def test_update_history_caps_points(self):
        history = ()
        for i in range(1005):
            history = update_history(history, HistoryPoint(NOW + timedelta(seconds=i), float(i)))
        assert len(history) == 1000
        assert history[0].normalized_value == 1004.0

    def test_update_history_prunes_old_points(self):
        history = (HistoryPoint(NOW, 1.0),)
        history = update_history(history, HistoryPoint(NOW + timedelta(days=31), 2.0))
        assert [p.normalized_value for p in history] == [2.0]

    def test_baseline_windows(self):
        history = (
            HistoryPoint(NOW - timedelta(days=1), 1.0),
            HistoryPoint(NOW - timedelta(days=2), 3.0),
            HistoryPoint(NOW - timedelta(days=10), 10.0),
        )
        assert calculate_baseline(history, 7, NOW) == pytest.approx(2.0)
        assert calculate_baseline(history, 30, NOW) == pytest.approx(14.0 / 3)

    def test_baseline_empty_window(self):
        history = (HistoryPoint(NOW - timedelta(days=20), 5.0),)
        assert calculate_baseline(history, 7, NOW) == 0.0
        assert calculate_baseline((), 30, NOW) == 0.0

    def test_ols_slope(self):
        assert ols_slope([1.0, 2.0, 3.0]) == pytest.approx(1.0)
        assert ols_slope([5.0]) == 0.0

    def test_metadata_confidence(self):
        assert metadata_confidence(None) == 0.0
        assert metadata_confidence({"confidence": 0.8}) == 0.8
        assert metadata_confidence({"confidence": 3}) == 1.0
        assert metadata_confidence({"confidence": "high"}) == 0.0


class TestTrend:
    def test_rising_series_is_up(self):
        direction, strength = detect_trend(_history([0.1 * i for i in range(10)]))
        assert direction == TrendDirection.UP
        assert strength == pytest.approx(1.0)

    def test_falling_series_is_down(self):
        direction, strength = detect_trend(_history([0.5 - 0.05 * i for i in range(10)]))
        assert direction == TrendDirection.DOWN
        assert strength == pytest.approx(0.5)

    def test_slope_below_threshold_is_stable(self):
        direction, strength = detect_trend(_history([0.5 - 0.005 * i for i in range(10)]))
        assert direction == TrendDirection.STABLE
        assert strength == 0.0

    def test_flat_series_is_stable(self):
        assert detect_trend(_history([0.3] * 12)) == (TrendDirection.STABLE, 0.0)

    def test_short_history_is_stable(self):
        assert detect_trend(_history([0.0, 1.0, 2.0])) == (TrendDirection.STABLE, 0.0)

    def test_only_recent_window_counts(self):
        values = [10.0 - i for i in range(10)] + [0.0] * 10
        assert detect_trend(_history(values)) == (TrendDirection.STABLE, 0.0)


class TestConfidence:
    def test_more_history_higher_confidence(self):
        small = _history([0.5] * 5, start=NOW - timedelta(minutes=4))
        large = _history([0.5] * 200, start=NOW - timedelta(minutes=199))
        assert compute_confidence(small, 0.0, NOW) < compute_confidence(large, 0.0, NOW)

    def test_recent_data_higher_confidence(self):
        fresh = (HistoryPoint(NOW - timedelta(hours=1), 0.5),)
        stale = (HistoryPoint(NOW - timedelta(hours=48), 0.5),)
        assert compute_confidence(fresh, 0.0, NOW) > compute_confidence(stale, 0.0, NOW)

    def test_metadata_raises_confidence(self):
        history = (HistoryPoint(NOW, 0.5),)
        assert compute_confidence(history, 1.0, NOW) > compute_confidence(history, 0.0, NOW)

    def test_bounded(self):
        history = _history([0.5] * 150, start=NOW - timedelta(minutes=149))
        assert compute_confidence(history, 1.0, NOW) == 1.0
        assert compute_confidence((), 0.0, NOW) == 0.5


class TestApplyUpdate:
    def test_out_of_range_is_clamped(self):
        g = apply_update(default_gauge("financial", now=NOW), 150.0, None, NOW)
        assert g.current_value == 100.0
        assert g.history[0].normalized_value == 100.0
        assert g.smoothed_value == pytest.approx(0.3 * 100 + 0.7 * 50)

    def test_does_not_mutate_input(self):
        before = default_gauge("financial", now=NOW)
        apply_update(before, 70.0, None, NOW)
        assert before.current_value == 50.0
        assert before.history == ()

    def test_smoothed_stays_in_range(self):
        g = _feed(default_gauge("sentiment", now=NOW), [1.0, -1.0] * 30 + [5.0, -5.0])
        lo, hi = g.value_range
        assert lo <= g.smoothed_value <= hi
        assert all(lo <= p.normalized_value <= hi for p in g.history)

    def test_history_newest_first(self):
        g = _feed(default_gauge("social_trends", now=NOW), [10.0, 20.0, 30.0])
        assert [p.normalized_value for p in g.history] == [30.0, 20.0, 10.0]
        assert g.last_updated == NOW + timedelta(minutes=2)
        assert g.history[0].timestamp == g.last_updated

    def test_history_bounds_under_load(self):
        g = _feed(default_gauge("financial", now=NOW), [50.0] * 1100, step=timedelta(hours=1))
        assert len(g.history) <= 1000
        assert all(g.last_updated - p.timestamp < timedelta(days=30) for p in g.history)

    def test_trend_follows_rising_updates(self):
        g = _feed(default_gauge("financial", now=NOW), [10.0 * i for i in range(1, 11)])
        assert g.trend_direction == TrendDirection.UP

    def test_baselines_updated(self):
        g = _feed(default_gauge("financial", now=NOW), [40.0, 60.0])
        assert g.baseline_7d == pytest.approx(50.0)
        assert g.baseline_30d == pytest.approx(50.0)

    def test_recalculate_baselines_only_touches_baselines(self):
        g = _feed(default_gauge("financial", now=NOW), [40.0, 60.0])
        later = g.last_updated + timedelta(days=8)
        refreshed = recalculate_baselines(g, later)
        assert refreshed.baseline_7d == 0.0
        assert refreshed.baseline_30d == pytest.approx(50.0)
        assert refreshed.current_value == g.current_value
        assert refreshed.history == g.history

    def test_to_dict(self):
        g = _feed(default_gauge("financial", now=NOW), [40.0, 60.0, 80.0])
        d = g.to_dict(history_limit=2)
        assert d["category"] == "financial"
        assert d["trend_direction"] == "stable"
        assert len(d["history"]) == 2
        assert d["history"][0]["normalized_value"] == 80.0
        assert d["value_range"] == [0.0, 100.0]
