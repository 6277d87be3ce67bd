"""Custom Prometheus metrics for the Pulse gauge engine."""

from prometheus_client import Counter, Gauge, Histogram

gauge_updates_total = Counter(
    "pulse_gauge_updates_total",
    "Accepted gauge observations",
    ["category"],
)

gauge_updates_dropped_total = Counter(
    "pulse_gauge_updates_dropped_total",
    "Gauge observations rejected before reaching the pipeline",
    ["reason"],
)

gauge_value = Gauge(
    "pulse_gauge_value",
    "Current normalized value per gauge category",
    ["category"],
)

gauge_confidence = Gauge(
    "pulse_gauge_confidence",
    "Current confidence per gauge category",
    ["category"],
)

sentiment_items_dropped_total = Counter(
    "pulse_sentiment_items_dropped_total",
    "Items dropped during sentiment analysis",
    ["reason"],
)

sentiment_analysis_duration_seconds = Histogram(
    "pulse_sentiment_analysis_duration_seconds",
    "Time spent analyzing a batch of items",
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)
