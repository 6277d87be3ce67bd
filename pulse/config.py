"""Centralized configuration — single source of truth for all tuneable constants.

Every value is backed by an environment variable with a sensible default so the
engine works out-of-the-box while remaining fully configurable in production.
Lookup tables are JSON-encoded in their environment variables.
"""

import json
import os

# ── Gauge engine ──

GAUGE_SMOOTHING_ALPHA = float(os.environ.get("GAUGE_SMOOTHING_ALPHA", "0.3"))
GAUGE_MAX_HISTORY = int(os.environ.get("GAUGE_MAX_HISTORY", "1000"))
GAUGE_HISTORY_DAYS = int(os.environ.get("GAUGE_HISTORY_DAYS", "30"))
GAUGE_TREND_WINDOW = int(os.environ.get("GAUGE_TREND_WINDOW", "10"))
GAUGE_TREND_THRESHOLD = float(os.environ.get("GAUGE_TREND_THRESHOLD", "0.01"))
GAUGE_UNKNOWN_CONFIDENCE = float(os.environ.get("GAUGE_UNKNOWN_CONFIDENCE", "0.3"))

BASELINE_REFRESH_ENABLED = os.environ.get("BASELINE_REFRESH_ENABLED", "true").lower() == "true"
BASELINE_REFRESH_SECONDS = float(os.environ.get("BASELINE_REFRESH_SECONDS", "60"))

# ── Sentiment aggregation ──

MAX_REGION_SHARE = float(os.environ.get("MAX_REGION_SHARE", "0.4"))
DEFAULT_IMPORTANCE = float(os.environ.get("DEFAULT_IMPORTANCE", "0.5"))
IMPORTANCE_FLOOR = float(os.environ.get("IMPORTANCE_FLOOR", "0.1"))

LANGUAGE_MIN_MATCHES = int(os.environ.get("LANGUAGE_MIN_MATCHES", "3"))
LANGUAGE_MIN_MARGIN = int(os.environ.get("LANGUAGE_MIN_MARGIN", "1"))

SOURCE_REGIONS: dict[str, str] = json.loads(
    os.environ.get(
        "SOURCE_REGIONS",
        json.dumps({
            "bbc": "europe", "reuters": "europe", "guardian": "europe",
            "el_pais": "europe", "dw": "europe", "france24": "europe",
            "euronews": "europe",
            "cnn": "north_america", "npr": "north_america", "ap_news": "north_america",
            "reddit": "north_america", "abc_news": "north_america",
            "cbs_news": "north_america", "fox_news": "north_america",
            "nytimes": "north_america", "washington_post": "north_america",
            "aljazeera": "middle_east",
            "xinhua": "asia_pacific", "nhk": "asia_pacific", "scmp": "asia_pacific",
            "the_hindu": "asia_pacific", "times_of_india": "asia_pacific",
            "allafrica": "africa",
            "mercopress": "latin_america", "folha": "latin_america", "clarin": "latin_america",
        }),
    )
)

# Additive offset applied when a region dominates the content of a batch.
REGIONAL_BASELINES: dict[str, float] = json.loads(
    os.environ.get(
        "REGIONAL_BASELINES",
        json.dumps({"middle_east": -0.15, "africa": -0.10, "latin_america": -0.05}),
    )
)

# [first_hour, last_hour, offset] in UTC, inclusive on both ends.
TEMPORAL_ADJUSTMENTS: list[list[float]] = json.loads(
    os.environ.get(
        "TEMPORAL_ADJUSTMENTS",
        json.dumps([[0, 6, -0.05], [7, 11, 0.05], [12, 18, 0.0], [19, 23, -0.02]]),
    )
)

# Keys are "<language>:<region>"; "<language>:*" rows apply to every region first.
CULTURAL_ADJUSTMENTS: dict[str, dict[str, float]] = json.loads(
    os.environ.get(
        "CULTURAL_ADJUSTMENTS",
        json.dumps({
            "ar:*": {"offset": 0.1},
            "zh:*": {"positive_scale": 1.1, "threshold": 0.0},
            "ar:middle_east": {"positive_scale": 1.2, "negative_scale": 0.9, "threshold": 0.2},
            "zh:asia_pacific": {"positive_scale": 1.1, "threshold": 0.0},
        }),
    )
)

# ── Bias report thresholds (fractions of the batch) ──

ENGLISH_DOMINANCE_SHARE = float(os.environ.get("ENGLISH_DOMINANCE_SHARE", "0.70"))
WESTERN_SOURCE_SHARE = float(os.environ.get("WESTERN_SOURCE_SHARE", "0.75"))
SINGLE_REGION_SHARE = float(os.environ.get("SINGLE_REGION_SHARE", "0.60"))

# ── Sentiment confidence ──

SENTIMENT_BASE_CONFIDENCE = float(os.environ.get("SENTIMENT_BASE_CONFIDENCE", "0.7"))
SENTIMENT_MIN_CONFIDENCE = float(os.environ.get("SENTIMENT_MIN_CONFIDENCE", "0.1"))
BIAS_FLAG_PENALTY = float(os.environ.get("BIAS_FLAG_PENALTY", "0.1"))

# ── Metrics ──

METRICS_ENABLED = os.environ.get("METRICS_ENABLED", "true").lower() == "true"
METRICS_PORT = int(os.environ.get("METRICS_PORT", "0"))  # 0 = do not serve /metrics

# ── Logging ──

LOG_FORMAT = os.environ.get("LOG_FORMAT", "console")  # "json" or "console"
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()


# ── Validation ──

_POSITIVE_FLOATS: list[tuple[str, float]] = [
    ("BASELINE_REFRESH_SECONDS", BASELINE_REFRESH_SECONDS),
    ("MAX_REGION_SHARE", MAX_REGION_SHARE),
    ("IMPORTANCE_FLOOR", IMPORTANCE_FLOOR),
]

_POSITIVE_INTS: list[tuple[str, int]] = [
    ("GAUGE_MAX_HISTORY", GAUGE_MAX_HISTORY),
    ("GAUGE_HISTORY_DAYS", GAUGE_HISTORY_DAYS),
    ("GAUGE_TREND_WINDOW", GAUGE_TREND_WINDOW),
    ("LANGUAGE_MIN_MATCHES", LANGUAGE_MIN_MATCHES),
]

_UNIT_INTERVAL: list[tuple[str, float]] = [
    ("GAUGE_SMOOTHING_ALPHA", GAUGE_SMOOTHING_ALPHA),
    ("GAUGE_UNKNOWN_CONFIDENCE", GAUGE_UNKNOWN_CONFIDENCE),
    ("MAX_REGION_SHARE", MAX_REGION_SHARE),
    ("DEFAULT_IMPORTANCE", DEFAULT_IMPORTANCE),
    ("ENGLISH_DOMINANCE_SHARE", ENGLISH_DOMINANCE_SHARE),
    ("WESTERN_SOURCE_SHARE", WESTERN_SOURCE_SHARE),
    ("SINGLE_REGION_SHARE", SINGLE_REGION_SHARE),
    ("SENTIMENT_BASE_CONFIDENCE", SENTIMENT_BASE_CONFIDENCE),
    ("SENTIMENT_MIN_CONFIDENCE", SENTIMENT_MIN_CONFIDENCE),
]

_VALID_CHOICES: dict[str, tuple[str, tuple[str, ...]]] = {
    "LOG_FORMAT": (LOG_FORMAT, ("json", "console")),
}


def validate_config() -> list[str]:
    """Return a list of human-readable warnings for suspicious settings.

    An empty list means the configuration is sane. Nothing is raised so the
    caller decides whether to log, abort or ignore.
    """
    warnings: list[str] = []

    for name, value in _POSITIVE_FLOATS:
        if value <= 0:
            warnings.append(f"{name} must be > 0 (got {value})")

    for name, value in _POSITIVE_INTS:
        if value <= 0:
            warnings.append(f"{name} must be > 0 (got {value})")

    for name, value in _UNIT_INTERVAL:
        if not 0.0 <= value <= 1.0:
            warnings.append(f"{name} must be within [0, 1] (got {value})")

    for name, (value, choices) in _VALID_CHOICES.items():
        if value not in choices:
            warnings.append(f"{name}={value!r} is not one of {list(choices)}")

    hours_covered: set[int] = set()
    for bucket in TEMPORAL_ADJUSTMENTS:
        if len(bucket) != 3:
            warnings.append(f"TEMPORAL_ADJUSTMENTS entry {bucket} must be [first_hour, last_hour, offset]")
            continue
        first, last, _ = bucket
        hours_covered.update(range(int(first), int(last) + 1))
    missing = sorted(set(range(24)) - hours_covered)
    if missing:
        warnings.append(f"TEMPORAL_ADJUSTMENTS leaves hours {missing} uncovered")

    return warnings
