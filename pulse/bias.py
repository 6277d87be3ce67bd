"""Bias transparency report: input distributions, skew flags and confidence."""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable

from pulse.config import (
    BIAS_FLAG_PENALTY,
    ENGLISH_DOMINANCE_SHARE,
    SENTIMENT_BASE_CONFIDENCE,
    SENTIMENT_MIN_CONFIDENCE,
    SINGLE_REGION_SHARE,
    WESTERN_SOURCE_SHARE,
)
from pulse.language import DEFAULT_LANGUAGE
from pulse.regions import WESTERN_REGIONS


class BiasFlag(str, Enum):
    ENGLISH_DOMINANCE = "english_dominance"
    WESTERN_SOURCE_BIAS = "western_source_bias"
    SINGLE_REGION_FOCUS = "single_region_focus"
    BALANCED_COVERAGE = "balanced_coverage"
    INSUFFICIENT_DATA = "insufficient_data"


@dataclass(frozen=True)
class BiasAdjustments:
    """How far each stage moved the sentiment, in score units."""
    diversity_balancing: float = 0.0
    cultural_context: float = 0.0
    geographic_context: float = 0.0
    temporal: float = 0.0
    total: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {
            "diversity_balancing": round(self.diversity_balancing, 4),
            "cultural_context": round(self.cultural_context, 4),
            "geographic_context": round(self.geographic_context, 4),
            "temporal": round(self.temporal, 4),
            "total": round(self.total, 4),
        }


@dataclass(frozen=True)
class BiasReport:
    language_distribution: dict[str, int]
    source_region_distribution: dict[str, int]
    content_region_distribution: dict[str, int]
    adjustments: BiasAdjustments
    flags: frozenset[BiasFlag]
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def balanced(self) -> bool:
        return BiasFlag.BALANCED_COVERAGE in self.flags

    @property
    def sample_size(self) -> int:
        return sum(self.language_distribution.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "language_distribution": dict(self.language_distribution),
            "source_region_distribution": dict(self.source_region_distribution),
            "content_region_distribution": dict(self.content_region_distribution),
            "adjustments": self.adjustments.to_dict(),
            "flags": sorted(f.value for f in self.flags),
            "generated_at": self.generated_at.isoformat(),
        }


def _share(count: int, total: int) -> float:
    return count / total if total else 0.0


def identify_biases(language_dist: dict[str, int],
                    source_dist: dict[str, int],
                    content_dist: dict[str, int]) -> frozenset[BiasFlag]:
    """Flag likely skew in a batch; ``balanced_coverage`` iff nothing else fires."""
    lang_total = sum(language_dist.values())
    if lang_total == 0:
        return frozenset({BiasFlag.INSUFFICIENT_DATA})

    flags: set[BiasFlag] = set()

    if _share(language_dist.get(DEFAULT_LANGUAGE, 0), lang_total) > ENGLISH_DOMINANCE_SHARE:
        flags.add(BiasFlag.ENGLISH_DOMINANCE)

    source_total = sum(source_dist.values())
    western = sum(source_dist.get(r, 0) for r in WESTERN_REGIONS)
    if _share(western, source_total) > WESTERN_SOURCE_SHARE:
        flags.add(BiasFlag.WESTERN_SOURCE_BIAS)

    content_total = sum(content_dist.values())
    if content_total and _share(max(content_dist.values()), content_total) > SINGLE_REGION_SHARE:
        flags.add(BiasFlag.SINGLE_REGION_FOCUS)

    if not flags:
        flags.add(BiasFlag.BALANCED_COVERAGE)
    return frozenset(flags)


def build_bias_report(languages: Iterable[str],
                      source_regions: Iterable[str],
                      content_regions: Iterable[str],
                      adjustments: BiasAdjustments | None = None,
                      now: datetime | None = None) -> BiasReport:
    language_dist = dict(Counter(languages))
    source_dist = dict(Counter(source_regions))
    content_dist = dict(Counter(content_regions))
    return BiasReport(
        language_distribution=language_dist,
        source_region_distribution=source_dist,
        content_region_distribution=content_dist,
        adjustments=adjustments or BiasAdjustments(),
        flags=identify_biases(language_dist, source_dist, content_dist),
        generated_at=now or datetime.now(timezone.utc),
    )


def sample_penalty(n: int) -> float:
    if n < 10:
        return 0.3
    if n < 50:
        return 0.2
    if n < 100:
        return 0.1
    return 0.0


def sentiment_confidence(n_items: int, report: BiasReport) -> float:
    """Confidence of an aggregate sentiment, floored at SENTIMENT_MIN_CONFIDENCE."""
    if n_items == 0:
        return SENTIMENT_MIN_CONFIDENCE
    bias_penalty = 0.0 if report.balanced else BIAS_FLAG_PENALTY * len(report.flags)
    confidence = SENTIMENT_BASE_CONFIDENCE - bias_penalty - sample_penalty(n_items)
    return round(max(SENTIMENT_MIN_CONFIDENCE, confidence), 4)


def gauge_confidence_from_report(report: BiasReport | None) -> float:
    """Metadata confidence attached to a sentiment gauge update.

    Starts at 0.7, loses 0.2 for more than one flag (0.3 for more than three)
    and gains 0.2 for balanced coverage; result kept within [0.3, 1.0].
    """
    if report is None:
        return 0.5
    if BiasFlag.INSUFFICIENT_DATA in report.flags:
        return 0.3
    n_flags = len(report.flags)
    if n_flags > 3:
        penalty = 0.3
    elif n_flags > 1:
        penalty = 0.2
    else:
        penalty = 0.0
    bonus = 0.2 if report.balanced else 0.0
    return round(max(0.3, min(1.0, 0.7 - penalty + bonus)), 4)
