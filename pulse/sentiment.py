"""
Bias-aware, multi-lingual sentiment aggregation.

Pipeline per batch:
1. Per item (independent, safe to run in parallel): language detection,
   content/source region lookup, keyword polarity, cultural correction.
2. Reduction: diversity-balanced aggregation over source regions, then the
   geographic context pass (dominant content region baseline), then the
   temporal pass (UTC hour-of-day offset).
3. Bias report + confidence for the batch.

A failing item is dropped and logged; an empty batch is a valid neutral,
low-confidence result.
"""

import asyncio
import logging
import math
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping

import numpy as np

from pulse.aggregation import ScoredItem, aggregate_groups
from pulse.bias import (
    BiasAdjustments,
    BiasReport,
    build_bias_report,
    sentiment_confidence,
)
from pulse.config import (
    DEFAULT_IMPORTANCE,
    IMPORTANCE_FLOOR,
    MAX_REGION_SHARE,
    REGIONAL_BASELINES,
    TEMPORAL_ADJUSTMENTS,
)
from pulse.language import detect_language, score_polarity
from pulse.metrics import sentiment_analysis_duration_seconds, sentiment_items_dropped_total
from pulse.regions import adjust_for_culture, detect_content_region, detect_source_region

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawItem:
    title: str = ""
    description: str = ""
    source_name: str = ""
    importance: float = DEFAULT_IMPORTANCE

    @property
    def text(self) -> str:
        return f"{self.title} {self.description}".strip()

    @classmethod
    def from_obj(cls, obj: "RawItem | Mapping[str, Any]") -> "RawItem":
        """Build from a RawItem or a mapping with title/description/source(_name)."""
        if isinstance(obj, RawItem):
            return obj
        if not isinstance(obj, Mapping):
            raise TypeError(f"unsupported item type: {type(obj).__name__}")
        importance = obj.get("importance", obj.get("importance_score", DEFAULT_IMPORTANCE))
        try:
            importance = float(importance)
        except (TypeError, ValueError):
            importance = DEFAULT_IMPORTANCE
        if not math.isfinite(importance):
            importance = DEFAULT_IMPORTANCE
        return cls(
            title=str(obj.get("title") or ""),
            description=str(obj.get("description") or ""),
            source_name=str(obj.get("source_name") or obj.get("source") or ""),
            importance=max(0.0, min(1.0, importance)),
        )


@dataclass(frozen=True)
class AnalyzedItem:
    text_ref: str
    language: str
    content_region: str
    source_region: str
    raw_polarity: float
    adjusted_polarity: float
    importance_weight: float


@dataclass(frozen=True)
class SentimentAnalysis:
    overall_sentiment: float
    raw_sentiment: float
    contextualized_sentiment: float
    bias_report: BiasReport
    confidence: float
    article_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall_sentiment": self.overall_sentiment,
            "raw_sentiment": self.raw_sentiment,
            "contextualized_sentiment": self.contextualized_sentiment,
            "bias_report": self.bias_report.to_dict(),
            "confidence": self.confidence,
            "article_count": self.article_count,
        }


def temporal_adjustment(now: datetime,
                        buckets: list[list[float]] | None = None) -> float:
    """Offset for the UTC hour of ``now``; 0.0 when no bucket covers it."""
    buckets = TEMPORAL_ADJUSTMENTS if buckets is None else buckets
    hour = now.astimezone(timezone.utc).hour
    for first, last, offset in buckets:
        if first <= hour <= last:
            return float(offset)
    return 0.0


def geographic_adjustment(content_regions: Iterable[str],
                          baselines: dict[str, float] | None = None) -> float:
    """Baseline offset of the most frequent content region, if it has one."""
    baselines = REGIONAL_BASELINES if baselines is None else baselines
    ranked = Counter(content_regions).most_common(1)
    if not ranked:
        return 0.0
    return float(baselines.get(ranked[0][0], 0.0))


def _importance_mean(values: list[float], weights: list[float]) -> float:
    if not values:
        return 0.0
    return float(np.average(values, weights=weights))


def _clamp_unit(x: float) -> float:
    return max(-1.0, min(1.0, x))


class SentimentAnalyzer:
    """Turns batches of raw items into one bias-mitigated sentiment score.

    Lookup tables default to the values in ``pulse.config`` and can be
    injected per instance.
    """

    def __init__(
        self,
        max_region_share: float = MAX_REGION_SHARE,
        source_regions: dict[str, str] | None = None,
        cultural_table: dict[str, dict[str, float]] | None = None,
        regional_baselines: dict[str, float] | None = None,
        temporal_buckets: list[list[float]] | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.max_region_share = max_region_share
        self.source_regions = source_regions
        self.cultural_table = cultural_table
        self.regional_baselines = regional_baselines
        self.temporal_buckets = temporal_buckets
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # ── per item ──

    def analyze_item(self, item: "RawItem | Mapping[str, Any]") -> AnalyzedItem | None:
        """Analyze one item; ``None`` when it is empty or cannot be analyzed."""
        try:
            raw = RawItem.from_obj(item)
            text = raw.text
            if not text:
                sentiment_items_dropped_total.labels(reason="empty").inc()
                return None

            language = detect_language(text)
            content_region = detect_content_region(text)
            source_region = detect_source_region(raw.source_name, self.source_regions)
            raw_polarity = score_polarity(text, language)
            adjusted = adjust_for_culture(raw_polarity, language, content_region,
                                          self.cultural_table)
            return AnalyzedItem(
                text_ref=(raw.title or raw.description)[:120],
                language=language,
                content_region=content_region,
                source_region=source_region,
                raw_polarity=raw_polarity,
                adjusted_polarity=adjusted,
                importance_weight=raw.importance + IMPORTANCE_FLOOR,
            )
        except Exception as e:
            sentiment_items_dropped_total.labels(reason="error").inc()
            logger.warning("Failed to analyze item sentiment: %s", e)
            return None

    # ── batch ──

    def analyze(self, items: Iterable["RawItem | Mapping[str, Any]"]) -> SentimentAnalysis:
        with sentiment_analysis_duration_seconds.time():
            analyzed = [self.analyze_item(item) for item in items or ()]
            return self.reduce(analyzed)

    analyze_articles_sentiment = analyze

    async def analyze_async(self, items: Iterable["RawItem | Mapping[str, Any]"]) -> SentimentAnalysis:
        """Scatter per-item analysis across worker threads, then reduce once."""
        with sentiment_analysis_duration_seconds.time():
            analyzed = await asyncio.gather(
                *(asyncio.to_thread(self.analyze_item, item) for item in items or ())
            )
            return self.reduce(analyzed)

    def reduce(self, analyzed: Iterable[AnalyzedItem | None]) -> SentimentAnalysis:
        """Combine per-item results into the batch sentiment and bias report."""
        now = self._clock()
        kept = [a for a in analyzed if a is not None]

        if not kept:
            report = build_bias_report([], [], [], now=now)
            return SentimentAnalysis(
                overall_sentiment=0.0,
                raw_sentiment=0.0,
                contextualized_sentiment=0.0,
                bias_report=report,
                confidence=sentiment_confidence(0, report),
                article_count=0,
            )

        weights = [a.importance_weight for a in kept]
        naive_raw = _importance_mean([a.raw_polarity for a in kept], weights)
        naive_adjusted = _importance_mean([a.adjusted_polarity for a in kept], weights)

        balanced = aggregate_groups(
            (ScoredItem(a.adjusted_polarity, a.importance_weight, a.source_region) for a in kept),
            self.max_region_share,
        ).value

        content_regions = [a.content_region for a in kept]
        contextualized = balanced + geographic_adjustment(content_regions, self.regional_baselines)
        overall = _clamp_unit(contextualized + temporal_adjustment(now, self.temporal_buckets))

        adjustments = BiasAdjustments(
            diversity_balancing=balanced - naive_adjusted,
            cultural_context=naive_adjusted - naive_raw,
            geographic_context=contextualized - balanced,
            temporal=overall - contextualized,
            total=overall - naive_raw,
        )
        report = build_bias_report(
            (a.language for a in kept),
            (a.source_region for a in kept),
            content_regions,
            adjustments,
            now=now,
        )
        confidence = sentiment_confidence(len(kept), report)

        logger.info(
            "Sentiment batch: %d items → overall=%.3f raw=%.3f confidence=%.2f flags=%s",
            len(kept), overall, balanced, confidence,
            sorted(f.value for f in report.flags),
        )

        return SentimentAnalysis(
            overall_sentiment=round(overall, 4),
            raw_sentiment=round(balanced, 4),
            contextualized_sentiment=round(contextualized, 4),
            bias_report=report,
            confidence=confidence,
            article_count=len(kept),
        )
