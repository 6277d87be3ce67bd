"""Engine wiring: one GaugeStore + one SentimentAnalyzer passed explicitly to callers."""

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from prometheus_client import start_http_server

from pulse.bias import gauge_confidence_from_report
from pulse.config import METRICS_ENABLED, METRICS_PORT, validate_config
from pulse.gauges import GaugeCategory
from pulse.logging import get_logger, setup_logging
from pulse.sentiment import RawItem, SentimentAnalysis, SentimentAnalyzer
from pulse.store import GaugeStore
from pulse.tasks import BaselineRefresher

logger = get_logger("pulse_engine")


@dataclass
class PulseEngine:
    store: GaugeStore = field(default_factory=GaugeStore)
    analyzer: SentimentAnalyzer = field(default_factory=SentimentAnalyzer)
    refresher: BaselineRefresher | None = None

    def __post_init__(self) -> None:
        if self.refresher is None:
            self.refresher = BaselineRefresher(self.store)

    def _push_sentiment(self, analysis: SentimentAnalysis, source: str) -> None:
        report = analysis.bias_report
        self.store.update_value(
            GaugeCategory.SENTIMENT,
            analysis.overall_sentiment,
            {
                "confidence": gauge_confidence_from_report(report),
                "source": source,
                "bias_flags": sorted(f.value for f in report.flags),
                "article_count": analysis.article_count,
            },
        )
        logger.info("sentiment_gauge_updated", value=analysis.overall_sentiment,
                    confidence=analysis.confidence, articles=analysis.article_count)

    def ingest_articles(self, items: Iterable[RawItem | Mapping[str, Any]],
                        source: str = "news") -> SentimentAnalysis:
        """Analyze a batch of articles and feed the result into the sentiment gauge."""
        analysis = self.analyzer.analyze_articles_sentiment(items)
        self._push_sentiment(analysis, source)
        return analysis

    async def ingest_articles_async(self, items: Iterable[RawItem | Mapping[str, Any]],
                                    source: str = "news") -> SentimentAnalysis:
        analysis = await self.analyzer.analyze_async(items)
        self._push_sentiment(analysis, source)
        return analysis

    def start(self) -> None:
        """Start background work; must be called from a running event loop."""
        self.refresher.start()

    def stop(self) -> None:
        self.refresher.stop()


def build_engine(configure_logging: bool = True) -> PulseEngine:
    """Create a fully wired engine, logging any configuration warnings."""
    if configure_logging:
        setup_logging()
    for warning in validate_config():
        logger.warning("config_warning", detail=warning)
    if METRICS_ENABLED and METRICS_PORT:
        start_http_server(METRICS_PORT)
        logger.info("metrics_server_started", port=METRICS_PORT)
    engine = PulseEngine()
    logger.info("pulse_engine_ready", categories=engine.store.categories)
    return engine
