"""Tests for pulse/sentiment.py — batch sentiment analysis and reduction."""

from datetime import datetime, timezone

import pytest

from pulse.bias import BiasFlag
from pulse.sentiment import (
    RawItem,
    SentimentAnalyzer,
    geographic_adjustment,
    temporal_adjustment,
)


def _at(hour: int) -> SentimentAnalyzer:
    now = datetime(2024, 6, 3, hour, 0, tzinfo=timezone.utc)
    return SentimentAnalyzer(clock=lambda: now)


@pytest.fixture
def analyzer(clock) -> SentimentAnalyzer:
    return SentimentAnalyzer(clock=clock)


class TestRawItem:
    def test_from_mapping(self):
        item = RawItem.from_obj({"title": "Hello", "source": "BBC", "importance_score": 2.0})
        assert item.source_name == "BBC"
        assert item.importance == 1.0
        assert item.text == "Hello"

    def test_from_mapping_bad_importance(self):
        item = RawItem.from_obj({"title": "x", "importance": "high"})
        assert item.importance == 0.5

    def test_passthrough(self):
        item = RawItem(title="a")
        assert RawItem.from_obj(item) is item

    def test_unsupported_type(self):
        with pytest.raises(TypeError):
            RawItem.from_obj(42)


class TestAnalyzeItem:
    def test_fields(self, analyzer):
        result = analyzer.analyze_item({"title": "Peace agreement in Kenya", "source": "AllAfrica"})
        assert result.language == "en"
        assert result.content_region == "africa"
        assert result.source_region == "africa"
        assert result.raw_polarity == pytest.approx(0.5)
        assert result.importance_weight == pytest.approx(0.6)

    def test_empty_item_dropped(self, analyzer):
        assert analyzer.analyze_item({"title": "", "description": "  "}) is None

    def test_bad_item_dropped(self, analyzer):
        assert analyzer.analyze_item(42) is None


class TestAnalyze:
    def test_empty_batch(self, analyzer):
        result = analyzer.analyze([])
        assert result.overall_sentiment == 0.0
        assert result.confidence == 0.1
        assert result.article_count == 0
        assert result.bias_report.flags == frozenset({BiasFlag.INSUFFICIENT_DATA})

    def test_none_batch(self, analyzer):
        assert analyzer.analyze(None).article_count == 0

    def test_all_items_unusable(self, analyzer):
        result = analyzer.analyze([{"title": ""}, 42, "junk"])
        assert result.article_count == 0
        assert result.overall_sentiment == 0.0

    def test_bad_items_do_not_abort_batch(self, analyzer):
        result = analyzer.analyze([42, {"title": "Peace agreement signed", "source": "BBC"}])
        assert result.article_count == 1
        assert result.overall_sentiment == pytest.approx(0.5)

    def test_single_item(self, analyzer):
        result = analyzer.analyze([{"title": "Peace agreement signed", "source": "BBC"}])
        assert result.raw_sentiment == pytest.approx(0.5)
        assert result.contextualized_sentiment == pytest.approx(0.5)
        report = result.bias_report
        assert report.source_region_distribution == {"europe": 1}
        assert report.content_region_distribution == {"unknown": 1}
        assert BiasFlag.ENGLISH_DOMINANCE in report.flags
        assert result.confidence == pytest.approx(0.1)

    def test_diversity_balancing(self, analyzer):
        items = [{"title": "Peace agreement", "source": "BBC"}] * 9
        items.append({"title": "War and crisis", "source": "Xinhua"})
        result = analyzer.analyze(items)
        assert result.article_count == 10
        assert result.raw_sentiment == pytest.approx(0.15)
        assert result.overall_sentiment == pytest.approx(0.15)
        adjustments = result.bias_report.adjustments
        assert adjustments.diversity_balancing == pytest.approx(0.15 - 0.4)
        assert adjustments.cultural_context == pytest.approx(0.0)

    def test_hundred_item_batch_with_dominant_region(self, analyzer):
        items = [{"title": "Peace agreement cooperation stability progress", "source": "CNN"}] * 90
        items += [{"title": "War conflict violence crisis attack", "source": "Al Jazeera"}] * 10
        result = analyzer.analyze(items)
        assert result.article_count == 100
        assert result.bias_report.source_region_distribution == {"north_america": 90, "middle_east": 10}
        # 0.4 × 0.8 + 0.1 × (−0.8)
        assert result.raw_sentiment == pytest.approx(0.24)
        assert result.overall_sentiment == pytest.approx(0.24)

    def test_geographic_context(self, analyzer):
        result = analyzer.analyze([{"title": "Violence in Syria", "source": "Al Jazeera"}])
        assert result.raw_sentiment == pytest.approx(-0.4)
        assert result.contextualized_sentiment == pytest.approx(-0.55)
        assert result.overall_sentiment == pytest.approx(-0.55)
        assert result.bias_report.adjustments.geographic_context == pytest.approx(-0.15)

    @pytest.mark.parametrize("hour,expected", [(3, 0.45), (8, 0.55), (14, 0.5), (21, 0.48)])
    def test_temporal_context(self, hour, expected):
        result = _at(hour).analyze([{"title": "Peace agreement signed", "source": "BBC"}])
        assert result.overall_sentiment == pytest.approx(expected)
        assert result.contextualized_sentiment == pytest.approx(0.5)

    def test_overall_clamped(self):
        text = "War conflict violence crisis attack terrorism death destruction in Syria"
        result = _at(3).analyze([{"title": text, "source": "Al Jazeera"}])
        assert result.overall_sentiment == -1.0
        assert result.contextualized_sentiment < -1.0

    def test_alias(self, analyzer):
        items = [{"title": "Peace agreement signed", "source": "BBC"}]
        assert analyzer.analyze_articles_sentiment(items) == analyzer.analyze(items)

    def test_to_dict(self, analyzer):
        d = analyzer.analyze([{"title": "Peace agreement signed", "source": "BBC"}]).to_dict()
        assert set(d) == {
            "overall_sentiment", "raw_sentiment", "contextualized_sentiment",
            "bias_report", "confidence", "article_count",
        }
        assert d["bias_report"]["source_region_distribution"] == {"europe": 1}

    @pytest.mark.asyncio
    async def test_async_matches_sync(self, analyzer):
        items = [
            {"title": "Peace agreement", "source": "BBC"},
            {"title": "War and crisis", "source": "Xinhua"},
            {"title": "El acuerdo de paz para la región con los vecinos", "source": "Clarin"},
            42,
        ]
        async_result = await analyzer.analyze_async(items)
        assert async_result == analyzer.analyze(items)
        assert async_result.article_count == 3


class TestContextPasses:
    @pytest.mark.parametrize("hour,offset", [(0, -0.05), (6, -0.05), (7, 0.05), (11, 0.05),
                                             (12, 0.0), (19, -0.02), (23, -0.02)])
    def test_temporal_buckets(self, hour, offset):
        now = datetime(2024, 6, 3, hour, 30, tzinfo=timezone.utc)
        assert temporal_adjustment(now) == offset

    def test_uncovered_hour(self):
        now = datetime(2024, 6, 3, 5, 0, tzinfo=timezone.utc)
        assert temporal_adjustment(now, [[12, 18, 0.1]]) == 0.0

    def test_geographic_dominant_region(self):
        regions = ["africa", "africa", "europe"]
        assert geographic_adjustment(regions) == pytest.approx(-0.10)

    def test_geographic_region_without_baseline(self):
        assert geographic_adjustment(["europe"]) == 0.0
        assert geographic_adjustment([]) == 0.0
