#!/usr/bin/env python3
"""Pulse Gauge Engine — Full Pipeline Demo.

Feeds synthetic articles and metric observations through the engine and
prints the resulting gauges and bias report.
"""
from dotenv import load_dotenv

load_dotenv()

import time
import numpy as np

from pulse.service import build_engine

np.random.seed(42)

CYAN = "\033[96m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
BOLD = "\033[1m"
RESET = "\033[0m"
SEP = f"{CYAN}{'═' * 70}{RESET}"

def header(title: str):
    print(f"\n{SEP}")
    print(f"{BOLD}{YELLOW}  ▶ {title}{RESET}")
    print(SEP)

def kv(key: str, val, indent: int = 4):
    prefix = " " * indent
    if isinstance(val, float):
        print(f"{prefix}{key}: {GREEN}{val:.6f}{RESET}")
    else:
        print(f"{prefix}{key}: {GREEN}{val}{RESET}")

engine = build_engine()

# ─── 1. Multilingual sentiment batch ───────────────────────────────
header("1. BIAS-AWARE SENTIMENT (mixed languages and outlets)")
articles = [
    {"title": "Peace agreement brings stability to Europe", "source": "BBC", "importance": 0.8},
    {"title": "Markets rally on growth and recovery in the United States", "source": "CNN"},
    {"title": "Violence and crisis deepen in Syria", "source": "Al Jazeera", "importance": 0.9},
    {"title": "El acuerdo de paz trae estabilidad para la región de Mexico", "source": "Clarin"},
    {"title": "Kenya election marked by transparency and progress", "source": "AllAfrica"},
    {"title": "Japan innovation and investment drive development", "source": "NHK"},
    {"title": "", "description": "", "source": "Reuters"},
]
t0 = time.time()
analysis = engine.ingest_articles(articles)
dt = time.time() - t0
kv("Analysis time", f"{dt*1000:.1f}ms")
kv("Articles analyzed", analysis.article_count)
kv("Overall sentiment", analysis.overall_sentiment)
kv("Balanced (pre-context)", analysis.raw_sentiment)
kv("Contextualized", analysis.contextualized_sentiment)
kv("Confidence", analysis.confidence)
report = analysis.bias_report
kv("Languages", report.language_distribution)
kv("Source regions", report.source_region_distribution)
kv("Content regions", report.content_region_distribution)
kv("Flags", sorted(f.value for f in report.flags))
kv("Adjustments", report.adjustments.to_dict())

# ─── 2. Metric gauges ──────────────────────────────────────────────
header("2. GAUGE UPDATES (financial / natural events / social trends)")
financial = 50 + np.cumsum(np.random.randn(40) * 2.0 + 0.8)
for v in financial:
    engine.store.update_value("financial", float(v), {"confidence": 0.8})
for v in np.random.uniform(1, 4, 15):
    engine.store.update_value("natural_events", float(v), {"confidence": 0.6})
for v in 60 - np.arange(12) * 1.5:
    engine.store.update_value("social_trends", float(v))
engine.store.update_value("financial", 150.0)
engine.store.update_value("financial", "not a number")
engine.store.update_value("weather", 3.0)

for name, gauge in engine.store.get_all_gauges().items():
    print(f"\n    {BOLD}{name}{RESET}")
    kv("current", gauge.current_value, indent=6)
    kv("smoothed", gauge.smoothed_value, indent=6)
    kv("baseline 7d", gauge.baseline_7d, indent=6)
    kv("trend", f"{gauge.trend_direction.value} ({gauge.trend_strength:.2f})", indent=6)
    kv("confidence", gauge.confidence, indent=6)
    kv("history points", len(gauge.history), indent=6)

# ─── 3. Unknown category fallback ──────────────────────────────────
header("3. UNKNOWN CATEGORY DEFAULT")
fallback = engine.store.get_gauge_data("weather")
kv("value_range", fallback.value_range)
kv("current", fallback.current_value)
kv("confidence", fallback.confidence)

print(f"\n{SEP}\n{BOLD}  Done.{RESET}\n{SEP}")
