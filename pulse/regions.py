"""
Geographic classification and cultural polarity corrections.

Content region: first region (in priority order) whose keywords appear in the
text as whole words. Source region: static outlet → region table.
Cultural adjustment: small per-(language, region) corrections applied to a
raw polarity, language-wide rows ("ar:*") before region-specific ones.
"""

import re

from pulse.config import CULTURAL_ADJUSTMENTS, SOURCE_REGIONS

UNKNOWN_REGION = "unknown"
WESTERN_REGIONS = ("north_america", "europe")

# Order matters: earlier regions win when several match.
REGION_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("middle_east", ("middle east", "syria", "iraq", "iran", "saudi", "israel", "palestine")),
    ("africa", ("africa", "nigeria", "kenya", "south africa", "egypt")),
    ("asia_pacific", ("china", "japan", "korea", "india", "asia", "pacific")),
    ("latin_america", ("mexico", "brazil", "argentina", "latin america", "south america")),
    ("europe", ("europe", "uk", "france", "germany", "italy", "spain")),
    ("north_america", ("usa", "america", "canada", "united states")),
]

_REGION_PATTERNS: list[tuple[str, re.Pattern]] = [
    (region, re.compile(r"\b(?:" + "|".join(re.escape(k) for k in keywords) + r")\b"))
    for region, keywords in REGION_KEYWORDS
]


def detect_content_region(text: str) -> str:
    """Region the text is about, or ``unknown``."""
    text_lower = text.lower()
    for region, pattern in _REGION_PATTERNS:
        if pattern.search(text_lower):
            return region
    return UNKNOWN_REGION


def _source_key(source_name: str) -> str:
    return re.sub(r"[\s\-.]+", "_", source_name.strip().lower()).strip("_")


def detect_source_region(source_name: str | None,
                         table: dict[str, str] | None = None) -> str:
    """Presumed origin region of a named outlet, or ``unknown``."""
    if not source_name:
        return UNKNOWN_REGION
    table = SOURCE_REGIONS if table is None else table
    key = _source_key(source_name)
    return table.get(key) or table.get(key.replace("_", "")) or UNKNOWN_REGION


def _apply_rule(score: float, rule: dict[str, float]) -> float:
    threshold = rule.get("threshold", 0.0)
    if score > threshold:
        score *= rule.get("positive_scale", 1.0)
    elif score < -threshold:
        score *= rule.get("negative_scale", 1.0)
    return score + rule.get("offset", 0.0)


def adjust_for_culture(score: float, language: str, region: str,
                       table: dict[str, dict[str, float]] | None = None) -> float:
    """Apply the (language, region) correction table and re-clamp to [-1, 1]."""
    table = CULTURAL_ADJUSTMENTS if table is None else table
    for key in (f"{language}:*", f"{language}:{region}"):
        rule = table.get(key)
        if rule:
            score = _apply_rule(score, rule)
    return max(-1.0, min(1.0, score))
