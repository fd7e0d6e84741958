"""Rule-based classification of fetched items into candidate events.

Every table in this module is an ordered, hand-authored rule list evaluated
with first-match-wins semantics. The order is part of the behaviour: it
decides ties and keeps results reproducible, so entries must not be sorted
or re-weighted casually.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from ..keywords import GEOPOLITICAL_KEYWORDS, GEOPOLITICAL_REGIONS
from ..models import (
    CandidateEvent,
    Category,
    Impact,
    Platform,
    RawItem,
    Reliability,
    Sentiment,
    Severity,
)
from ..sources.base import CancellationToken
from ..utils import parse_event_date, word_count

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Classification tables
# ---------------------------------------------------------------------------
CATEGORY_RULES: Tuple[Tuple[Tuple[str, ...], Category], ...] = (
    (("sanction", "embargo"), Category.SANCTIONS),
    (("trade war", "tariff"), Category.TRADE_DISPUTES),
    (("election", "vote"), Category.POLITICAL_INSTABILITY),
    (("protest", "unrest"), Category.CIVIL_UNREST),
    (("military", "conflict"), Category.MILITARY_CONFLICT),
    (("cyber", "hack"), Category.CYBERSECURITY_THREATS),
    (("supply chain", "logistics"), Category.SUPPLY_CHAIN_DISRUPTIONS),
    (("currency", "inflation"), Category.CURRENCY_FLUCTUATIONS),
    (("regulation", "policy"), Category.REGULATORY_CHANGES),
)

SEVERITY_RULES: Tuple[Tuple[Severity, Tuple[str, ...]], ...] = (
    (Severity.CRITICAL, ("nuclear", "war", "crisis", "emergency", "attack")),
    (Severity.HIGH, ("sanction", "protest", "conflict", "dispute", "threat")),
    (Severity.MEDIUM, ("policy", "regulation", "change", "announcement")),
)

IMPACT_RULES: Tuple[Tuple[Tuple[str, ...], Impact], ...] = (
    (("global", "worldwide"), Impact.GLOBAL),
    (("regional", "continent"), Impact.REGIONAL),
    (("national", "country"), Impact.NATIONAL),
)

BASE_SCORE: float = 0.1
KEYWORD_WEIGHT: float = 0.1
KEYWORD_CAP: float = 0.4
REGION_WEIGHT: float = 0.15
REGION_CAP: float = 0.3
SCORE_BONUSES: Tuple[Tuple[Tuple[str, ...], float], ...] = (
    (("nuclear", "war"), 0.2),
    (("sanction", "embargo"), 0.15),
    (("protest", "unrest"), 0.1),
)

MAX_TAGS: int = 10
DEFAULT_LOCATION: str = "Global"

# Engagement counters summed for each platform; every platform must be listed.
ENGAGEMENT_FIELDS: Mapping[Platform, Tuple[str, ...]] = {
    Platform.NEWS: (),
    Platform.TWITTER: ("retweets", "likes"),
    Platform.REDDIT: ("upvotes", "comments"),
    Platform.LINKEDIN: ("likes", "comments"),
}
_unmapped = set(Platform) - set(ENGAGEMENT_FIELDS)
if _unmapped:
    raise RuntimeError(f"ENGAGEMENT_FIELDS is missing platforms: {sorted(p.value for p in _unmapped)}")

# (threshold, boost) checked from the top; strictly-greater comparison
ENGAGEMENT_BOOSTS: Tuple[Tuple[int, float], ...] = (
    (1000, 0.2),
    (100, 0.1),
    (10, 0.05),
)

POSITIVE_WORDS: Tuple[str, ...] = (
    "positive", "growth", "improve", "benefit", "opportunity", "success", "gain",
)
NEGATIVE_WORDS: Tuple[str, ...] = (
    "negative", "decline", "worse", "threat", "risk", "loss", "crisis", "conflict", "sanction",
)
NEUTRAL_WORDS: Tuple[str, ...] = ("announce", "change", "policy", "regulation", "update")
NEUTRAL_WEIGHT: float = 0.1

COUNTRY_PATTERN = re.compile(
    r"\b(China|Russia|USA|United States|UK|United Kingdom|Germany|France|Japan|India|Brazil"
    r"|Canada|Australia|South Korea|Iran|North Korea|Taiwan|Hong Kong)\b",
    re.IGNORECASE,
)
COMPANY_PATTERN = re.compile(
    r"\b(Apple|Google|Microsoft|Amazon|Tesla|Samsung|Intel|AMD|NVIDIA|TSMC|ASML|Qualcomm"
    r"|Huawei|ZTE|Alibaba|Tencent)\b",
    re.IGNORECASE,
)

KEY_PHRASES: Tuple[str, ...] = (
    "supply chain disruption",
    "trade restrictions",
    "economic sanctions",
    "regulatory changes",
    "cybersecurity threat",
    "political instability",
    "military conflict",
    "diplomatic relations",
    "market volatility",
    "currency fluctuations",
)

# (field, substrings, key point); every matching point is kept, in order
SUMMARY_RULES: Tuple[Tuple[str, Tuple[str, ...], str], ...] = (
    ("title", ("announces", "announced"), "Policy announcement"),
    ("title", ("sanctions", "sanctioned"), "Sanctions imposed"),
    ("title", ("trade", "tariff"), "Trade policy change"),
    ("description", ("impact", "affect"), "Business impact expected"),
    ("description", ("response", "react"), "Response/reaction involved"),
)
DEFAULT_SUMMARY: str = "Geopolitical development"

HIGH_QUALITY_SOURCES: Tuple[str, ...] = (
    "reuters", "bloomberg", "financial times", "wall street journal", "cnn", "bbc",
)
MEDIUM_QUALITY_SOURCES: Tuple[str, ...] = (
    "ap", "associated press", "usa today", "nbc", "abc", "cbs",
)

URGENCY_TERMS: Tuple[str, ...] = ("breaking", "urgent", "alert", "crisis", "emergency", "developing")
CREDIBILITY_TERMS: Tuple[str, ...] = ("confirmed", "official", "statement", "announcement", "verified")

WORDS_PER_MINUTE: int = 200
FULL_CONTENT_CHARS: int = 500


# ---------------------------------------------------------------------------
# Table evaluation helpers
# ---------------------------------------------------------------------------
def _contains_any(text: str, terms: Iterable[str]) -> bool:
    return any(term in text for term in terms)


def _matches(text: str, terms: Iterable[str]) -> List[str]:
    return [term for term in terms if term.lower() in text]


def clamp(score: float) -> float:
    return max(0.0, min(1.0, score))


def is_relevant(text: str) -> bool:
    """Relevance gate: any geopolitical keyword present."""
    return _contains_any(text, GEOPOLITICAL_KEYWORDS)


def extract_location(text: str) -> str:
    for region in GEOPOLITICAL_REGIONS:
        if region.lower() in text:
            return region
    return DEFAULT_LOCATION


def determine_category(text: str) -> Category:
    for terms, category in CATEGORY_RULES:
        if _contains_any(text, terms):
            return category
    return Category.GENERAL


def determine_severity(text: str) -> Severity:
    for severity, terms in SEVERITY_RULES:
        if _contains_any(text, terms):
            return severity
    return Severity.LOW


def determine_impact(text: str) -> Impact:
    for terms, impact in IMPACT_RULES:
        if _contains_any(text, terms):
            return impact
    return Impact.LOCAL


def relevance_score(text: str) -> float:
    score = BASE_SCORE
    score += min(len(_matches(text, GEOPOLITICAL_KEYWORDS)) * KEYWORD_WEIGHT, KEYWORD_CAP)
    score += min(len(_matches(text, GEOPOLITICAL_REGIONS)) * REGION_WEIGHT, REGION_CAP)
    for terms, bonus in SCORE_BONUSES:
        if _contains_any(text, terms):
            score += bonus
    return clamp(score)


def extract_tags(text: str) -> List[str]:
    return _matches(text, GEOPOLITICAL_KEYWORDS)[:MAX_TAGS]


def engagement_total(platform: Platform, metrics: Mapping[str, int]) -> int:
    return sum(int(metrics.get(name, 0) or 0) for name in ENGAGEMENT_FIELDS[platform])


def engagement_boost(total: int) -> float:
    for threshold, boost in ENGAGEMENT_BOOSTS:
        if total > threshold:
            return boost
    return 0.0


def create_summary(title: str, description: str) -> str:
    fields = {"title": title.lower(), "description": description.lower()}
    points = [
        point for field_name, terms, point in SUMMARY_RULES if _contains_any(fields[field_name], terms)
    ]
    return "; ".join(points) if points else DEFAULT_SUMMARY


def analyze_sentiment(text: str) -> Sentiment:
    lowered = text.lower()
    score = 0.0
    score += sum(1 for word in POSITIVE_WORDS if word in lowered)
    score -= sum(1 for word in NEGATIVE_WORDS if word in lowered)
    score += sum(NEUTRAL_WEIGHT for word in NEUTRAL_WORDS if word in lowered)
    if score > 0:
        return Sentiment.POSITIVE
    if score < 0:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def _unique_lower(matches: Sequence[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for match in matches:
        seen.setdefault(match.lower(), None)
    return list(seen)


def extract_entities(text: str) -> Dict[str, List[str]]:
    return {
        "countries": _unique_lower(COUNTRY_PATTERN.findall(text)),
        "companies": _unique_lower(COMPANY_PATTERN.findall(text)),
    }


def extract_key_phrases(text: str) -> List[str]:
    lowered = text.lower()
    return [phrase for phrase in KEY_PHRASES if phrase in lowered]


def assess_source_quality(source_name: str | None) -> Reliability:
    if not source_name:
        return Reliability.UNKNOWN
    lowered = source_name.lower()
    if _contains_any(lowered, HIGH_QUALITY_SOURCES):
        return Reliability.HIGH
    if _contains_any(lowered, MEDIUM_QUALITY_SOURCES):
        return Reliability.MEDIUM
    return Reliability.LOW


def social_signals(text: str) -> Dict[str, str]:
    lowered = text.lower()
    return {
        "urgency": "high" if _contains_any(lowered, URGENCY_TERMS) else "low",
        "credibility": "high" if _contains_any(lowered, CREDIBILITY_TERMS) else "medium",
    }


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------
class ContentAnalyzer:
    """Pure function of its input and the tables above; safe to share."""

    def analyze(self, item: RawItem) -> CandidateEvent | None:
        """Classify *item*; return ``None`` when it is not topically relevant."""
        full = item.combined_text()
        text = full.lower()
        if not is_relevant(text):
            return None

        score = relevance_score(text)
        engagement = engagement_total(item.platform, item.engagement_metrics)
        if item.platform.is_social:
            score = clamp(score + engagement_boost(engagement))

        body = item.body or ""
        words = word_count(body)
        metadata: Dict[str, object] = {
            "wordCount": words,
            "readingTime": math.ceil(words / WORDS_PER_MINUTE),
            "hasFullContent": len(body) > FULL_CONTENT_CHARS,
            "sourceQuality": assess_source_quality(item.source_name).value,
            "platform": item.platform.value,
            "type": "social_media" if item.platform.is_social else "news",
        }
        if item.platform.is_social:
            metadata.update(social_signals(full))
            metadata["socialMetrics"] = dict(item.engagement_metrics)

        return CandidateEvent(
            title=item.title,
            description=item.description,
            summary=create_summary(item.title, item.description),
            full_text=body,
            location=extract_location(text),
            category=determine_category(text),
            severity=determine_severity(text),
            event_date=parse_event_date(item.published_at),
            relevance_score=score,
            tags=extract_tags(text),
            impact=determine_impact(text),
            platform=item.platform,
            engagement=engagement,
            source_reliability=item.source_reliability,
            sentiment=analyze_sentiment(full),
            entities=extract_entities(full),
            keywords=extract_key_phrases(full),
            source_name=item.source_name,
            url=item.url,
            metadata=metadata,
        )

    def analyze_all(
        self,
        items: Iterable[RawItem],
        cancel: CancellationToken | None = None,
    ) -> List[CandidateEvent]:
        """Analyze *items* in order, dropping the irrelevant ones."""
        events: List[CandidateEvent] = []
        for item in items:
            if cancel is not None and cancel.cancelled:
                logger.info("Analysis cancelled after %d events", len(events))
                break
            event = self.analyze(item)
            if event is not None:
                events.append(event)
        logger.info("Processed %d geopolitical events", len(events))
        return events


__all__ = [
    "ContentAnalyzer",
    "CATEGORY_RULES",
    "SEVERITY_RULES",
    "IMPACT_RULES",
    "ENGAGEMENT_FIELDS",
    "clamp",
    "is_relevant",
    "extract_location",
    "determine_category",
    "determine_severity",
    "determine_impact",
    "relevance_score",
    "extract_tags",
    "engagement_total",
    "engagement_boost",
    "create_summary",
    "analyze_sentiment",
    "extract_entities",
    "extract_key_phrases",
    "assess_source_quality",
]
