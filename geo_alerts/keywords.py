"""Fixed vocabularies shared by the feed adapters and the content analyzer.

List order is significant: adapters query with a bounded prefix of these
lists, and the analyzer reports tags and locations in list order.
"""

from __future__ import annotations

from typing import Final, Tuple

GEOPOLITICAL_KEYWORDS: Final[Tuple[str, ...]] = (
    # Traditional terms
    "sanctions", "trade war", "tariffs", "embargo", "political instability",
    "regime change", "election", "protest", "civil unrest", "military conflict",
    "border dispute", "territorial", "diplomatic", "treaty", "alliance",
    "nuclear", "missile", "cyber attack", "hacking", "espionage",
    "supply chain", "logistics", "shipping", "ports", "trade route",
    "currency", "inflation", "economic crisis", "recession", "market crash",
    "regulation", "policy change", "legislation", "compliance", "enforcement",
    # Social media specific terms
    "breaking", "urgent", "alert", "crisis", "emergency", "developing",
    "just in", "reports", "sources say", "exclusive", "confirmed",
    "denied", "statement", "announcement", "declaration", "warning",
    "threat", "escalation", "tension", "conflict", "dispute",
    "negotiation", "talks", "meeting", "summit", "conference",
)

GEOPOLITICAL_HASHTAGS: Final[Tuple[str, ...]] = (
    "#geopolitics", "#breaking", "#news", "#politics", "#worldnews",
    "#international", "#diplomacy", "#trade", "#economy", "#security",
    "#cybersecurity", "#supplychain", "#sanctions", "#tradewar",
    "#china", "#russia", "#ukraine", "#middleeast", "#asia",
    "#europe", "#america", "#global", "#crisis", "#alert",
)

REDDIT_SUBREDDITS: Final[Tuple[str, ...]] = (
    "worldnews", "geopolitics", "politics", "news", "intelligence",
    "supplychain", "cybersecurity", "business", "economics",
    "china", "russia", "ukraine", "middleeast", "europe",
)

GEOPOLITICAL_REGIONS: Final[Tuple[str, ...]] = (
    "China", "Russia", "Ukraine", "Iran", "North Korea", "Venezuela",
    "Cuba", "Syria", "Yemen", "Libya", "Sudan", "Myanmar", "Belarus",
    "Taiwan", "Hong Kong", "South China Sea", "East China Sea",
    "Strait of Hormuz", "Black Sea", "Baltic Sea", "Arctic",
)

__all__ = [
    "GEOPOLITICAL_KEYWORDS",
    "GEOPOLITICAL_HASHTAGS",
    "REDDIT_SUBREDDITS",
    "GEOPOLITICAL_REGIONS",
]
