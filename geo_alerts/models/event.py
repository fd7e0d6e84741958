"""Event-side domain models: fetched items, candidate events and stored events."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping


class Platform(str, Enum):
    """Kind of feed an item was fetched from."""

    NEWS = "news"
    TWITTER = "twitter"
    REDDIT = "reddit"
    LINKEDIN = "linkedin"

    @property
    def is_social(self) -> bool:
        return self is not Platform.NEWS


class Reliability(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNKNOWN = "unknown"


class Category(str, Enum):
    SANCTIONS = "Sanctions"
    TRADE_DISPUTES = "Trade Disputes"
    POLITICAL_INSTABILITY = "Political Instability"
    CIVIL_UNREST = "Civil Unrest"
    MILITARY_CONFLICT = "Military Conflict"
    CYBERSECURITY_THREATS = "Cybersecurity Threats"
    SUPPLY_CHAIN_DISRUPTIONS = "Supply Chain Disruptions"
    CURRENCY_FLUCTUATIONS = "Currency Fluctuations"
    REGULATORY_CHANGES = "Regulatory Changes"
    GENERAL = "General"


class Severity(str, Enum):
    """Ordered severity scale (``low < medium < high < critical``)."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    # str comparison would order these alphabetically
    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_RANK = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


class Impact(str, Enum):
    LOCAL = "Local"
    NATIONAL = "National"
    REGIONAL = "Regional"
    GLOBAL = "Global"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


@dataclass(frozen=True, slots=True)
class RawItem:
    """One unit of content fetched from an external feed.

    ``published_at`` is kept exactly as the provider sent it; parsing happens
    in the analyzer so that a malformed timestamp never fails a fetch.
    ``engagement_metrics`` is only populated for social platforms.
    """

    title: str
    url: str
    source_name: str
    platform: Platform = Platform.NEWS
    description: str = ""
    body: str = ""
    published_at: str | None = None
    source_reliability: Reliability = Reliability.MEDIUM
    engagement_metrics: Mapping[str, int] = field(default_factory=dict)
    author: str | None = None
    external_id: str | None = None

    def __post_init__(self) -> None:
        if self.engagement_metrics and not self.platform.is_social:
            raise ValueError(
                f"engagement metrics are only valid for social platforms, got {self.platform.value}"
            )

    def combined_text(self) -> str:
        """Return ``title + description + body`` as used for classification."""
        return f"{self.title} {self.description} {self.body}"


@dataclass(slots=True)
class CandidateEvent:
    """The analyzer's structured judgment that an item is a geopolitical event."""

    title: str
    description: str
    summary: str
    full_text: str
    location: str
    category: Category
    severity: Severity
    event_date: datetime | None
    relevance_score: float
    tags: List[str]
    impact: Impact
    platform: Platform
    engagement: int
    source_reliability: Reliability
    sentiment: Sentiment
    entities: Dict[str, List[str]]
    keywords: List[str] = field(default_factory=list)
    source_name: str = ""
    url: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_document(self) -> Dict[str, Any]:
        """Return a plain ``dict`` suitable for a MongoDB insert."""
        return {
            "title": self.title,
            "description": self.description,
            "summary": self.summary,
            "content": self.full_text,
            "location": self.location,
            "category": self.category.value,
            "severity": self.severity.value,
            "eventDate": self.event_date,
            "relevanceScore": self.relevance_score,
            "tags": list(self.tags),
            "impact": self.impact.value,
            "platform": self.platform.value,
            "engagement": self.engagement,
            "source": {
                "name": self.source_name,
                "url": self.url,
                "reliability": self.source_reliability.value,
            },
            "sentiment": self.sentiment.value,
            "entities": {key: list(values) for key, values in self.entities.items()},
            "keywords": list(self.keywords),
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True, slots=True)
class PersistedEvent:
    """A candidate that passed the dedup check, plus its store identity."""

    id: str
    stored_at: datetime
    event: CandidateEvent

    @property
    def title(self) -> str:
        return self.event.title


__all__ = [
    "Platform",
    "Reliability",
    "Category",
    "Severity",
    "Impact",
    "Sentiment",
    "RawItem",
    "CandidateEvent",
    "PersistedEvent",
]
