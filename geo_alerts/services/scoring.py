"""Recipient-specific relevance scoring.

Two scorers share one interface: :class:`ProfileScorer` is deterministic and
matches an event against the recipient's business units, areas of concern
and regions; :class:`LLMScorer` asks an OpenAI chat model for a judgment and
falls back to the profile scorer whenever the model cannot be used.
"""

from __future__ import annotations

import abc
import logging
from typing import Any, List, Tuple

from ..clients.openai_client import SCORING_TIMEOUT_SECONDS, get_openai
from ..config import OPENAI_SCORING_MODEL
from ..models import CandidateEvent, Recipient, ScoreResult
from ..utils import extract_structured_json
from .analysis import clamp

logger = logging.getLogger(__name__)

BUSINESS_UNIT_WEIGHT: float = 0.3
CONCERN_WEIGHT: float = 0.3
REGION_WEIGHT: float = 0.2
TEXT_WEIGHT: float = 0.2
MIN_WORD_LENGTH: int = 4
MAX_RATIONALE_FACTORS: int = 3

# (business unit term, event category term)
BUSINESS_UNIT_ALIASES: Tuple[Tuple[str, str], ...] = (
    ("semiconductor", "technology"),
    ("supply chain", "supply chain"),
    ("cloud", "technology"),
    ("ai", "technology"),
)

# (area of concern term, event category term)
CONCERN_ALIASES: Tuple[Tuple[str, str], ...] = (
    ("trade disputes", "trade"),
    ("sanctions", "sanctions"),
    ("supply chain disruptions", "supply chain"),
    ("regulatory changes", "regulation"),
    ("cybersecurity threats", "cybersecurity"),
)

Factor = Tuple[float, str]


class RelevanceScorer(abc.ABC):
    """Scores how relevant an event is to one recipient."""

    @abc.abstractmethod
    def score(self, recipient: Recipient, event: CandidateEvent) -> ScoreResult:
        """Return a score in ``[0, 1]`` and a human-readable rationale."""


def _event_categories(event: CandidateEvent) -> List[str]:
    return [event.category.value.lower(), *(tag.lower() for tag in event.tags)]


def _event_regions(event: CandidateEvent) -> List[str]:
    return [event.location.lower(), *(c.lower() for c in event.entities.get("countries", []))]


def _overlaps(term: str, categories: List[str], aliases: Tuple[Tuple[str, str], ...]) -> bool:
    for category in categories:
        if category in term or term in category:
            return True
        if any(a in term and b in category for a, b in aliases):
            return True
    return False


def generate_rationale(factors: List[Factor], score: float) -> str:
    """Summarise the strongest scoring factors in one sentence."""
    if not factors:
        return "No significant relevance factors identified"

    ranked = sorted(factors, key=lambda f: f[0], reverse=True)
    top = ranked[:MAX_RATIONALE_FACTORS]
    rationale = f"Relevance score: {score * 100:.1f}%. Top factors: " + "; ".join(d for _, d in top)
    if len(factors) > MAX_RATIONALE_FACTORS:
        rationale += f" (and {len(factors) - MAX_RATIONALE_FACTORS} additional factors)"
    return rationale


class ProfileScorer(RelevanceScorer):
    """Weighted overlap between a recipient profile and an event.

    Each component contributes only when the profile has data for it, and
    the result is normalised by the weight of the contributing components.
    """

    def score(self, recipient: Recipient, event: CandidateEvent) -> ScoreResult:
        categories = _event_categories(event)
        total = 0.0
        total_weight = 0.0
        factors: List[Factor] = []

        if recipient.business_units:
            matched = [
                unit
                for unit in recipient.business_units
                if _overlaps(unit.lower(), categories, BUSINESS_UNIT_ALIASES)
            ]
            contribution = len(matched) / len(recipient.business_units) * BUSINESS_UNIT_WEIGHT
            total += contribution
            total_weight += BUSINESS_UNIT_WEIGHT
            if matched:
                factors.append((contribution, f"Business unit match: {', '.join(matched)}"))

        if recipient.areas_of_concern:
            matched = [
                concern
                for concern in recipient.areas_of_concern
                if _overlaps(concern.lower(), categories, CONCERN_ALIASES)
            ]
            contribution = len(matched) / len(recipient.areas_of_concern) * CONCERN_WEIGHT
            total += contribution
            total_weight += CONCERN_WEIGHT
            if matched:
                factors.append((contribution, f"Area of concern match: {', '.join(matched)}"))

        if recipient.regions:
            regions = _event_regions(event)
            matched = [
                region
                for region in recipient.regions
                if any(region.lower() in event_region for event_region in regions)
            ]
            contribution = len(matched) / len(recipient.regions) * REGION_WEIGHT
            total += contribution
            total_weight += REGION_WEIGHT
            if matched:
                factors.append((contribution, f"Regional exposure: {', '.join(matched)}"))

        if event.title and event.description:
            event_text = f"{event.title} {event.description}".lower()
            profile_words = (
                " ".join([*recipient.business_units, *recipient.areas_of_concern]).lower().split()
            )
            if profile_words:
                matched = [
                    word for word in profile_words if len(word) >= MIN_WORD_LENGTH and word in event_text
                ]
                contribution = len(matched) / len(profile_words) * TEXT_WEIGHT
                total += contribution
                total_weight += TEXT_WEIGHT
                if matched:
                    factors.append((contribution, f"Content mentions: {', '.join(dict.fromkeys(matched))}"))

        score = clamp(total / total_weight) if total_weight > 0 else 0.0
        return ScoreResult(score=score, rationale=generate_rationale(factors, score))


SYSTEM_PROMPT = (
    "You are an expert geopolitical risk analyst specializing in supply chain, cybersecurity,"
    " regulatory, and geopolitical risk assessment. Your job is to analyze news events and"
    " determine their relevance to specific business profiles."
)


def build_prompt(recipient: Recipient, event: CandidateEvent) -> str:
    categories = [event.category.value, *event.tags]
    return f"""ANALYZE THIS EVENT FOR BUSINESS RELEVANCE

USER PROFILE:
- Name: {recipient.name}
- Company: {recipient.company}
- Industry: {recipient.industry}
- Business Units: {', '.join(recipient.business_units)}
- Areas of Concern: {', '.join(recipient.areas_of_concern)}
- Regions of Interest: {', '.join(recipient.regions)}

EVENT TO ANALYZE:
- Title: {event.title}
- Description: {event.description}
- Categories: {', '.join(categories)}
- Location: {event.location}
- Severity: {event.severity.value}
- Source: {event.source_name}

Score relevance from 0.0 (completely irrelevant) to 1.0 (highly relevant). Be strict:
entertainment, sports or unrelated business news scores 0.0-0.2; only events that could
affect the user's operations, supply chain, cybersecurity, compliance or geopolitical
risk exposure score 0.7-1.0.

RESPOND IN THIS EXACT JSON FORMAT:
{{"relevanceScore": 0.0, "reasoning": "...", "keyFactors": ["factor1", "factor2"]}}
"""


class LLMScorer(RelevanceScorer):
    """OpenAI-backed scorer with a deterministic fallback."""

    def __init__(
        self,
        client: Any = None,
        *,
        model: str = OPENAI_SCORING_MODEL,
        fallback: RelevanceScorer | None = None,
        timeout: float = SCORING_TIMEOUT_SECONDS,
    ) -> None:
        self._client = client
        self.model = model
        self.fallback = fallback or ProfileScorer()
        self.timeout = timeout

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = get_openai()
        return self._client

    def score(self, recipient: Recipient, event: CandidateEvent) -> ScoreResult:
        try:
            resp = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_prompt(recipient, event)},
                ],
                temperature=0.1,
                max_tokens=500,
                timeout=self.timeout,
            )
            payload = extract_structured_json(resp.choices[0].message.content)
            score = clamp(float(payload.get("relevanceScore", 0.0)))
        except Exception as exc:  # missing key, network, malformed reply
            logger.warning("LLM scoring failed for '%s': %s, falling back to profile scoring", event.title, exc)
            return self.fallback.score(recipient, event)

        rationale = str(payload.get("reasoning") or "No reasoning provided")
        key_factors = payload.get("keyFactors")
        if isinstance(key_factors, list) and key_factors:
            rationale += " Key factors: " + ", ".join(str(f) for f in key_factors)
        return ScoreResult(score=score, rationale=rationale)


__all__ = [
    "RelevanceScorer",
    "ProfileScorer",
    "LLMScorer",
    "generate_rationale",
    "build_prompt",
]
