"""Recipient-side domain models used by the notification dispatcher."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Tuple


class Frequency(str, Enum):
    IMMEDIATE = "immediate"
    DAILY = "daily"
    WEEKLY = "weekly"


@dataclass(frozen=True, slots=True)
class NotificationPreferences:
    """Per-recipient delivery settings.

    ``frequency`` is kept as the raw stored string: values outside
    :class:`Frequency` are legal and mean "never send".
    """

    email_enabled: bool = True
    frequency: str | None = Frequency.DAILY.value


@dataclass(frozen=True, slots=True)
class Recipient:
    """A notification target, read-only to the pipeline."""

    id: str
    name: str
    email: str
    preferences: NotificationPreferences = field(default_factory=NotificationPreferences)
    company: str = ""
    industry: str = ""
    business_units: Tuple[str, ...] = ()
    areas_of_concern: Tuple[str, ...] = ()
    regions: Tuple[str, ...] = ()

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Recipient":
        """Build a recipient from a stored user-profile document."""
        prefs = doc.get("notificationPreferences") or {}
        email_enabled = prefs.get("emailEnabled", prefs.get("email", True))
        return cls(
            id=str(doc["_id"]),
            name=doc.get("name", ""),
            email=doc.get("email", ""),
            preferences=NotificationPreferences(
                email_enabled=bool(email_enabled),
                frequency=prefs.get("frequency", Frequency.DAILY.value),
            ),
            company=doc.get("company", ""),
            industry=doc.get("industry", ""),
            business_units=tuple(
                unit["name"] for unit in doc.get("businessUnits", []) if unit.get("name")
            ),
            areas_of_concern=tuple(
                concern["category"]
                for concern in doc.get("areasOfConcern", [])
                if concern.get("category")
            ),
            regions=tuple(doc.get("regions", [])),
        )


@dataclass(frozen=True, slots=True)
class NotificationRecord:
    """Append-only fact that a recipient was notified about an event."""

    recipient_id: str
    event_id: str
    score_at_send: float
    sent_at: datetime
    message_id: str | None = None


@dataclass(frozen=True, slots=True)
class ScoreResult:
    """Recipient-specific relevance as returned by a scorer."""

    score: float
    rationale: str


__all__ = [
    "Frequency",
    "NotificationPreferences",
    "Recipient",
    "NotificationRecord",
    "ScoreResult",
]
