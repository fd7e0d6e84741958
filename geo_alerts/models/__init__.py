"""Domain models used across the project."""

from .event import (  # noqa: F401
    CandidateEvent,
    Category,
    Impact,
    PersistedEvent,
    Platform,
    RawItem,
    Reliability,
    Sentiment,
    Severity,
)
from .recipient import (  # noqa: F401
    Frequency,
    NotificationPreferences,
    NotificationRecord,
    Recipient,
    ScoreResult,
)

__all__ = [
    "CandidateEvent",
    "Category",
    "Impact",
    "PersistedEvent",
    "Platform",
    "RawItem",
    "Reliability",
    "Sentiment",
    "Severity",
    "Frequency",
    "NotificationPreferences",
    "NotificationRecord",
    "Recipient",
    "ScoreResult",
]
