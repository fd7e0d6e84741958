"""Service layer modules grouping business logic by concern.

This module provides convenience re-exports so that callers can simply do
for example `from geo_alerts.services import ContentAnalyzer` without having
to know which underlying module provides the symbol.
"""

from .aggregation import Aggregator  # noqa: F401
from .analysis import ContentAnalyzer  # noqa: F401
from .deduplication import DeduplicatingPersister, PersistReport  # noqa: F401
from .notifications import (  # noqa: F401
    DispatchReport,
    NotificationDispatcher,
    NotificationTransport,
    SMTPTransport,
)
from .scoring import LLMScorer, ProfileScorer, RelevanceScorer  # noqa: F401
from .storage import (  # noqa: F401
    EventStore,
    InMemoryEventStore,
    InMemoryRecipientStore,
    MongoEventStore,
    MongoRecipientStore,
    RecipientStore,
)

__all__ = [
    "Aggregator",
    "ContentAnalyzer",
    "DeduplicatingPersister",
    "PersistReport",
    "DispatchReport",
    "NotificationDispatcher",
    "NotificationTransport",
    "SMTPTransport",
    "LLMScorer",
    "ProfileScorer",
    "RelevanceScorer",
    "EventStore",
    "InMemoryEventStore",
    "InMemoryRecipientStore",
    "MongoEventStore",
    "MongoRecipientStore",
    "RecipientStore",
]
