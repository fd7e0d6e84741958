"""End-to-end fetch, analysis, deduplication and notification pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from ..logging_config import logging as _  # noqa: F401  # ensure config applied early
from ..models import CandidateEvent, PersistedEvent, RawItem
from ..services.aggregation import Aggregator
from ..services.analysis import ContentAnalyzer
from ..services.deduplication import DeduplicatingPersister
from ..services.notifications import NotificationDispatcher, SMTPTransport
from ..services.scoring import LLMScorer
from ..services.storage import MongoEventStore, MongoRecipientStore
from ..sources import CancellationToken, default_adapters

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CycleSummary:
    """Per-stage counts for one cycle, reported even on partial failure."""

    fetched: int = 0
    analyzed: int = 0
    not_relevant: int = 0
    persisted: int = 0
    duplicates: int = 0
    invalid: int = 0
    persistence_failures: int = 0
    notified: int = 0
    notifications_skipped: int = 0
    notification_failures: int = 0
    cancelled: bool = False


@dataclass(slots=True)
class CycleResult:
    events: List[PersistedEvent] = field(default_factory=list)
    summary: CycleSummary = field(default_factory=CycleSummary)

    @property
    def events_processed(self) -> int:
        return len(self.events)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "eventsProcessed": self.events_processed,
            "events": [
                {"id": event.id, **event.event.to_document()} for event in self.events
            ],
        }


class EventPipeline:
    """Trigger surface for one deployment of the pipeline.

    Every operation re-runs the dedup check, so invoking a cycle again with
    the same feed output stores nothing new.
    """

    def __init__(
        self,
        aggregator: Aggregator,
        analyzer: ContentAnalyzer,
        persister: DeduplicatingPersister,
        dispatcher: NotificationDispatcher,
    ) -> None:
        self.aggregator = aggregator
        self.analyzer = analyzer
        self.persister = persister
        self.dispatcher = dispatcher

    def run_fetch_only(self, group: str, cancel: CancellationToken | None = None) -> List[RawItem]:
        return self.aggregator.fetch_group(group, cancel)

    def run_analyze_only(self, items: Sequence[RawItem]) -> List[CandidateEvent]:
        return self.analyzer.analyze_all(items)

    def run_full_cycle(self, cancel: CancellationToken | None = None) -> CycleResult:
        """Run fetch, analyze, persist and notify once.

        Raises :class:`~geo_alerts.exceptions.FatalPipelineFailure` when the
        event store or the recipient store cannot be reached.
        """
        logger.info("Starting geopolitical event cycle")
        result = CycleResult()
        summary = result.summary

        # 1. Fetch from every feed
        items = self.aggregator.run(cancel)
        summary.fetched = len(items)

        # 2. Analyze
        candidates: List[CandidateEvent] = []
        for item in items:
            if _cancelled(cancel):
                break
            summary.analyzed += 1
            candidate = self.analyzer.analyze(item)
            if candidate is None:
                summary.not_relevant += 1
            else:
                candidates.append(candidate)

        # 3. Deduplicate and store
        if candidates and not _cancelled(cancel):
            report = self.persister.persist_batch(candidates, cancel)
            result.events = report.persisted
            summary.persisted = len(report.persisted)
            summary.duplicates = report.duplicates
            summary.invalid = report.invalid
            summary.persistence_failures = report.failures

        # 4. Notify
        if result.events and not _cancelled(cancel):
            dispatch = self.dispatcher.dispatch(result.events, cancel)
            summary.notified = dispatch.sent
            summary.notifications_skipped = dispatch.skipped
            summary.notification_failures = dispatch.failed

        summary.cancelled = _cancelled(cancel)
        _log_stats(summary)
        return result


def _cancelled(cancel: CancellationToken | None) -> bool:
    return cancel is not None and cancel.cancelled


def _log_stats(summary: CycleSummary) -> None:
    logger.info("=== Geopolitical Event Cycle Statistics ===")
    logger.info("Items fetched: %d", summary.fetched)
    logger.info("Items analyzed: %d", summary.analyzed)
    logger.info("Not relevant: %d", summary.not_relevant)
    logger.info("Events stored in database: %d", summary.persisted)
    logger.info("Duplicate events: %d", summary.duplicates)
    logger.info("Invalid candidates: %d", summary.invalid)
    logger.info("Persistence failures: %d", summary.persistence_failures)
    logger.info("Notifications sent: %d", summary.notified)
    logger.info("Notification failures: %d", summary.notification_failures)
    if summary.cancelled:
        logger.info("Cycle was cancelled before completion")
    logger.info("===========================================")


def build_default_pipeline() -> EventPipeline:
    """Wire the production components from configuration."""
    recipients = MongoRecipientStore()
    return EventPipeline(
        aggregator=Aggregator(default_adapters()),
        analyzer=ContentAnalyzer(),
        persister=DeduplicatingPersister(MongoEventStore()),
        dispatcher=NotificationDispatcher(recipients, LLMScorer(), SMTPTransport()),
    )


def run() -> CycleResult:
    """Execute one full cycle with the default components."""
    return build_default_pipeline().run_full_cycle()


__all__ = ["EventPipeline", "CycleResult", "CycleSummary", "build_default_pipeline", "run"]
