"""Duplicate detection by exact title within a time window around the event date."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Sequence, Tuple

from ..config import DEDUP_WINDOW_HOURS
from ..exceptions import (
    DuplicateEvent,
    FatalPipelineFailure,
    InvalidCandidate,
    PersistenceFailure,
    StoreUnavailable,
)
from ..models import CandidateEvent, PersistedEvent
from ..sources.base import CancellationToken
from .storage import EventStore

logger = logging.getLogger(__name__)

PERSISTED = "persisted"
DUPLICATE = "duplicate"
INVALID = "invalid"
FAILED = "failed"

_LOCK_STRIPES = 64


@dataclass(slots=True)
class PersistReport:
    """Outcome of persisting one batch of candidates."""

    persisted: List[PersistedEvent] = field(default_factory=list)
    duplicates: int = 0
    invalid: int = 0
    failures: int = 0
    cancelled: bool = False


class DeduplicatingPersister:
    """Write candidates that have no same-titled event within the window.

    The lookup and the insert for one title run under a striped lock so two
    threads of this process cannot interleave on the same title. Stores add
    their own uniqueness guarantee for writers in other processes and report
    a lost race as :class:`DuplicateEvent`.
    """

    def __init__(
        self,
        store: EventStore,
        *,
        window: timedelta = timedelta(hours=DEDUP_WINDOW_HOURS),
    ) -> None:
        self.store = store
        self.window = window
        self._locks = [threading.Lock() for _ in range(_LOCK_STRIPES)]

    def _lock_for(self, title: str) -> threading.Lock:
        return self._locks[hash(title) % _LOCK_STRIPES]

    @staticmethod
    def _validate(event: CandidateEvent) -> datetime:
        if not event.title or not event.title.strip():
            raise InvalidCandidate("event has an empty title")
        event_date = event.event_date
        if not isinstance(event_date, datetime):
            raise InvalidCandidate(f"event {event.title!r} has no valid event date")
        if event_date.tzinfo is None:
            event_date = event_date.replace(tzinfo=timezone.utc)
            event.event_date = event_date
        return event_date

    def _persist(self, event: CandidateEvent) -> Tuple[str, PersistedEvent | None]:
        try:
            event_date = self._validate(event)
        except InvalidCandidate as exc:
            logger.warning("Skipping invalid candidate: %s", exc)
            return INVALID, None

        start, end = event_date - self.window, event_date + self.window
        try:
            with self._lock_for(event.title):
                existing = self.store.find_similar(event.title, start, end)
                if existing is not None:
                    logger.info("Event already exists: %s", event.title)
                    return DUPLICATE, None
                persisted = self.store.insert(event)
        except DuplicateEvent:
            logger.info("Event already exists (store constraint): %s", event.title)
            return DUPLICATE, None
        except PersistenceFailure as exc:
            logger.error("Error saving event '%s': %s", event.title, exc)
            return FAILED, None
        except StoreUnavailable as exc:
            raise FatalPipelineFailure(f"event store unavailable: {exc}") from exc

        logger.info("Saved new event: %s", event.title)
        return PERSISTED, persisted

    def persist_if_new(self, event: CandidateEvent) -> PersistedEvent | None:
        """Persist *event* unless it is invalid or a duplicate; ``None`` means skipped.

        Raises :class:`FatalPipelineFailure` only when the store is unreachable.
        """
        _, persisted = self._persist(event)
        return persisted

    def persist_batch(
        self,
        events: Sequence[CandidateEvent],
        cancel: CancellationToken | None = None,
    ) -> PersistReport:
        """Persist *events* in order and return the newly written subset."""
        report = PersistReport()
        for event in events:
            if cancel is not None and cancel.cancelled:
                logger.info("Cycle cancelled, stopping persistence")
                report.cancelled = True
                break
            outcome, persisted = self._persist(event)
            if outcome == PERSISTED:
                report.persisted.append(persisted)
            elif outcome == DUPLICATE:
                report.duplicates += 1
            elif outcome == INVALID:
                report.invalid += 1
            else:
                report.failures += 1

        logger.info(
            "Persisted %d of %d candidates (%d duplicates, %d invalid, %d failed)",
            len(report.persisted),
            len(events),
            report.duplicates,
            report.invalid,
            report.failures,
        )
        return report


__all__ = ["DeduplicatingPersister", "PersistReport"]
