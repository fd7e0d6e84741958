"""Persistence layer: event store and recipient store.

Two implementations of each interface are provided: MongoDB for
production and a lock-protected in-memory variant for tests and dry runs.
Stores translate backend errors into the package's error taxonomy:
:class:`StoreUnavailable` when the backend cannot be reached,
:class:`DuplicateEvent` when a uniqueness rule rejects an insert and
:class:`PersistenceFailure` for any other failed write.
"""

from __future__ import annotations

import abc
import logging
import threading
import uuid
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List

from pymongo import ASCENDING, DESCENDING
from pymongo.collection import Collection
from pymongo.errors import ConnectionFailure, DuplicateKeyError, PyMongoError

from ..clients.mongodb_client import get_database
from ..config import DEDUP_WINDOW_HOURS
from ..exceptions import DuplicateEvent, PersistenceFailure, StoreUnavailable
from ..models import (
    CandidateEvent,
    Category,
    Impact,
    NotificationRecord,
    PersistedEvent,
    Platform,
    Recipient,
    Reliability,
    Sentiment,
    Severity,
)
from ..utils import day_bucket, get_current_timestamp

logger = logging.getLogger(__name__)

EVENTS_COLLECTION: str = "geopoliticalevents"
RECIPIENTS_COLLECTION: str = "userprofiles"
NOTIFICATIONS_COLLECTION: str = "notifications"

# Duplicate lookups only need identity and date.
EXISTENCE_PROJECTION: Dict[str, int] = {"_id": 1, "title": 1, "eventDate": 1, "storedAt": 1}

Now = Callable[[], datetime]


# ---------------------------------------------------------------------------
# Interfaces
# ---------------------------------------------------------------------------
class EventStore(abc.ABC):
    @abc.abstractmethod
    def find_similar(self, title: str, start: datetime, end: datetime) -> PersistedEvent | None:
        """Return an event with exactly *title* dated within ``[start, end]``."""

    @abc.abstractmethod
    def insert(self, event: CandidateEvent) -> PersistedEvent:
        """Write *event* and return it with its assigned identity."""


class RecipientStore(abc.ABC):
    @abc.abstractmethod
    def list_all(self) -> List[Recipient]:
        """Return every notification target."""

    @abc.abstractmethod
    def last_notification_time(self, recipient_id: str) -> datetime | None:
        """Return when *recipient_id* was last notified, if ever."""

    @abc.abstractmethod
    def record_notification(self, record: NotificationRecord) -> None:
        """Append *record* to the notification log."""


# ---------------------------------------------------------------------------
# In-memory implementations
# ---------------------------------------------------------------------------
class InMemoryEventStore(EventStore):
    """Event store whose insert is a conditional write.

    The duplicate check and the append happen under one lock, so concurrent
    writers can never both insert the same title within the dedup window.
    """

    def __init__(
        self,
        *,
        window: timedelta = timedelta(hours=DEDUP_WINDOW_HOURS),
        now: Now = get_current_timestamp,
    ) -> None:
        self.window = window
        self._now = now
        self._lock = threading.Lock()
        self._events: List[PersistedEvent] = []

    @property
    def events(self) -> List[PersistedEvent]:
        with self._lock:
            return list(self._events)

    def _find(self, title: str, start: datetime, end: datetime) -> PersistedEvent | None:
        for stored in self._events:
            event_date = stored.event.event_date
            if stored.event.title == title and event_date is not None and start <= event_date <= end:
                return stored
        return None

    def find_similar(self, title: str, start: datetime, end: datetime) -> PersistedEvent | None:
        with self._lock:
            return self._find(title, start, end)

    def insert(self, event: CandidateEvent) -> PersistedEvent:
        if event.event_date is None:
            raise PersistenceFailure(f"event {event.title!r} has no event date")
        with self._lock:
            if self._find(event.title, event.event_date - self.window, event.event_date + self.window):
                raise DuplicateEvent(event.title)
            persisted = PersistedEvent(id=uuid.uuid4().hex, stored_at=self._now(), event=event)
            self._events.append(persisted)
            return persisted


class InMemoryRecipientStore(RecipientStore):
    def __init__(self, recipients: Iterable[Recipient] = ()) -> None:
        self._lock = threading.Lock()
        self._recipients: List[Recipient] = list(recipients)
        self._records: List[NotificationRecord] = []

    @property
    def records(self) -> List[NotificationRecord]:
        with self._lock:
            return list(self._records)

    def add(self, recipient: Recipient) -> None:
        with self._lock:
            self._recipients.append(recipient)

    def list_all(self) -> List[Recipient]:
        with self._lock:
            return list(self._recipients)

    def last_notification_time(self, recipient_id: str) -> datetime | None:
        with self._lock:
            times = [r.sent_at for r in self._records if r.recipient_id == recipient_id]
        return max(times) if times else None

    def record_notification(self, record: NotificationRecord) -> None:
        with self._lock:
            self._records.append(record)


# ---------------------------------------------------------------------------
# MongoDB implementations
# ---------------------------------------------------------------------------
def _enum_or(enum_cls: Any, value: Any, default: Any) -> Any:
    # documents written by other services may use free-form or nested values
    try:
        return enum_cls(value)
    except (TypeError, ValueError):
        return default


def _number_or(cast: Callable[[Any], Any], value: Any, default: Any) -> Any:
    try:
        return cast(value)
    except (TypeError, ValueError):
        return default


def _event_from_document(doc: Dict[str, Any]) -> PersistedEvent:
    """Build a :class:`PersistedEvent` from a stored document, tolerating partial docs."""
    source = doc.get("source") if isinstance(doc.get("source"), dict) else {}
    entities = doc.get("entities") if isinstance(doc.get("entities"), dict) else {}
    metadata = doc.get("metadata") if isinstance(doc.get("metadata"), dict) else {}
    event = CandidateEvent(
        title=str(doc.get("title") or ""),
        description=str(doc.get("description") or ""),
        summary=str(doc.get("summary") or ""),
        full_text=str(doc.get("content") or ""),
        location=str(doc.get("location") or "Global"),
        category=_enum_or(Category, doc.get("category"), Category.GENERAL),
        severity=_enum_or(Severity, doc.get("severity"), Severity.LOW),
        event_date=doc.get("eventDate"),
        relevance_score=_number_or(float, doc.get("relevanceScore"), 0.0),
        tags=list(doc.get("tags") or []),
        impact=_enum_or(Impact, doc.get("impact"), Impact.LOCAL),
        platform=_enum_or(Platform, doc.get("platform"), Platform.NEWS),
        engagement=_number_or(int, doc.get("engagement"), 0),
        source_reliability=_enum_or(Reliability, source.get("reliability"), Reliability.UNKNOWN),
        sentiment=_enum_or(Sentiment, doc.get("sentiment"), Sentiment.NEUTRAL),
        entities={key: list(values) for key, values in entities.items() if isinstance(values, list)},
        keywords=list(doc.get("keywords") or []),
        source_name=str(source.get("name") or ""),
        url=str(source.get("url") or ""),
        metadata=dict(metadata),
    )
    return PersistedEvent(id=str(doc["_id"]), stored_at=doc.get("storedAt"), event=event)


class MongoEventStore(EventStore):
    """MongoDB-backed event store.

    A unique index on ``(title, dayBucket)`` backs up the window query so
    that two pipelines racing on the same event cannot both insert it; the
    losing insert surfaces as :class:`DuplicateEvent`.
    """

    def __init__(self, collection: Collection | None = None, *, now: Now = get_current_timestamp) -> None:
        self._collection = collection
        self._now = now
        self._indexes_ready = False

    @property
    def collection(self) -> Collection:
        if self._collection is None:
            self._collection = get_database()[EVENTS_COLLECTION]
        return self._collection

    def ensure_indexes(self) -> None:
        if self._indexes_ready:
            return
        try:
            self.collection.create_index(
                [("title", ASCENDING), ("dayBucket", ASCENDING)],
                unique=True,
                name="title_day_unique",
                # older documents have no dayBucket
                partialFilterExpression={"dayBucket": {"$exists": True}},
            )
            self.collection.create_index([("eventDate", DESCENDING)], name="event_date_desc")
        except ConnectionFailure as exc:
            raise StoreUnavailable(f"MongoDB unreachable: {exc}") from exc
        except PyMongoError as exc:
            raise PersistenceFailure(f"could not create event indexes: {exc}") from exc
        self._indexes_ready = True

    def find_similar(self, title: str, start: datetime, end: datetime) -> PersistedEvent | None:
        self.ensure_indexes()
        try:
            doc = self.collection.find_one(
                {"title": title, "eventDate": {"$gte": start, "$lte": end}},
                projection=EXISTENCE_PROJECTION,
            )
        except ConnectionFailure as exc:
            raise StoreUnavailable(f"MongoDB unreachable: {exc}") from exc
        except PyMongoError as exc:
            raise PersistenceFailure(f"duplicate lookup failed for {title!r}: {exc}") from exc
        if not doc:
            return None
        try:
            return _event_from_document(doc)
        except (KeyError, TypeError, ValueError) as exc:
            raise PersistenceFailure(f"unreadable event document for {title!r}: {exc}") from exc

    def insert(self, event: CandidateEvent) -> PersistedEvent:
        if event.event_date is None:
            raise PersistenceFailure(f"event {event.title!r} has no event date")
        self.ensure_indexes()

        stored_at = self._now()
        doc = event.to_document()
        doc["dayBucket"] = day_bucket(event.event_date)
        doc["storedAt"] = stored_at
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError as exc:
            raise DuplicateEvent(event.title) from exc
        except ConnectionFailure as exc:
            raise StoreUnavailable(f"MongoDB unreachable: {exc}") from exc
        except PyMongoError as exc:
            raise PersistenceFailure(f"insert failed for {event.title!r}: {exc}") from exc

        logger.info("Stored event to MongoDB with _id=%s", result.inserted_id)
        return PersistedEvent(id=str(result.inserted_id), stored_at=stored_at, event=event)


class MongoRecipientStore(RecipientStore):
    """Reads user profiles and keeps the notification log in MongoDB."""

    def __init__(
        self,
        recipients: Collection | None = None,
        notifications: Collection | None = None,
    ) -> None:
        self._recipients = recipients
        self._notifications = notifications

    @property
    def recipients(self) -> Collection:
        if self._recipients is None:
            self._recipients = get_database()[RECIPIENTS_COLLECTION]
        return self._recipients

    @property
    def notifications(self) -> Collection:
        if self._notifications is None:
            self._notifications = get_database()[NOTIFICATIONS_COLLECTION]
        return self._notifications

    def list_all(self) -> List[Recipient]:
        try:
            docs = list(self.recipients.find({}))
        except PyMongoError as exc:
            raise StoreUnavailable(f"cannot list recipients: {exc}") from exc
        return [Recipient.from_document(doc) for doc in docs]

    def last_notification_time(self, recipient_id: str) -> datetime | None:
        try:
            doc = self.notifications.find_one(
                {"recipientId": recipient_id},
                sort=[("sentAt", DESCENDING)],
            )
        except PyMongoError as exc:
            raise StoreUnavailable(f"cannot read notification log: {exc}") from exc
        return doc["sentAt"] if doc else None

    def record_notification(self, record: NotificationRecord) -> None:
        try:
            self.notifications.insert_one(
                {
                    "recipientId": record.recipient_id,
                    "eventId": record.event_id,
                    "scoreAtSend": record.score_at_send,
                    "sentAt": record.sent_at,
                    "messageId": record.message_id,
                }
            )
        except PyMongoError as exc:
            raise PersistenceFailure(f"cannot log notification: {exc}") from exc
        logger.info(
            "Notification logged: recipient %s, event %s, score %.2f",
            record.recipient_id,
            record.event_id,
            record.score_at_send,
        )


__all__ = [
    "EventStore",
    "RecipientStore",
    "InMemoryEventStore",
    "InMemoryRecipientStore",
    "MongoEventStore",
    "MongoRecipientStore",
]
