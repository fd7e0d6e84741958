import unittest
from unittest.mock import MagicMock
import os
import sys
from datetime import datetime, timedelta, timezone

from pymongo.errors import DuplicateKeyError, OperationFailure, ServerSelectionTimeoutError

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from geo_alerts.exceptions import DuplicateEvent, PersistenceFailure, StoreUnavailable
from geo_alerts.models import (
    CandidateEvent,
    Category,
    Impact,
    NotificationRecord,
    Platform,
    Reliability,
    Sentiment,
    Severity,
)
from geo_alerts.services.deduplication import DeduplicatingPersister
from geo_alerts.services.storage import (
    InMemoryRecipientStore,
    MongoEventStore,
    MongoRecipientStore,
)

EVENT_DATE = datetime(2024, 3, 1, 23, 30, tzinfo=timezone.utc)
STORED_AT = datetime(2024, 3, 2, 8, 0, tzinfo=timezone.utc)


def candidate():
    return CandidateEvent(
        title="Sanctions on Iran",
        description="desc",
        summary="Sanctions imposed",
        full_text="body",
        location="Iran",
        category=Category.SANCTIONS,
        severity=Severity.HIGH,
        event_date=EVENT_DATE,
        relevance_score=0.5,
        tags=["sanctions"],
        impact=Impact.LOCAL,
        platform=Platform.NEWS,
        engagement=0,
        source_reliability=Reliability.HIGH,
        sentiment=Sentiment.NEGATIVE,
        entities={"countries": ["iran"], "companies": []},
        source_name="Reuters",
        url="https://example.com/a",
    )


class TestMongoEventStore(unittest.TestCase):

    def setUp(self):
        self.collection = MagicMock()
        self.store = MongoEventStore(self.collection, now=lambda: STORED_AT)

    def test_insert_writes_document_with_day_bucket(self):
        self.collection.insert_one.return_value = MagicMock(inserted_id="abc123")

        persisted = self.store.insert(candidate())

        self.assertEqual(persisted.id, "abc123")
        self.assertEqual(persisted.stored_at, STORED_AT)
        doc = self.collection.insert_one.call_args[0][0]
        self.assertEqual(doc["title"], "Sanctions on Iran")
        self.assertEqual(doc["dayBucket"], "2024-03-01")
        self.assertEqual(doc["eventDate"], EVENT_DATE)
        self.assertEqual(doc["source"], {"name": "Reuters", "url": "https://example.com/a", "reliability": "high"})

    def test_unique_index_is_created_once(self):
        self.collection.insert_one.return_value = MagicMock(inserted_id="1")
        self.store.insert(candidate())
        self.store.insert(candidate())

        unique_calls = [c for c in self.collection.create_index.call_args_list if c[1].get("unique")]
        self.assertEqual(len(unique_calls), 1)
        self.assertEqual(unique_calls[0][0][0], [("title", 1), ("dayBucket", 1)])

    def test_duplicate_key_maps_to_duplicate_event(self):
        self.collection.insert_one.side_effect = DuplicateKeyError("E11000")
        with self.assertRaises(DuplicateEvent):
            self.store.insert(candidate())

    def test_connection_failure_maps_to_store_unavailable(self):
        self.collection.insert_one.side_effect = ServerSelectionTimeoutError("timeout")
        with self.assertRaises(StoreUnavailable):
            self.store.insert(candidate())

    def test_other_write_error_maps_to_persistence_failure(self):
        self.collection.insert_one.side_effect = OperationFailure("bad")
        with self.assertRaises(PersistenceFailure):
            self.store.insert(candidate())

    def test_find_similar_queries_title_and_range(self):
        doc = candidate().to_document()
        doc.update({"_id": "abc", "storedAt": STORED_AT})
        self.collection.find_one.return_value = doc
        start, end = EVENT_DATE - timedelta(hours=24), EVENT_DATE + timedelta(hours=24)

        found = self.store.find_similar("Sanctions on Iran", start, end)

        self.collection.find_one.assert_called_once_with(
            {"title": "Sanctions on Iran", "eventDate": {"$gte": start, "$lte": end}},
            projection={"_id": 1, "title": 1, "eventDate": 1, "storedAt": 1},
        )
        self.assertEqual(found.id, "abc")
        self.assertEqual(found.event.title, "Sanctions on Iran")
        self.assertEqual(found.event.event_date, EVENT_DATE)

    def test_find_similar_returns_none_when_absent(self):
        self.collection.find_one.return_value = None
        self.assertIsNone(self.store.find_similar("x", EVENT_DATE, EVENT_DATE))

    def test_find_similar_tolerates_documents_from_other_writers(self):
        self.collection.find_one.return_value = {
            "_id": "legacy1",
            "title": "Sanctions on Iran",
            "eventDate": EVENT_DATE,
            "impact": {"economic": "negative"},
            "severity": "Severe",
            "source": "Reuters",
        }

        found = self.store.find_similar("Sanctions on Iran", EVENT_DATE, EVENT_DATE)

        self.assertEqual(found.id, "legacy1")
        self.assertEqual(found.event.impact, Impact.LOCAL)
        self.assertEqual(found.event.severity, Severity.LOW)

    def test_legacy_match_counts_as_duplicate_in_batch(self):
        self.collection.find_one.return_value = {
            "_id": "legacy1",
            "title": "Sanctions on Iran",
            "eventDate": EVENT_DATE,
            "impact": {"economic": "negative"},
        }
        report = DeduplicatingPersister(self.store).persist_batch([candidate()])

        self.assertEqual(report.duplicates, 1)
        self.assertEqual(report.failures, 0)
        self.collection.insert_one.assert_not_called()

    def test_unique_index_ignores_documents_without_day_bucket(self):
        self.store.ensure_indexes()
        unique = [c for c in self.collection.create_index.call_args_list if c[1].get("unique")][0]
        self.assertEqual(unique[1]["partialFilterExpression"], {"dayBucket": {"$exists": True}})

    def test_index_build_error_maps_to_persistence_failure(self):
        self.collection.create_index.side_effect = OperationFailure("E11000 duplicate key")
        with self.assertRaises(PersistenceFailure):
            self.store.find_similar("Sanctions on Iran", EVENT_DATE, EVENT_DATE)

        report = DeduplicatingPersister(self.store).persist_batch([candidate()])
        self.assertEqual(report.failures, 1)


class TestMongoRecipientStore(unittest.TestCase):

    def setUp(self):
        self.recipients = MagicMock()
        self.notifications = MagicMock()
        self.store = MongoRecipientStore(self.recipients, self.notifications)

    def test_list_all_maps_profiles(self):
        self.recipients.find.return_value = [
            {
                "_id": "u1",
                "name": "Ada",
                "email": "ada@example.com",
                "businessUnits": [{"name": "Semiconductors"}],
                "areasOfConcern": [{"category": "Sanctions"}],
                "regions": ["Asia"],
                "notificationPreferences": {"email": False, "frequency": "weekly"},
            }
        ]

        [recipient] = self.store.list_all()

        self.assertEqual(recipient.id, "u1")
        self.assertEqual(recipient.business_units, ("Semiconductors",))
        self.assertFalse(recipient.preferences.email_enabled)
        self.assertEqual(recipient.preferences.frequency, "weekly")

    def test_list_all_failure_is_store_unavailable(self):
        self.recipients.find.side_effect = ServerSelectionTimeoutError("timeout")
        with self.assertRaises(StoreUnavailable):
            self.store.list_all()

    def test_last_notification_time_reads_latest(self):
        self.notifications.find_one.return_value = {"sentAt": STORED_AT}
        self.assertEqual(self.store.last_notification_time("u1"), STORED_AT)
        self.assertEqual(self.notifications.find_one.call_args[1]["sort"], [("sentAt", -1)])

    def test_record_notification_inserts(self):
        record = NotificationRecord("u1", "e1", 0.9, STORED_AT, "<id@x>")
        self.store.record_notification(record)
        doc = self.notifications.insert_one.call_args[0][0]
        self.assertEqual(doc["recipientId"], "u1")
        self.assertEqual(doc["scoreAtSend"], 0.9)


class TestInMemoryRecipientStore(unittest.TestCase):

    def test_last_notification_time_is_latest_record(self):
        store = InMemoryRecipientStore()
        self.assertIsNone(store.last_notification_time("u1"))
        store.record_notification(NotificationRecord("u1", "e1", 0.5, STORED_AT))
        store.record_notification(NotificationRecord("u1", "e2", 0.5, STORED_AT + timedelta(hours=1)))
        store.record_notification(NotificationRecord("u2", "e3", 0.5, STORED_AT + timedelta(hours=5)))
        self.assertEqual(store.last_notification_time("u1"), STORED_AT + timedelta(hours=1))


if __name__ == '__main__':
    unittest.main()
