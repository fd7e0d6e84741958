import unittest
from unittest.mock import patch, MagicMock
import os
import sys
from datetime import datetime, timezone

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from geo_alerts.exceptions import FatalPipelineFailure, StoreUnavailable
from geo_alerts.models import NotificationPreferences, RawItem, Recipient, ScoreResult
from geo_alerts.services.analysis import ContentAnalyzer
from geo_alerts.services.deduplication import DeduplicatingPersister
from geo_alerts.services.notifications import NotificationDispatcher
from geo_alerts.services.storage import InMemoryEventStore, InMemoryRecipientStore
from geo_alerts.sources import CancellationToken, NEWS_GROUP
from geo_alerts.workflows.event_pipeline import EventPipeline, run

NOW = datetime(2024, 3, 1, 18, 0, tzinfo=timezone.utc)


def item(title, published_at="2024-03-01T10:00:00Z", body=""):
    return RawItem(
        title=title,
        url=f"https://example.com/{abs(hash((title, published_at)))}",
        source_name="Reuters",
        body=body,
        published_at=published_at,
    )


class TestEventPipeline(unittest.TestCase):

    def setUp(self):
        self.items = [
            item("US imposes new sanctions on Iran", body="A sanction embargo on oil exports."),
            item("Local bakery wins award"),
            item("Protests spread after election", published_at="2024-03-01T08:00:00Z"),
        ]
        self.aggregator = MagicMock()
        self.aggregator.run.return_value = self.items
        self.event_store = InMemoryEventStore(now=lambda: NOW)
        self.recipients = InMemoryRecipientStore([
            Recipient(
                id="u1",
                name="Ada",
                email="ada@example.com",
                preferences=NotificationPreferences(frequency="immediate"),
            ),
            Recipient(
                id="u2",
                name="Bo",
                email="bo@example.com",
                preferences=NotificationPreferences(email_enabled=False, frequency="immediate"),
            ),
        ])
        self.scorer = MagicMock()
        self.scorer.score.return_value = ScoreResult(0.9, "Relevance score: 90.0%")
        self.transport = MagicMock()
        self.transport.send.return_value = "<msg@example.com>"
        self.pipeline = self.build(self.event_store, self.recipients)

    def build(self, event_store, recipients):
        return EventPipeline(
            aggregator=self.aggregator,
            analyzer=ContentAnalyzer(),
            persister=DeduplicatingPersister(event_store),
            dispatcher=NotificationDispatcher(recipients, self.scorer, self.transport, now=lambda: NOW),
        )

    def test_full_cycle(self):
        result = self.pipeline.run_full_cycle()
        summary = result.summary

        self.assertEqual(summary.fetched, 3)
        self.assertEqual(summary.analyzed, 3)
        self.assertEqual(summary.not_relevant, 1)
        self.assertEqual(summary.persisted, 2)
        self.assertEqual(summary.notified, 2)
        self.assertEqual(summary.notification_failures, 0)
        self.assertFalse(summary.cancelled)
        self.assertEqual(
            [e.title for e in result.events],
            ["US imposes new sanctions on Iran", "Protests spread after election"],
        )
        # the email-disabled recipient never receives anything
        self.assertEqual({c[0][0] for c in self.transport.send.call_args_list}, {"ada@example.com"})

        payload = result.to_dict()
        self.assertEqual(payload["eventsProcessed"], 2)
        self.assertEqual(payload["events"][0]["category"], "Sanctions")

    def test_second_cycle_with_same_items_stores_nothing(self):
        self.pipeline.run_full_cycle()
        self.transport.send.reset_mock()

        second = self.pipeline.run_full_cycle()

        self.assertEqual(second.events_processed, 0)
        self.assertEqual(second.summary.duplicates, 2)
        self.assertEqual(len(self.event_store.events), 2)
        self.transport.send.assert_not_called()

    def test_same_title_an_hour_apart_persists_once(self):
        self.aggregator.run.return_value = [
            item("Border dispute flares", published_at="2024-03-01T10:00:00Z"),
            item("Border dispute flares", published_at="2024-03-01T11:00:00Z"),
        ]
        result = self.pipeline.run_full_cycle()
        self.assertEqual(result.events_processed, 1)
        self.assertEqual(result.summary.duplicates, 1)

    def test_irrelevant_items_produce_no_events(self):
        self.aggregator.run.return_value = [item("Local bakery wins award")]
        result = self.pipeline.run_full_cycle()
        self.assertEqual(result.events, [])
        self.assertEqual(result.summary.not_relevant, 1)
        self.transport.send.assert_not_called()

    def test_notification_failures_are_reported(self):
        self.transport.send.side_effect = RuntimeError("smtp down")
        result = self.pipeline.run_full_cycle()
        self.assertEqual(result.summary.notified, 0)
        self.assertEqual(result.summary.notification_failures, 2)
        self.assertEqual(result.summary.persisted, 2)

    def test_unreachable_event_store_aborts_cycle(self):
        store = MagicMock()
        store.find_similar.side_effect = StoreUnavailable("down")
        with self.assertRaises(FatalPipelineFailure):
            self.build(store, self.recipients).run_full_cycle()

    def test_cancelled_cycle_reports_progress(self):
        token = CancellationToken()
        token.cancel()
        result = self.pipeline.run_full_cycle(token)
        self.assertTrue(result.summary.cancelled)
        self.assertEqual(result.summary.fetched, 3)
        self.assertEqual(result.summary.analyzed, 0)
        self.assertEqual(self.event_store.events, [])

    def test_fetch_only_and_analyze_only(self):
        self.aggregator.fetch_group.return_value = self.items[:1]
        fetched = self.pipeline.run_fetch_only(NEWS_GROUP)
        self.aggregator.fetch_group.assert_called_once_with(NEWS_GROUP, None)

        candidates = self.pipeline.run_analyze_only(self.items)
        self.assertEqual(len(fetched), 1)
        self.assertEqual(len(candidates), 2)
        self.assertEqual(self.event_store.events, [])

    @patch('geo_alerts.workflows.event_pipeline.build_default_pipeline')
    def test_run_uses_default_pipeline(self, mock_build):
        run()
        mock_build.return_value.run_full_cycle.assert_called_once_with()


if __name__ == '__main__':
    unittest.main()
