import unittest
from unittest.mock import MagicMock
import os
import sys

import requests

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from geo_alerts.exceptions import SourceUnavailable
from geo_alerts.models import Platform, Reliability
from geo_alerts.sources import (
    CancellationToken,
    GNewsAdapter,
    LinkedInAdapter,
    NewsAPIAdapter,
    RateLimiter,
    RedditAdapter,
    TavilyNewsAdapter,
    TwitterAdapter,
)


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def json_response(payload):
    response = MagicMock()
    response.json.return_value = payload
    return response


def http_error(status):
    response = MagicMock()
    response.raise_for_status.side_effect = requests.HTTPError(response=MagicMock(status_code=status))
    return response


NEWSAPI_PAYLOAD = {
    "status": "ok",
    "articles": [
        {
            "title": "EU agrees new sanctions package",
            "url": "https://example.com/eu-sanctions",
            "source": {"name": "Reuters"},
            "description": "Ministers signed off on the package.",
            "content": "Full text of the article",
            "publishedAt": "2024-03-01T10:00:00Z",
            "author": "Jane Doe",
        },
        {"title": "", "url": "https://example.com/untitled"},
        {"title": "No link", "url": None},
    ],
}


class TestRateLimiter(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.limiter = RateLimiter(60, clock=self.clock)

    def test_first_call_is_allowed(self):
        self.assertEqual(self.limiter.try_acquire(), 1000.0)
        self.assertIsNone(self.limiter.last_fetch_time)

    def test_in_flight_reservation_blocks_second_caller(self):
        self.limiter.try_acquire()
        self.assertIsNone(self.limiter.try_acquire())

    def test_commit_starts_interval(self):
        acquired = self.limiter.try_acquire()
        self.limiter.commit(acquired)
        self.clock.now += 59
        self.assertIsNone(self.limiter.try_acquire())
        self.clock.now += 1
        self.assertIsNotNone(self.limiter.try_acquire())

    def test_release_does_not_record_fetch(self):
        self.limiter.try_acquire()
        self.limiter.release()
        self.assertIsNone(self.limiter.last_fetch_time)
        self.assertIsNotNone(self.limiter.try_acquire())


class TestNewsAPIAdapter(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.session = MagicMock()
        self.session.get.return_value = json_response(NEWSAPI_PAYLOAD)
        self.adapter = NewsAPIAdapter(
            api_key="key",
            session=self.session,
            rate_limiter=RateLimiter(60, clock=self.clock),
        )

    def test_fetch_maps_articles(self):
        items = self.adapter.fetch()

        self.assertEqual(len(items), 1)
        item = items[0]
        self.assertEqual(item.title, "EU agrees new sanctions package")
        self.assertEqual(item.source_name, "Reuters")
        self.assertEqual(item.platform, Platform.NEWS)
        self.assertEqual(item.published_at, "2024-03-01T10:00:00Z")
        self.assertEqual(dict(item.engagement_metrics), {})

        params = self.session.get.call_args[1]["params"]
        self.assertEqual(params["pageSize"], 20)
        self.assertEqual(params["apiKey"], "key")

    def test_second_call_within_interval_is_empty_and_keeps_last_fetch_time(self):
        self.assertEqual(len(self.adapter.fetch()), 1)
        last = self.adapter.rate_limiter.last_fetch_time

        self.clock.now += 30
        self.assertEqual(self.adapter.fetch(), [])
        self.assertEqual(self.adapter.rate_limiter.last_fetch_time, last)
        self.assertEqual(self.session.get.call_count, 1)

    def test_call_after_interval_fetches_again(self):
        self.adapter.fetch()
        self.clock.now += 61
        self.assertEqual(len(self.adapter.fetch()), 1)
        self.assertEqual(self.session.get.call_count, 2)

    def test_disabled_without_key(self):
        adapter = NewsAPIAdapter(api_key=None, session=self.session)
        self.assertEqual(adapter.fetch(), [])
        self.session.get.assert_not_called()

    def test_http_error_returns_empty_and_releases_limiter(self):
        self.session.get.return_value = http_error(401)
        with self.assertLogs("geo_alerts.sources.base", level="ERROR") as logs:
            self.assertEqual(self.adapter.fetch(), [])
        self.assertIn("Invalid credentials", logs.output[0])
        self.assertIsNone(self.adapter.rate_limiter.last_fetch_time)
        self.assertIsNotNone(self.adapter.rate_limiter.try_acquire())

    def test_transport_error_returns_empty(self):
        self.session.get.side_effect = requests.ConnectionError("boom")
        self.assertEqual(self.adapter.fetch(), [])

    def test_malformed_payload_returns_empty(self):
        self.session.get.return_value = json_response({"status": "error"})
        self.assertEqual(self.adapter.fetch(), [])

    def test_get_json_reports_failures_as_source_unavailable(self):
        self.session.get.return_value = http_error(429)
        with self.assertRaises(SourceUnavailable) as ctx:
            self.adapter._get_json("https://newsapi.org/v2/everything")
        self.assertIn("Rate limit exceeded", str(ctx.exception))
        self.assertIsInstance(ctx.exception.__cause__, requests.HTTPError)

        self.session.get.side_effect = requests.Timeout("slow")
        with self.assertRaises(SourceUnavailable):
            self.adapter._get_json("https://newsapi.org/v2/everything")

    def test_bad_response_shape_logs_and_releases_limiter(self):
        self.session.get.return_value = json_response({"status": "error"})
        with self.assertLogs("geo_alerts.sources.base", level="ERROR") as logs:
            self.assertEqual(self.adapter.fetch(), [])
        self.assertIn("invalid response structure", logs.output[0])
        self.assertIsNone(self.adapter.rate_limiter.last_fetch_time)

    def test_cancelled_token_skips_fetch(self):
        token = CancellationToken()
        token.cancel()
        self.assertEqual(self.adapter.fetch(token), [])
        self.session.get.assert_not_called()


class TestGNewsAdapter(unittest.TestCase):

    def test_query_uses_first_five_keywords(self):
        session = MagicMock()
        session.get.return_value = json_response({"articles": []})
        adapter = GNewsAdapter(api_key="key", session=session)

        self.assertEqual(adapter.fetch(), [])
        params = session.get.call_args[1]["params"]
        self.assertEqual(params["q"], "sanctions OR trade war OR tariffs OR embargo OR political instability")
        self.assertEqual(params["max"], 20)


class TestTwitterAdapter(unittest.TestCase):

    def setUp(self):
        self.session = MagicMock()
        self.adapter = TwitterAdapter(bearer_token="token", session=self.session)

    def test_uses_strict_interval(self):
        self.assertEqual(self.adapter.rate_limiter.min_interval, 300)

    def test_query_shape(self):
        query = self.adapter.build_query()
        self.assertTrue(query.startswith("(sanctions OR trade war"))
        self.assertIn("(#geopolitics OR #breaking OR #news OR #politics OR #worldnews)", query)
        self.assertTrue(query.endswith("-is:retweet lang:en"))

    def test_fetch_maps_tweets_with_engagement(self):
        long_text = "Breaking: sanctions " + "x" * 300
        self.session.get.return_value = json_response({
            "data": [
                {
                    "id": "42",
                    "text": long_text,
                    "created_at": "2024-03-01T10:00:00Z",
                    "author_id": "7",
                    "public_metrics": {"retweet_count": 5, "like_count": 20, "reply_count": 1},
                }
            ]
        })

        items = self.adapter.fetch()

        self.assertEqual(len(items), 1)
        tweet = items[0]
        self.assertEqual(tweet.platform, Platform.TWITTER)
        self.assertEqual(len(tweet.title), 203)
        self.assertTrue(tweet.title.endswith("..."))
        self.assertEqual(tweet.engagement_metrics["likes"], 20)
        self.assertEqual(tweet.url, "https://twitter.com/i/web/status/42")
        self.assertEqual(self.session.get.call_args[1]["params"]["max_results"], 10)

    def test_empty_data_returns_empty(self):
        self.session.get.return_value = json_response({"meta": {"result_count": 0}})
        self.assertEqual(self.adapter.fetch(), [])


class TestRedditAdapter(unittest.TestCase):

    def test_failing_subreddit_does_not_drop_others(self):
        session = MagicMock()
        session.post.return_value = json_response({"access_token": "abc"})

        def get(url, **kwargs):
            if "/r/worldnews/" in url:
                raise requests.ConnectionError("down")
            post = {
                "title": f"Post from {url}",
                "permalink": "/r/x/comments/1",
                "selftext": "",
                "created_utc": 1709287200,
                "ups": 10,
                "downs": 0,
                "num_comments": 3,
                "score": 10,
                "id": "p1",
            }
            return json_response({"data": {"children": [{"data": post}]}})

        session.get.side_effect = get
        adapter = RedditAdapter(client_id="id", client_secret="secret", session=session)

        items = adapter.fetch()

        self.assertEqual(len(items), 4)
        self.assertEqual(session.get.call_count, 5)
        self.assertEqual(items[0].source_name, "Reddit r/geopolitics")
        self.assertEqual(items[0].engagement_metrics["comments"], 3)
        self.assertEqual(items[0].description, items[0].title)
        self.assertEqual(items[0].source_reliability, Reliability.MEDIUM)
        self.assertEqual(items[0].published_at, "2024-03-01T10:00:00+00:00")

    def test_failed_token_request_returns_empty(self):
        session = MagicMock()
        session.post.return_value = http_error(401)
        adapter = RedditAdapter(client_id="id", client_secret="bad", session=session)

        with self.assertLogs("geo_alerts.sources.base", level="ERROR") as logs:
            self.assertEqual(adapter.fetch(), [])
        self.assertIn("Reddit API Error (401)", logs.output[0])
        session.get.assert_not_called()


class TestTavilyNewsAdapter(unittest.TestCase):

    def test_maps_results_and_uses_domain_as_source(self):
        client = MagicMock()
        client.search.return_value = {
            "results": [
                {
                    "title": "Tariffs rise on steel imports",
                    "url": "https://www.ft.com/content/steel",
                    "content": "Trade ministers announced tariffs.",
                    "published_date": "Fri, 01 Mar 2024 10:00:00 GMT",
                },
                {"title": "", "url": "https://example.com/empty"},
            ]
        }
        items = TavilyNewsAdapter(api_key=None, client=client).fetch()

        self.assertEqual(len(items), 1)
        self.assertEqual(items[0].source_name, "ft.com")
        self.assertEqual(items[0].platform, Platform.NEWS)
        self.assertEqual(client.search.call_args[1]["topic"], "news")

    def test_search_is_bounded_by_adapter_timeout(self):
        client = MagicMock()
        client.search.return_value = {"results": []}
        TavilyNewsAdapter(api_key="key", client=client, timeout=4.0).fetch()
        self.assertEqual(client.search.call_args[1]["timeout"], 4.0)

    def test_sdk_error_returns_empty(self):
        client = MagicMock()
        client.search.side_effect = RuntimeError("quota exceeded")
        self.assertEqual(TavilyNewsAdapter(api_key="key", client=client).fetch(), [])

    def test_missing_results_returns_empty(self):
        client = MagicMock()
        client.search.return_value = {"answer": None}
        self.assertEqual(TavilyNewsAdapter(api_key="key", client=client).fetch(), [])


class TestLinkedInAdapter(unittest.TestCase):

    def test_maps_shares_with_truncated_title(self):
        text = "Official statement on export controls. " * 10
        session = MagicMock()
        session.get.return_value = json_response({
            "elements": [
                {
                    "id": "share-1",
                    "text": {"text": text},
                    "permalink": "https://www.linkedin.com/feed/update/1",
                    "created": {"time": 1709287200000},
                    "owner": "urn:li:organization:42",
                },
                {"id": "share-2", "text": {"text": "No link"}},
            ]
        })
        adapter = LinkedInAdapter(
            access_token="token", organization_urn="urn:li:organization:42", session=session
        )

        items = adapter.fetch()

        self.assertEqual(len(items), 1)
        self.assertTrue(items[0].title.endswith("..."))
        self.assertLessEqual(len(items[0].title), 203)
        self.assertEqual(items[0].platform, Platform.LINKEDIN)
        self.assertEqual(items[0].published_at, "2024-03-01T10:00:00+00:00")
        headers = session.get.call_args[1]["headers"]
        self.assertEqual(headers["Authorization"], "Bearer token")

    def test_disabled_without_organization(self):
        adapter = LinkedInAdapter(access_token="token", organization_urn=None, session=MagicMock())
        self.assertFalse(adapter.is_enabled())
        self.assertEqual(adapter.fetch(), [])


if __name__ == '__main__':
    unittest.main()
