"""Twitter API v2 recent-search adapter."""

from __future__ import annotations

import logging
from typing import List

from ..config import STRICT_FETCH_INTERVAL, TWITTER_BEARER_TOKEN
from ..keywords import GEOPOLITICAL_HASHTAGS, GEOPOLITICAL_KEYWORDS
from ..models import Platform, RawItem, Reliability
from ..utils import clean_text, truncate
from .base import SOCIAL_GROUP, SourceAdapter, or_query

logger = logging.getLogger(__name__)

TWITTER_SEARCH_URL: str = "https://api.twitter.com/2/tweets/search/recent"
TWITTER_KEYWORD_TERMS: int = 10
TWITTER_HASHTAG_TERMS: int = 5
TWITTER_MAX_RESULTS: int = 10
TITLE_LIMIT: int = 200


class TwitterAdapter(SourceAdapter):
    name = "Twitter"
    group = SOCIAL_GROUP
    platform = Platform.TWITTER
    default_min_interval = STRICT_FETCH_INTERVAL

    def __init__(self, bearer_token: str | None = TWITTER_BEARER_TOKEN, **kwargs) -> None:
        super().__init__(**kwargs)
        self.bearer_token = bearer_token

    def is_enabled(self) -> bool:
        return bool(self.bearer_token)

    def build_query(self) -> str:
        keywords = or_query(GEOPOLITICAL_KEYWORDS, TWITTER_KEYWORD_TERMS)
        hashtags = or_query(GEOPOLITICAL_HASHTAGS, TWITTER_HASHTAG_TERMS)
        return f"({keywords}) OR ({hashtags}) -is:retweet lang:en"

    def _fetch_items(self) -> List[RawItem]:
        payload = self._get_json(
            TWITTER_SEARCH_URL,
            params={
                "query": self.build_query(),
                "max_results": TWITTER_MAX_RESULTS,
                "tweet.fields": "created_at,author_id,public_metrics",
                "user.fields": "name,username",
                "expansions": "author_id",
            },
            headers={"Authorization": f"Bearer {self.bearer_token}"},
        )
        tweets = payload.get("data")
        if not tweets:
            logger.warning("Twitter returned no data")
            return []

        items: List[RawItem] = []
        for tweet in tweets:
            text = clean_text(tweet.get("text"))
            if not text:
                continue
            metrics = tweet.get("public_metrics") or {}
            url = f"https://twitter.com/i/web/status/{tweet['id']}"
            items.append(
                RawItem(
                    title=truncate(text, TITLE_LIMIT, ellipsis=True),
                    url=url,
                    source_name="Twitter",
                    platform=Platform.TWITTER,
                    description=text,
                    body=text,
                    published_at=tweet.get("created_at"),
                    source_reliability=Reliability.MEDIUM,
                    engagement_metrics={
                        "retweets": int(metrics.get("retweet_count") or 0),
                        "likes": int(metrics.get("like_count") or 0),
                        "replies": int(metrics.get("reply_count") or 0),
                    },
                    author=tweet.get("author_id"),
                    external_id=str(tweet["id"]),
                )
            )
        return items

__all__ = ["TwitterAdapter"]
