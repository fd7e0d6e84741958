"""Reddit adapter: application-only OAuth, then hot posts per subreddit."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

import requests

from ..clients.http_client import USER_AGENT
from ..config import REDDIT_CLIENT_ID, REDDIT_CLIENT_SECRET
from ..exceptions import SourceUnavailable
from ..keywords import REDDIT_SUBREDDITS
from ..models import Platform, RawItem, Reliability
from ..utils import clean_text, truncate
from .base import SOCIAL_GROUP, SourceAdapter

logger = logging.getLogger(__name__)

REDDIT_TOKEN_URL: str = "https://www.reddit.com/api/v1/access_token"
REDDIT_API_URL: str = "https://oauth.reddit.com"
REDDIT_SUBREDDIT_COUNT: int = 5
REDDIT_POSTS_PER_SUBREDDIT: int = 25
DESCRIPTION_LIMIT: int = 300


class RedditAdapter(SourceAdapter):
    name = "Reddit"
    group = SOCIAL_GROUP
    platform = Platform.REDDIT

    def __init__(
        self,
        client_id: str | None = REDDIT_CLIENT_ID,
        client_secret: str | None = REDDIT_CLIENT_SECRET,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.client_id = client_id
        self.client_secret = client_secret

    def is_enabled(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _access_token(self) -> str:
        try:
            response = self.session.post(
                REDDIT_TOKEN_URL,
                data={"grant_type": "client_credentials"},
                auth=(self.client_id, self.client_secret),
                headers={"User-Agent": USER_AGENT},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()["access_token"]
        except requests.HTTPError as exc:
            raise SourceUnavailable(self._http_error_message(exc)) from exc
        except (requests.RequestException, ValueError, KeyError, TypeError) as exc:
            raise SourceUnavailable(f"Reddit authentication failed: {exc}") from exc

    def _fetch_items(self) -> List[RawItem]:
        headers = {
            "Authorization": f"Bearer {self._access_token()}",
            "User-Agent": USER_AGENT,
        }

        items: List[RawItem] = []
        for subreddit in REDDIT_SUBREDDITS[:REDDIT_SUBREDDIT_COUNT]:
            try:
                payload = self._get_json(
                    f"{REDDIT_API_URL}/r/{subreddit}/hot",
                    params={"limit": REDDIT_POSTS_PER_SUBREDDIT, "raw_json": 1},
                    headers=headers,
                )
                children = payload["data"]["children"]
            except (SourceUnavailable, KeyError, TypeError) as exc:
                logger.error("Error fetching from r/%s: %s", subreddit, exc)
                continue
            items.extend(
                item
                for item in (self._to_item(child.get("data", {}), subreddit) for child in children)
                if item is not None
            )
        return items

    @staticmethod
    def _to_item(post: Dict[str, Any], subreddit: str) -> RawItem | None:
        title = clean_text(post.get("title"))
        permalink = post.get("permalink")
        if not title or not permalink:
            return None
        selftext = clean_text(post.get("selftext"))
        created_utc = post.get("created_utc")
        published_at = (
            datetime.fromtimestamp(created_utc, tz=timezone.utc).isoformat()
            if created_utc
            else None
        )
        return RawItem(
            title=title,
            url=f"https://reddit.com{permalink}",
            source_name=f"Reddit r/{subreddit}",
            platform=Platform.REDDIT,
            description=truncate(selftext, DESCRIPTION_LIMIT) or title,
            body=selftext or title,
            published_at=published_at,
            source_reliability=Reliability.MEDIUM,
            engagement_metrics={
                "upvotes": int(post.get("ups") or 0),
                "downvotes": int(post.get("downs") or 0),
                "comments": int(post.get("num_comments") or 0),
                "score": int(post.get("score") or 0),
            },
            author=post.get("author"),
            external_id=post.get("id"),
        )

__all__ = ["RedditAdapter"]
