"""GNews ``/api/v4/search`` adapter."""

from __future__ import annotations

import logging
from typing import List

from ..config import GNEWS_API_KEY
from ..exceptions import SourceUnavailable
from ..keywords import GEOPOLITICAL_KEYWORDS
from ..models import Platform, RawItem, Reliability
from ..utils import clean_text
from .base import NEWS_GROUP, SourceAdapter, or_query

logger = logging.getLogger(__name__)

GNEWS_URL: str = "https://gnews.io/api/v4/search"
# Long OR-queries are rejected by the API; keep to a short keyword prefix.
GNEWS_QUERY_TERMS: int = 5
GNEWS_MAX_RESULTS: int = 20


class GNewsAdapter(SourceAdapter):
    name = "GNews"
    group = NEWS_GROUP
    platform = Platform.NEWS

    def __init__(self, api_key: str | None = GNEWS_API_KEY, **kwargs) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key

    def is_enabled(self) -> bool:
        return bool(self.api_key)

    def build_query(self) -> str:
        return or_query(GEOPOLITICAL_KEYWORDS, GNEWS_QUERY_TERMS)

    def _fetch_items(self) -> List[RawItem]:
        payload = self._get_json(
            GNEWS_URL,
            params={
                "q": self.build_query(),
                "lang": "en",
                "country": "us",
                "max": GNEWS_MAX_RESULTS,
                "apikey": self.api_key,
            },
        )
        articles = payload.get("articles")
        if articles is None:
            raise SourceUnavailable("GNews returned invalid response structure")

        items: List[RawItem] = []
        for article in articles:
            title = clean_text(article.get("title"))
            url = article.get("url") or ""
            if not title or not url:
                logger.debug("Skipping GNews article without title or url")
                continue
            items.append(
                RawItem(
                    title=title,
                    url=url,
                    source_name=(article.get("source") or {}).get("name") or "GNews",
                    platform=Platform.NEWS,
                    description=clean_text(article.get("description")),
                    body=clean_text(article.get("content")),
                    published_at=article.get("publishedAt"),
                    source_reliability=Reliability.MEDIUM,
                )
            )
        return items

__all__ = ["GNewsAdapter"]
