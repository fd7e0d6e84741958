"""NewsAPI.org ``/v2/everything`` adapter."""

from __future__ import annotations

from typing import List

from ..config import NEWSAPI_KEY
from ..exceptions import SourceUnavailable
from ..models import Platform, RawItem, Reliability
from ..utils import clean_text
from .base import NEWS_GROUP, SourceAdapter

NEWSAPI_URL: str = "https://newsapi.org/v2/everything"
NEWSAPI_QUERY: str = "geopolitics OR sanctions OR trade war OR political instability"
NEWSAPI_PAGE_SIZE: int = 20


class NewsAPIAdapter(SourceAdapter):
    name = "NewsAPI"
    group = NEWS_GROUP
    platform = Platform.NEWS

    def __init__(self, api_key: str | None = NEWSAPI_KEY, **kwargs) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key

    def is_enabled(self) -> bool:
        return bool(self.api_key)

    def _fetch_items(self) -> List[RawItem]:
        payload = self._get_json(
            NEWSAPI_URL,
            params={
                "q": NEWSAPI_QUERY,
                "language": "en",
                "sortBy": "publishedAt",
                "pageSize": NEWSAPI_PAGE_SIZE,
                "apiKey": self.api_key,
            },
        )
        articles = payload.get("articles")
        if articles is None:
            raise SourceUnavailable("NewsAPI returned invalid response structure")

        items: List[RawItem] = []
        for article in articles:
            title = clean_text(article.get("title"))
            url = article.get("url") or ""
            if not title or not url:
                continue
            items.append(
                RawItem(
                    title=title,
                    url=url,
                    source_name=(article.get("source") or {}).get("name") or "Unknown Source",
                    platform=Platform.NEWS,
                    description=clean_text(article.get("description")),
                    body=clean_text(article.get("content")),
                    published_at=article.get("publishedAt"),
                    source_reliability=Reliability.MEDIUM,
                    author=article.get("author"),
                )
            )
        return items

__all__ = ["NewsAPIAdapter"]
