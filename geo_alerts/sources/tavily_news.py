"""Tavily news-search adapter.

Uses the Tavily SDK client instead of the shared HTTP session. The SDK
performs its own request handling but honours the adapter timeout.
"""

from __future__ import annotations

from typing import Any, List
from urllib.parse import urlparse

from ..clients.tavily_client import get_tavily_client
from ..config import TAVILY_API_KEY
from ..exceptions import SourceUnavailable
from ..keywords import GEOPOLITICAL_KEYWORDS
from ..models import Platform, RawItem, Reliability
from ..utils import clean_text
from .base import NEWS_GROUP, SourceAdapter, or_query

TAVILY_QUERY_TERMS: int = 5
TAVILY_MAX_RESULTS: int = 20
TAVILY_DAYS: int = 1


def _domain(url: str) -> str:
    host = urlparse(url).netloc.lower()
    return host[4:] if host.startswith("www.") else host


class TavilyNewsAdapter(SourceAdapter):
    name = "Tavily"
    group = NEWS_GROUP
    platform = Platform.NEWS

    def __init__(
        self,
        api_key: str | None = TAVILY_API_KEY,
        client: Any | None = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key
        self._client = client

    def is_enabled(self) -> bool:
        return bool(self.api_key) or self._client is not None

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = get_tavily_client(self.api_key)
        return self._client

    def _fetch_items(self) -> List[RawItem]:
        try:
            response = self.client.search(
                query=or_query(GEOPOLITICAL_KEYWORDS, TAVILY_QUERY_TERMS),
                topic="news",
                max_results=TAVILY_MAX_RESULTS,
                days=TAVILY_DAYS,
                include_answer=False,
                include_raw_content=False,
                timeout=self.timeout,
            )
        except Exception as exc:  # the SDK raises its own error types
            raise SourceUnavailable(f"Error fetching from {self.name}: {exc}") from exc
        results = response.get("results")
        if results is None:
            raise SourceUnavailable("Tavily returned invalid response structure")

        items: List[RawItem] = []
        for result in results:
            title = clean_text(result.get("title"))
            url = result.get("url") or ""
            if not title or not url:
                continue
            content = clean_text(result.get("content"))
            items.append(
                RawItem(
                    title=title,
                    url=url,
                    source_name=_domain(url) or "Tavily",
                    platform=Platform.NEWS,
                    description=content,
                    body=content,
                    published_at=result.get("published_date"),
                    source_reliability=Reliability.MEDIUM,
                )
            )
        return items

__all__ = ["TavilyNewsAdapter"]
