"""External feed adapters, grouped into wire news and social feeds."""

from __future__ import annotations

from typing import List

from .base import (  # noqa: F401
    NEWS_GROUP,
    SOCIAL_GROUP,
    CancellationToken,
    RateLimiter,
    SourceAdapter,
    or_query,
)
from .gnews import GNewsAdapter  # noqa: F401
from .linkedin import LinkedInAdapter  # noqa: F401
from .newsapi import NewsAPIAdapter  # noqa: F401
from .reddit import RedditAdapter  # noqa: F401
from .tavily_news import TavilyNewsAdapter  # noqa: F401
from .twitter import TwitterAdapter  # noqa: F401


def default_adapters() -> List[SourceAdapter]:
    """Return one adapter per supported feed, in registration order.

    Adapters without credentials are included; they simply return nothing.
    """
    return [
        NewsAPIAdapter(),
        GNewsAdapter(),
        TavilyNewsAdapter(),
        TwitterAdapter(),
        RedditAdapter(),
        LinkedInAdapter(),
    ]


__all__ = [
    "NEWS_GROUP",
    "SOCIAL_GROUP",
    "CancellationToken",
    "RateLimiter",
    "SourceAdapter",
    "or_query",
    "GNewsAdapter",
    "LinkedInAdapter",
    "NewsAPIAdapter",
    "RedditAdapter",
    "TavilyNewsAdapter",
    "TwitterAdapter",
    "default_adapters",
]
