"""Centralised configuration for geo_alerts.

Environment variables are loaded once and all related constants are
grouped by service for easier maintenance. Components read these values as
constructor defaults only, so every one of them can be overridden explicitly.
"""

from __future__ import annotations

import os
from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Load environment variables from `.env` (if present)
# ---------------------------------------------------------------------------
load_dotenv()


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


# ---------------------------------------------------------------------------
# Wire news feeds
# ---------------------------------------------------------------------------
NEWSAPI_KEY: str | None = os.getenv("NEWSAPI_KEY")
GNEWS_API_KEY: str | None = os.getenv("GNEWS_API_KEY")
TAVILY_API_KEY: str | None = os.getenv("TAVILY_API_KEY")

# ---------------------------------------------------------------------------
# Social feeds
# ---------------------------------------------------------------------------
TWITTER_BEARER_TOKEN: str | None = os.getenv("TWITTER_BEARER_TOKEN")
REDDIT_CLIENT_ID: str | None = os.getenv("REDDIT_CLIENT_ID")
REDDIT_CLIENT_SECRET: str | None = os.getenv("REDDIT_CLIENT_SECRET")
LINKEDIN_ACCESS_TOKEN: str | None = os.getenv("LINKEDIN_ACCESS_TOKEN")
LINKEDIN_ORGANIZATION_URN: str | None = os.getenv("LINKEDIN_ORGANIZATION_URN")

# ---------------------------------------------------------------------------
# Storage + scoring
# ---------------------------------------------------------------------------
MONGODB_URI: str | None = os.getenv("MONGODB_URI")
MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "geo_alerts")
OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")
OPENAI_SCORING_MODEL: str = os.getenv("OPENAI_SCORING_MODEL", "gpt-4o-mini")

# ---------------------------------------------------------------------------
# Outbound email
# ---------------------------------------------------------------------------
SMTP_HOST: str = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT: int = _int_env("SMTP_PORT", 587)
SMTP_USER: str | None = os.getenv("SMTP_USER")
SMTP_PASS: str | None = os.getenv("SMTP_PASS")
SMTP_FROM: str = os.getenv("SMTP_FROM", "noreply@geopolitical-intelligence.com")
FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")

# ---------------------------------------------------------------------------
# Pipeline tunables
# ---------------------------------------------------------------------------
STANDARD_FETCH_INTERVAL: int = _int_env("STANDARD_FETCH_INTERVAL", 60)
STRICT_FETCH_INTERVAL: int = _int_env("STRICT_FETCH_INTERVAL", 300)
ADAPTER_TIMEOUT_SECONDS: int = _int_env("ADAPTER_TIMEOUT_SECONDS", 10)
AGGREGATOR_TIMEOUT_SECONDS: int = _int_env("AGGREGATOR_TIMEOUT_SECONDS", 30)
NOTIFICATION_WORKERS: int = _int_env("NOTIFICATION_WORKERS", 4)
DEDUP_WINDOW_HOURS: int = _int_env("DEDUP_WINDOW_HOURS", 24)

# ---------------------------------------------------------------------------
# Re-exported names
# ---------------------------------------------------------------------------
__all__ = [
    # wire news
    "NEWSAPI_KEY",
    "GNEWS_API_KEY",
    "TAVILY_API_KEY",
    # social
    "TWITTER_BEARER_TOKEN",
    "REDDIT_CLIENT_ID",
    "REDDIT_CLIENT_SECRET",
    "LINKEDIN_ACCESS_TOKEN",
    "LINKEDIN_ORGANIZATION_URN",
    # storage + scoring
    "MONGODB_URI",
    "MONGODB_DATABASE",
    "OPENAI_API_KEY",
    "OPENAI_SCORING_MODEL",
    # email
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_USER",
    "SMTP_PASS",
    "SMTP_FROM",
    "FRONTEND_URL",
    # pipeline
    "STANDARD_FETCH_INTERVAL",
    "STRICT_FETCH_INTERVAL",
    "ADAPTER_TIMEOUT_SECONDS",
    "AGGREGATOR_TIMEOUT_SECONDS",
    "NOTIFICATION_WORKERS",
    "DEDUP_WINDOW_HOURS",
]
