"""Shared OpenAI SDK client for recipient scoring."""

from __future__ import annotations

from openai import OpenAI

from ..config import OPENAI_API_KEY

# One retry inside the notification stage, then the scorer falls back.
SCORING_MAX_RETRIES: int = 1
SCORING_TIMEOUT_SECONDS: float = 10.0

_client: OpenAI | None = None


def get_openai() -> OpenAI:
    """Return the shared :class:`openai.OpenAI` client.

    Raises :class:`EnvironmentError` when ``OPENAI_API_KEY`` is missing so
    that scorers can fall back before any request is attempted.
    """
    global _client
    if _client is None:
        if not OPENAI_API_KEY:
            raise EnvironmentError("OPENAI_API_KEY is not set in environment variables")
        _client = OpenAI(
            api_key=OPENAI_API_KEY,
            max_retries=SCORING_MAX_RETRIES,
            timeout=SCORING_TIMEOUT_SECONDS,
        )
    return _client

__all__ = ["get_openai", "SCORING_TIMEOUT_SECONDS"]
