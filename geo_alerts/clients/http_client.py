"""Shared HTTP session for the feed adapters."""

from __future__ import annotations

import requests

USER_AGENT: str = "GeopoliticalIntelligence/1.0"

_session: requests.Session | None = None


def get_session() -> requests.Session:
    """Return a singleton :class:`requests.Session` shared by every adapter.

    ``requests.Session`` is safe to share between the aggregator's worker
    threads for plain GET/POST calls.
    """
    global _session
    if _session is None:
        _session = requests.Session()
        _session.headers.update({"User-Agent": USER_AGENT})
    return _session

__all__ = ["get_session", "USER_AGENT"]
