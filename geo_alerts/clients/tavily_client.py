"""Tavily SDK clients, one per API key."""

from __future__ import annotations

import threading
from typing import Dict

from tavily import TavilyClient

from ..config import TAVILY_API_KEY

_clients: Dict[str, TavilyClient] = {}
_lock = threading.Lock()


def get_tavily_client(api_key: str | None = None) -> TavilyClient:
    """Return the shared :class:`tavily.TavilyClient` for *api_key*.

    Falls back to ``TAVILY_API_KEY``; raises :class:`EnvironmentError` when
    neither is set.
    """
    key = api_key or TAVILY_API_KEY
    if not key:
        raise EnvironmentError("TAVILY_API_KEY is not set in environment variables")
    with _lock:
        if key not in _clients:
            _clients[key] = TavilyClient(api_key=key)
        return _clients[key]

__all__ = ["get_tavily_client"]
