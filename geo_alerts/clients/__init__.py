"""Convenience re-exports for singleton SDK accessors."""

from .http_client import get_session  # noqa: F401
from .mongodb_client import get_database, get_mongo_client  # noqa: F401
from .openai_client import get_openai  # noqa: F401
from .tavily_client import get_tavily_client  # noqa: F401

__all__ = [
    "get_session",
    "get_database",
    "get_mongo_client",
    "get_openai",
    "get_tavily_client",
]
