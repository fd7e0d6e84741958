"""Singleton accessor for the MongoDB client and database."""

from __future__ import annotations

from pymongo import MongoClient
from pymongo.database import Database

from ..config import MONGODB_DATABASE, MONGODB_URI

# Fail fast when the server is down instead of blocking a whole cycle.
SERVER_SELECTION_TIMEOUT_MS: int = 5000

_client: MongoClient | None = None


def get_mongo_client() -> MongoClient:
    """Return a singleton :class:`pymongo.MongoClient`."""
    global _client
    if _client is None:
        _client = MongoClient(
            MONGODB_URI,
            serverSelectionTimeoutMS=SERVER_SELECTION_TIMEOUT_MS,
            tz_aware=True,
        )
    return _client


def get_database(name: str = MONGODB_DATABASE) -> Database:
    """Return the configured application database."""
    return get_mongo_client()[name]

__all__ = ["get_mongo_client", "get_database"]
