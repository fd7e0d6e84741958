"""Shared text helpers used by the feed adapters and the analyzer."""

from __future__ import annotations

import re
from typing import Final

_WHITESPACE: Final = re.compile(r"\s+")
ELLIPSIS: Final[str] = "..."


def clean_text(text: str | None) -> str:
    """Collapse runs of whitespace and strip; ``None`` becomes ``""``."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def truncate(text: str, limit: int, *, ellipsis: bool = False) -> str:
    """Cut *text* to *limit* characters, optionally marking the cut."""
    if len(text) <= limit:
        return text
    cut = text[:limit]
    return f"{cut}{ELLIPSIS}" if ellipsis else cut


def word_count(text: str | None) -> int:
    if not text:
        return 0
    return len(text.split())

__all__ = ["clean_text", "truncate", "word_count"]
