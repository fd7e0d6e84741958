"""Utility functions for the geo_alerts project.

Re-exports the text, datetime and LLM-parsing helpers so that imports like
`from ..utils import clean_text` or `from ..utils import parse_event_date`
work as expected.
"""

from .text_cleaning import clean_text, truncate, word_count  # noqa: F401
from .datetime_utils import day_bucket, get_current_timestamp, parse_event_date  # noqa: F401
from .llm_parsing import extract_structured_json  # noqa: F401

__all__ = [
    "clean_text",
    "truncate",
    "word_count",
    "day_bucket",
    "get_current_timestamp",
    "parse_event_date",
    "extract_structured_json",
]
