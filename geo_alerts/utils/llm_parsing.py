"""Utilities for parsing structured outputs returned by LLM calls.

Chat models are asked for bare JSON but regularly wrap it in prose or code
fences; the helper here digs the first JSON object out of such replies.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict

__all__ = ["extract_structured_json"]


def extract_structured_json(response_text: str) -> Dict[str, Any]:
    """Robustly extract a JSON object from an LLM response.

    Parameters
    ----------
    response_text
        The raw message content returned by the chat completion.

    Returns
    -------
    dict[str, Any]
        The parsed JSON object.

    Raises
    ------
    ValueError
        If no JSON object can be located in *response_text*.
    """

    cleaned: str = (response_text or "").strip()

    # 1. Try to parse the whole string first (fast path)
    try:
        parsed = json.loads(cleaned)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    # 2. Search for fenced JSON block, with or without explicit `json` label
    fenced = re.search(
        r"```(?:json)?\s*(\{.*?\})\s*```",
        cleaned,
        flags=re.DOTALL | re.IGNORECASE,
    )
    if fenced:
        snippet = fenced.group(1).strip()
        try:
            parsed = json.loads(snippet)
            if isinstance(parsed, dict):
                return parsed
        except json.JSONDecodeError:
            cleaned = snippet  # Narrow search space.

    # 3. Greedy match from the first "{" to the last "}"
    braces = re.search(r"\{.*\}", cleaned, flags=re.DOTALL)
    if braces:
        try:
            parsed = json.loads(braces.group(0))
            if isinstance(parsed, dict):
                return parsed
        except json.JSONDecodeError:
            pass

    raise ValueError("Could not locate a JSON object in LLM response")
