"""Helpers for pulling JSON out of reasoning-model responses.

The model may return JSON in various formats:
- Raw JSON
- JSON in a markdown code block (```json ... ```)
- JSON with surrounding prose
"""

import json
import re
from typing import Any, Optional

_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_ARRAY = re.compile(r"\[[\s\S]*\]")
_OBJECT = re.compile(r"\{[\s\S]*\}")


def _strip_fence(text: str) -> str:
    text = text.strip()
    match = _FENCE.search(text)
    return match.group(1).strip() if match else text


def _loads(text: str) -> Optional[Any]:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None


def extract_json_array(response_text: str) -> Optional[list]:
    """
    Extract a JSON array from a model response.

    A single wrapping object is unwrapped: ``{"claims": [...]}`` yields the
    inner list, any other object yields ``[object]``.

    Returns:
        Parsed list, or None if nothing parseable was found.
    """
    if not response_text:
        return None
    text = _strip_fence(response_text)

    array_match = _ARRAY.search(text)
    if array_match:
        parsed = _loads(array_match.group(0))
        if isinstance(parsed, list):
            return parsed

    parsed = _loads(text)
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        for value in parsed.values():
            if isinstance(value, list):
                return value
        return [parsed]
    return None


def extract_json_object(response_text: str) -> Optional[dict]:
    """
    Extract the outermost JSON object from a model response.

    Returns:
        Parsed dict, or None if nothing parseable was found.
    """
    if not response_text:
        return None
    text = _strip_fence(response_text)

    match = _OBJECT.search(text)
    if not match:
        return None
    parsed = _loads(match.group(0))
    return parsed if isinstance(parsed, dict) else None
