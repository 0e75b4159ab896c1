"""
JSON Utilities for LLM Response Parsing.

LLM output may wrap its JSON payload in a markdown code block or return it
bare. These helpers locate the payload and parse it strictly: output that
is not valid JSON is rejected rather than repaired, so a malformed answer
is never partially applied.
"""

import json
import re
from typing import Any, Dict, List, Optional


# ```json ... ``` (language tag optional)
_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)

NO_JSON_FOUND = "Could not find valid JSON in the AI's response."


def extract_json_payload(text: Optional[str]) -> Optional[str]:
    """
    Locate the JSON payload in an LLM response.

    Looks for a fenced code block first, then falls back to treating the
    whole (trimmed) text as JSON.

    Args:
        text: Raw LLM response text

    Returns:
        The JSON string, or None when neither strategy yields valid JSON

    Example:
        >>> extract_json_payload('Here you go:\\n```json\\n[1, 2]\\n```')
        '[1, 2]'
        >>> extract_json_payload('no json here') is None
        True
    """
    if not text or not text.strip():
        return None

    match = _FENCED_BLOCK.search(text)
    if match and match.group(1):
        return match.group(1)

    trimmed = text.strip()
    try:
        json.loads(trimmed)
    except json.JSONDecodeError:
        return None
    return trimmed


def parse_json_array(text: Optional[str]) -> List[Any]:
    """
    Parse a JSON array out of an LLM response.

    Raises:
        ValueError: If no JSON is found, the payload does not parse, or it
            is not an array
    """
    payload = extract_json_payload(text)
    if payload is None:
        raise ValueError(NO_JSON_FOUND)

    try:
        parsed = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ValueError(f"AI response contained malformed JSON: {e}") from e

    if not isinstance(parsed, list):
        raise ValueError(f"Expected a JSON array, got {type(parsed).__name__}")
    return parsed


def parse_json_object(text: Optional[str]) -> Dict[str, Any]:
    """
    Parse a JSON object out of an LLM response.

    Raises:
        ValueError: If no JSON is found, the payload does not parse, or it
            is not an object
    """
    payload = extract_json_payload(text)
    if payload is None:
        raise ValueError(NO_JSON_FOUND)

    try:
        parsed = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ValueError(f"AI response contained malformed JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed
