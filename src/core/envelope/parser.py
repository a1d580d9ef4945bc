"""Recover an envelope object from raw model text.

Models asked for JSON still wrap it in prose, fence it in markdown, or emit
something that only half parses.  :func:`extract_envelope` tries, in order:
the whole text as JSON, a fenced code block, the outermost brace span, and
finally picks individual fields out of broken JSON.  When nothing
object-shaped turns up it returns ``None`` and the caller uses the stage
fallback.
"""

from __future__ import annotations

import json
import re
from typing import Any

_FENCE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)
_CHAT_DOUBLE = re.compile(r'"chatResponse"\s*:\s*"((?:[^"\\]|\\.)*)"', re.DOTALL)
_CHAT_SINGLE = re.compile(r"'chatResponse'\s*:\s*'((?:[^'\\]|\\.)*)'", re.DOTALL)
_STAGE_COMPLETE = re.compile(r'"isStageComplete"\s*:\s*(true|false)', re.IGNORECASE)
_BUTTONS = re.compile(r'"buttons"\s*:\s*\[([^\]]*)\]')
_QUOTED = re.compile(r'"((?:[^"\\]|\\.)*)"')


def _loads_object(text: str) -> dict[str, Any] | None:
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


def _unescape(fragment: str) -> str:
    try:
        return json.loads(f'"{fragment}"')
    except (json.JSONDecodeError, ValueError):
        return fragment.replace('\\"', '"').replace("\\'", "'")


def _partial_fields(text: str) -> dict[str, Any] | None:
    found: dict[str, Any] = {}

    match = _CHAT_DOUBLE.search(text) or _CHAT_SINGLE.search(text)
    if match:
        found["chatResponse"] = _unescape(match.group(1))

    match = _STAGE_COMPLETE.search(text)
    if match:
        found["isStageComplete"] = match.group(1).lower() == "true"

    match = _BUTTONS.search(text)
    if match:
        found["buttons"] = [_unescape(item) for item in _QUOTED.findall(match.group(1))]

    return found or None


def extract_envelope(text: Any) -> dict[str, Any] | None:
    """Best-effort extraction of a JSON object from *text*.

    Dicts pass through unchanged; anything else that is not a string
    yields ``None``.
    """
    if isinstance(text, dict):
        return text
    if not isinstance(text, str) or not text.strip():
        return None

    stripped = text.strip()
    parsed = _loads_object(stripped)
    if parsed is not None:
        return parsed

    match = _FENCE.search(stripped)
    if match:
        parsed = _loads_object(match.group(1).strip())
        if parsed is not None:
            return parsed

    start = stripped.find("{")
    end = stripped.rfind("}")
    if start != -1 and end > start:
        parsed = _loads_object(stripped[start : end + 1])
        if parsed is not None:
            return parsed

    return _partial_fields(stripped)
