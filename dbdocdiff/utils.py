"""
Utilities: safe JSON extraction from LLM replies and payload coercion.
"""

from __future__ import annotations

import json
import re
from typing import Any, Callable, List

from pydantic import ValidationError

from .errors import MalformedResponseError
from .models import DiffItem, SheetDiffPayload

_JSON_FENCE = re.compile(r"```json[ \t]*\r?\n(.*?)\r?\n?[ \t]*```", re.DOTALL | re.IGNORECASE)
_ANY_FENCE = re.compile(r"```[^\n`]*\r?\n(.*?)\r?\n?[ \t]*```", re.DOTALL)

DEFAULT_SUMMARY = "No summary provided."


def truncate(text: str, limit: int) -> str:
    """Left-anchored cut; shorter text is returned unchanged."""
    if limit < 0:
        raise ValueError("limit must be >= 0")
    return text[:limit]


def _parse_whole(text: str) -> Any:
    return json.loads(text)


def _parse_json_fence(text: str) -> Any:
    m = _JSON_FENCE.search(text)
    if not m:
        raise ValueError("No ```json block found.")
    return json.loads(m.group(1))


def _parse_any_fence(text: str) -> Any:
    m = _ANY_FENCE.search(text)
    if not m:
        raise ValueError("No fenced block found.")
    return json.loads(m.group(1))


def _parse_outer_braces(text: str) -> Any:
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end < start:
        raise ValueError("No JSON object found.")
    return json.loads(text[start:end + 1])


# Order matters: first success wins.
EXTRACTION_STRATEGIES: List[Callable[[str], Any]] = [
    _parse_whole,
    _parse_json_fence,
    _parse_any_fence,
    _parse_outer_braces,
]


def extract_json(text: str) -> Any:
    """
    Extract a JSON value from an LLM response.
    Handles bare JSON, markdown code fences, and JSON embedded in prose.
    """
    errors = []
    for strategy in EXTRACTION_STRATEGIES:
        try:
            return strategy(text)
        except ValueError as e:  # json.JSONDecodeError is a ValueError
            errors.append(f"{strategy.__name__}: {e}")
    raise MalformedResponseError(
        "Could not parse JSON from response (" + "; ".join(errors) + ")",
        raw_text=text,
    )


def _clean_item(raw: Any) -> Any:
    if not isinstance(raw, dict):
        return raw
    item = dict(raw)
    for key in ("type", "action"):
        if isinstance(item.get(key), str):
            item[key] = item[key].strip().upper()
    for key in ("oldValue", "newValue", "old_value", "new_value"):
        value = item.get(key)
        if isinstance(value, (int, float, bool)):
            item[key] = json.dumps(value)
    return item


def coerce_diff_payload(value: Any, *, placeholder: str = DEFAULT_SUMMARY) -> SheetDiffPayload:
    """
    Shape a parsed JSON value into a SheetDiffPayload.

    The top level must be an object whose `diffs` (if present) is a list.
    Items that fail validation are dropped; valid ones are kept.
    A missing or blank summary becomes `placeholder`.
    """
    if not isinstance(value, dict):
        raise MalformedResponseError(
            f"Expected a JSON object, got {type(value).__name__}", raw_text=json.dumps(value, ensure_ascii=False)
        )

    raw_diffs = value.get("diffs", [])
    if raw_diffs is None:
        raw_diffs = []
    if not isinstance(raw_diffs, list):
        raise MalformedResponseError(
            f"'diffs' must be an array, got {type(raw_diffs).__name__}",
            raw_text=json.dumps(value, ensure_ascii=False),
        )

    items: List[DiffItem] = []
    for raw in raw_diffs:
        try:
            items.append(DiffItem.model_validate(_clean_item(raw)))
        except ValidationError:
            continue

    summary = value.get("summary")
    if not isinstance(summary, str) or not summary.strip():
        summary = placeholder

    return SheetDiffPayload(diffs=items, summary=summary)


def normalize_response(text: str, *, placeholder: str = DEFAULT_SUMMARY) -> SheetDiffPayload:
    return coerce_diff_payload(extract_json(text), placeholder=placeholder)
