"""Tests for JSON extraction and diff payload coercion."""

from __future__ import annotations

import json

import pytest

from dbdocdiff.errors import MalformedResponseError
from dbdocdiff.models import ChangeAction, ChangeType
from dbdocdiff.utils import (
    DEFAULT_SUMMARY,
    coerce_diff_payload,
    extract_json,
    normalize_response,
    truncate,
)

# ---------------------------------------------------------------------------
# extract_json
# ---------------------------------------------------------------------------


class TestExtractJson:
    def test_bare_json_round_trips(self, raw_payload_dict):
        assert extract_json(json.dumps(raw_payload_dict)) == raw_payload_dict

    def test_json_fence_inside_prose(self):
        text = 'Here is the result:\n```json\n{"diffs":[],"summary":"ok"}\n```'
        assert extract_json(text) == {"diffs": [], "summary": "ok"}

    def test_untagged_fence(self, raw_payload_dict):
        text = "Result below.\n```\n" + json.dumps(raw_payload_dict, indent=2) + "\n```\nThanks."
        assert extract_json(text) == raw_payload_dict

    def test_other_language_tag_fence(self):
        text = 'Sure.\n```javascript\n{"diffs": [], "summary": "x"}\n```'
        assert extract_json(text) == {"diffs": [], "summary": "x"}

    def test_json_fence_preferred_over_other_fence(self):
        text = '```csv\na,b\n```\nand\n```json\n{"summary": "from json"}\n```'
        assert extract_json(text) == {"summary": "from json"}

    def test_braces_in_prose(self, raw_payload_dict):
        text = "The changes are " + json.dumps(raw_payload_dict) + " as requested."
        assert extract_json(text) == raw_payload_dict

    def test_broken_json_fence_falls_back_to_braces(self):
        text = 'Result: {"summary": "fine"}\n```json\nnot json at all\n```'
        assert extract_json(text) == {"summary": "fine"}

    def test_no_json_raises(self):
        with pytest.raises(MalformedResponseError) as exc:
            extract_json("I could not compare these sheets.")
        assert exc.value.raw_text == "I could not compare these sheets."

    def test_reversed_braces_raise(self):
        with pytest.raises(MalformedResponseError):
            extract_json("} nothing here {")


# ---------------------------------------------------------------------------
# coerce_diff_payload
# ---------------------------------------------------------------------------


class TestCoerceDiffPayload:
    def test_valid_payload(self, raw_payload_dict):
        payload = coerce_diff_payload(raw_payload_dict)
        assert len(payload.diffs) == 2
        assert payload.diffs[0].type == ChangeType.COLUMN
        assert payload.diffs[0].old_value == "INT"
        assert payload.diffs[1].action == ChangeAction.ADDED
        assert payload.summary == "Orders widened, audit table added."

    def test_malformed_items_dropped(self):
        value = {
            "diffs": [
                {"type": "COLUMN", "action": "ADDED", "target": "t.c", "description": "new column"},
                {"type": "COLUMN", "action": "ADDED", "target": "missing description"},
                {"type": "VIEW", "action": "ADDED", "target": "v", "description": "unknown type"},
                "not an object",
            ],
            "summary": "partial",
        }
        payload = coerce_diff_payload(value)
        assert [d.target for d in payload.diffs] == ["t.c"]

    def test_lowercase_enums_accepted(self):
        value = {"diffs": [{"type": "index", "action": "removed", "target": "i", "description": "gone"}]}
        payload = coerce_diff_payload(value)
        assert payload.diffs[0].type == ChangeType.INDEX
        assert payload.diffs[0].action == ChangeAction.REMOVED

    def test_numeric_values_become_text(self):
        value = {
            "diffs": [
                {
                    "type": "COLUMN",
                    "action": "MODIFIED",
                    "target": "c",
                    "description": "length",
                    "oldValue": 50,
                    "newValue": 100,
                }
            ],
            "summary": "s",
        }
        item = coerce_diff_payload(value).diffs[0]
        assert (item.old_value, item.new_value) == ("50", "100")

    def test_missing_diffs_defaults_to_empty(self):
        payload = coerce_diff_payload({"summary": "nothing"})
        assert payload.diffs == []
        assert payload.summary == "nothing"

    def test_missing_summary_uses_placeholder(self):
        assert coerce_diff_payload({"diffs": []}).summary == DEFAULT_SUMMARY
        assert coerce_diff_payload({"diffs": [], "summary": "  "}, placeholder="n/a").summary == "n/a"

    def test_non_list_diffs_raises(self):
        with pytest.raises(MalformedResponseError):
            coerce_diff_payload({"diffs": "none", "summary": "x"})

    def test_non_object_raises(self):
        with pytest.raises(MalformedResponseError):
            coerce_diff_payload([1, 2, 3])


class TestNormalizeResponse:
    def test_fenced_scenario(self):
        payload = normalize_response('Here is the result:\n```json\n{"diffs":[],"summary":"ok"}\n```')
        assert payload.diffs == []
        assert payload.summary == "ok"

    def test_same_payload_any_wrapping(self, raw_payload_dict):
        bare = json.dumps(raw_payload_dict)
        variants = [bare, f"```json\n{bare}\n```", f"Sure!\n{bare}\nDone."]
        results = [normalize_response(v) for v in variants]
        assert results[0] == results[1] == results[2]


def test_truncate_is_left_anchored():
    assert truncate("abcdef", 3) == "abc"
    assert truncate("ab", 3) == "ab"
    with pytest.raises(ValueError):
        truncate("x", -1)
