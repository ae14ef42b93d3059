"""Shared fixtures: workbook snapshots, stub providers, and LLM configs."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import pytest

from dbdocdiff.config import LLMConfig, ProviderKind
from dbdocdiff.models import DiffItem, SheetDiffPayload, WorkbookSnapshot
from dbdocdiff.workbook import make_sheet


def make_snapshot(file_name: str, sheets: Dict[str, Sequence[Sequence[Any]]]) -> WorkbookSnapshot:
    return WorkbookSnapshot(
        file_name=file_name,
        sheets={name: make_sheet(name, rows) for name, rows in sheets.items()},
    )


class StubProvider:
    """Records calls; returns canned payloads or raises per sheet name."""

    name = "stub"
    model = "stub-model"

    def __init__(
        self,
        payloads: Optional[Dict[str, SheetDiffPayload]] = None,
        errors: Optional[Dict[str, Exception]] = None,
    ):
        self.payloads = payloads or {}
        self.errors = errors or {}
        self.calls: List[tuple] = []

    def compare(self, sheet_name: str, old_csv: str, new_csv: str, language: str) -> SheetDiffPayload:
        self.calls.append((sheet_name, old_csv, new_csv, language))
        if sheet_name in self.errors:
            raise self.errors[sheet_name]
        return self.payloads.get(sheet_name, SheetDiffPayload(diffs=[], summary="stub"))


# ------------------------------------------------------------------ #
# Payloads
# ------------------------------------------------------------------ #


@pytest.fixture()
def two_item_payload() -> SheetDiffPayload:
    return SheetDiffPayload(
        diffs=[
            DiffItem(
                type="COLUMN",
                action="MODIFIED",
                target="users.email",
                description="Length increased from 50 to 100",
                oldValue="VARCHAR(50)",
                newValue="VARCHAR(100)",
            ),
            DiffItem(type="INDEX", action="ADDED", target="idx_users_email", description="New unique index"),
        ],
        summary="Email column widened and indexed.",
    )


@pytest.fixture()
def raw_payload_dict() -> Dict[str, Any]:
    return {
        "diffs": [
            {
                "type": "COLUMN",
                "action": "MODIFIED",
                "target": "orders.amount",
                "description": "Type changed",
                "oldValue": "INT",
                "newValue": "BIGINT",
            },
            {"type": "TABLE", "action": "ADDED", "target": "audit_log", "description": "New table"},
        ],
        "summary": "Orders widened, audit table added.",
    }


# ------------------------------------------------------------------ #
# Configs
# ------------------------------------------------------------------ #


@pytest.fixture()
def openai_config() -> LLMConfig:
    return LLMConfig(provider=ProviderKind.OPENAI, api_key="sk-test")


@pytest.fixture()
def no_api_key_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("API_KEY", raising=False)
