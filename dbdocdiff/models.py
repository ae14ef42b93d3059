"""
Data models: workbook snapshots, diff items, and the per-sheet result ledger.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Result surface (ledger, report JSON) uses camelCase keys; either spelling is accepted on input.
WIRE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChangeType(str, Enum):
    TABLE = "TABLE"
    COLUMN = "COLUMN"
    INDEX = "INDEX"
    TRIGGER = "TRIGGER"
    CONSTRAINT = "CONSTRAINT"
    OTHER = "OTHER"


class ChangeAction(str, Enum):
    ADDED = "ADDED"
    REMOVED = "REMOVED"
    MODIFIED = "MODIFIED"


class SheetStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"
    SKIPPED = "SKIPPED"

    @property
    def is_terminal(self) -> bool:
        return self in (SheetStatus.COMPLETED, SheetStatus.ERROR, SheetStatus.SKIPPED)


class DiffItem(BaseModel):
    """One semantic change inside a sheet, as reported by the LLM."""
    model_config = ConfigDict(frozen=True, **WIRE_CONFIG)

    type: ChangeType = Field(..., description="The type of database object that changed.")
    action: ChangeAction = Field(..., description="The nature of the change.")
    target: str = Field(..., description="Name of the object (e.g. 'Users table', 'email column').")
    description: str = Field(..., description="Concise summary of what changed.")
    old_value: Optional[str] = Field(None, description="Value in the old version.")
    new_value: Optional[str] = Field(None, description="Value in the new version.")


class SheetDiffPayload(BaseModel):
    """Normalized result of one provider comparison."""
    model_config = ConfigDict(frozen=True, **WIRE_CONFIG)

    diffs: List[DiffItem] = Field(default_factory=list)
    summary: str = ""


class SheetContent(BaseModel):
    """
    One parsed sheet. `csv` is the canonical serialization of `rows`:
    equal rows always give byte-identical csv.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    rows: List[List[str]] = Field(default_factory=list)
    csv: str = ""


class WorkbookSnapshot(BaseModel):
    """One uploaded workbook. Sheet order follows the workbook's tab order."""
    model_config = ConfigDict(frozen=True)

    file_name: str
    sheets: Dict[str, SheetContent] = Field(default_factory=dict)

    def sheet_names(self) -> List[str]:
        return list(self.sheets.keys())


class SheetDiffResult(BaseModel):
    model_config = ConfigDict(frozen=True, **WIRE_CONFIG)

    sheet_name: str
    status: SheetStatus = SheetStatus.PENDING
    diffs: List[DiffItem] = Field(default_factory=list)
    summary: Optional[str] = None
    error: Optional[str] = None

    def advance(self, status: SheetStatus, **changes: Any) -> "SheetDiffResult":
        """Return a copy moved to `status`. Terminal states never change."""
        if self.status.is_terminal:
            raise ValueError(f"Sheet '{self.sheet_name}' is already {self.status.value}")
        return self.model_copy(update={"status": status, **changes})


class ProcessingState(BaseModel):
    model_config = ConfigDict(frozen=True, **WIRE_CONFIG)

    total_sheets: int = 0
    processed_sheets: int = 0
    current_sheet_name: str = ""


class LedgerSnapshot(BaseModel):
    """What observers receive after every state change of a run."""
    model_config = ConfigDict(frozen=True, **WIRE_CONFIG)

    results: Tuple[SheetDiffResult, ...] = ()
    progress: ProcessingState = Field(default_factory=ProcessingState)

    @property
    def finished(self) -> bool:
        return all(r.status.is_terminal for r in self.results)


class ComparisonReport(BaseModel):
    """Final artifact of one run, written as JSON and PDF."""
    model_config = WIRE_CONFIG

    old_file: str
    new_file: str
    provider: str
    model: str
    language: str
    results: List[SheetDiffResult] = Field(default_factory=list)

    def count(self, status: SheetStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def total_diffs(self) -> int:
        return sum(len(r.diffs) for r in self.results)
