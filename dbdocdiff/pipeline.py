"""
High-level pipeline:
- load both workbooks
- reconcile sheet names across the two snapshots
- resolve added / removed / identical sheets locally
- call the LLM provider, one sheet at a time, for the rest
- write JSON and PDF reports
"""

from __future__ import annotations

import os
import threading
from typing import Callable, Dict, List, Optional

from .config import DbDocDiffConfig
from .llm import SheetDiffProvider, build_provider
from .models import (
    ChangeAction,
    ChangeType,
    ComparisonReport,
    DiffItem,
    LedgerSnapshot,
    ProcessingState,
    SheetContent,
    SheetDiffResult,
    SheetStatus,
    WorkbookSnapshot,
)
from .prompts import check_language, message
from .report import save_report_json, save_report_pdf
from .workbook import load_workbook

LedgerObserver = Callable[[LedgerSnapshot], None]


class CancellationToken:
    """Checked between sheets; an in-flight LLM call is allowed to finish."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def sheet_order(old: WorkbookSnapshot, new: WorkbookSnapshot) -> List[str]:
    """Old workbook's sheets first, then names that only exist in the new one. Exact match only."""
    names = list(old.sheets)
    names.extend(name for name in new.sheets if name not in old.sheets)
    return names


class ConsoleProgress:
    """Ledger observer that prints each sheet transition."""

    def __init__(self) -> None:
        self._seen: Dict[str, SheetStatus] = {}

    def __call__(self, ledger: LedgerSnapshot) -> None:
        progress = ledger.progress
        if not self._seen:
            print(f"[INFO] Sheets to compare: {progress.total_sheets}")
        for r in ledger.results:
            if self._seen.get(r.sheet_name) == r.status:
                continue
            self._seen[r.sheet_name] = r.status
            if r.status == SheetStatus.PROCESSING:
                print(f"[INFO] ({progress.processed_sheets + 1}/{progress.total_sheets}) {r.sheet_name} ...")
            elif r.status == SheetStatus.COMPLETED:
                print(f"[INFO] {r.sheet_name}: {len(r.diffs)} change(s). {r.summary or ''}".rstrip())
            elif r.status == SheetStatus.ERROR:
                print(f"[WARN] {r.sheet_name}: {r.error}")
            elif r.status == SheetStatus.SKIPPED:
                print(f"[WARN] {r.sheet_name}: skipped")


class DiffOrchestrator:
    """
    Owns the per-sheet result ledger for one run.

    Every state change replaces the ledger with new immutable values and hands a
    LedgerSnapshot to `on_update`, so observers never see a half-updated entry.
    Sheets are processed strictly one after another.
    """

    def __init__(
        self,
        provider: SheetDiffProvider,
        *,
        language: str = "en",
        on_update: Optional[LedgerObserver] = None,
    ):
        self.provider = provider
        self.language = check_language(language)
        self.on_update = on_update
        self.provider_calls = 0
        self._results: List[SheetDiffResult] = []
        self._progress = ProcessingState()

    @property
    def ledger(self) -> LedgerSnapshot:
        return LedgerSnapshot(results=tuple(self._results), progress=self._progress)

    def run(
        self,
        old: WorkbookSnapshot,
        new: WorkbookSnapshot,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[SheetDiffResult]:
        names = sheet_order(old, new)
        self._results = [SheetDiffResult(sheet_name=name) for name in names]
        self._progress = ProcessingState(total_sheets=len(names))
        self.provider_calls = 0
        self._publish()

        for index, name in enumerate(names):
            if cancel_token is not None and cancel_token.cancelled:
                self._skip_remaining(index)
                break

            self._advance(index, SheetStatus.PROCESSING)
            self._progress = self._progress.model_copy(update={"current_sheet_name": name})
            self._publish()

            status, changes = self._resolve(name, old.sheets.get(name), new.sheets.get(name))
            self._advance(index, status, **changes)
            self._progress = self._progress.model_copy(
                update={"processed_sheets": self._progress.processed_sheets + 1}
            )
            self._publish()

        return list(self._results)

    def _resolve(self, name: str, old_sheet: Optional[SheetContent], new_sheet: Optional[SheetContent]):
        if old_sheet is None:
            return SheetStatus.COMPLETED, {
                "summary": message(self.language, "sheet_added"),
                "diffs": [self._whole_sheet_item(ChangeAction.ADDED, "sheet_added_desc")],
            }

        if new_sheet is None:
            return SheetStatus.COMPLETED, {
                "summary": message(self.language, "sheet_removed"),
                "diffs": [self._whole_sheet_item(ChangeAction.REMOVED, "sheet_removed_desc")],
            }

        if old_sheet.csv == new_sheet.csv:
            return SheetStatus.COMPLETED, {"diffs": [], "summary": message(self.language, "exact_match")}

        self.provider_calls += 1
        try:
            payload = self.provider.compare(name, old_sheet.csv, new_sheet.csv, self.language)
        except Exception as e:  # recorded on this sheet; the run goes on
            return SheetStatus.ERROR, {"error": str(e) or message(self.language, "unknown_error")}

        return SheetStatus.COMPLETED, {"diffs": list(payload.diffs), "summary": payload.summary}

    def _whole_sheet_item(self, action: ChangeAction, desc_key: str) -> DiffItem:
        return DiffItem(
            type=ChangeType.OTHER,
            action=action,
            target="Sheet",
            description=message(self.language, desc_key),
        )

    def _advance(self, index: int, status: SheetStatus, **changes) -> None:
        results = list(self._results)
        results[index] = results[index].advance(status, **changes)
        self._results = results

    def _skip_remaining(self, start: int) -> None:
        note = message(self.language, "cancelled")
        results = list(self._results)
        for i in range(start, len(results)):
            if results[i].status == SheetStatus.PENDING:
                results[i] = results[i].advance(SheetStatus.SKIPPED, summary=note)
        self._results = results
        self._progress = self._progress.model_copy(update={"current_sheet_name": ""})
        self._publish()

    def _publish(self) -> None:
        if self.on_update is not None:
            self.on_update(self.ledger)


def run_from_config(cfg: DbDocDiffConfig, cancel_token: Optional[CancellationToken] = None) -> str:
    """Run the full pipeline and return the path of the main report."""
    verbose = cfg.runtime.verbose
    os.makedirs(cfg.project.output_dir, exist_ok=True)

    json_path = os.path.join(cfg.project.output_dir, "diff_report.json")
    pdf_path = os.path.join(cfg.project.output_dir, "diff_report.pdf")

    if verbose:
        print("[INFO] Loading workbooks...")
    old = load_workbook(cfg.project.old_workbook)
    new = load_workbook(cfg.project.new_workbook)
    if verbose:
        print(f"[INFO] Sheets: old={len(old.sheets)} new={len(new.sheets)}")

    provider = build_provider(cfg.llm, verbose=verbose)
    orchestrator = DiffOrchestrator(
        provider,
        language=cfg.llm.language,
        on_update=ConsoleProgress() if verbose else None,
    )
    results = orchestrator.run(old, new, cancel_token=cancel_token)

    report = ComparisonReport(
        old_file=old.file_name,
        new_file=new.file_name,
        provider=provider.name,
        model=provider.model,
        language=cfg.llm.language,
        results=results,
    )

    final_path = cfg.project.output_dir
    if cfg.report.write_json:
        save_report_json(report, json_path)
        final_path = json_path
    if cfg.report.write_pdf:
        save_report_pdf(report, pdf_path, title=cfg.report.title, truncate_chars=cfg.report.truncate_chars)
        final_path = pdf_path

    if verbose:
        print(f"[INFO] LLM calls: {orchestrator.provider_calls}")
        print(f"[DONE] Report: {final_path}")

    return final_path
