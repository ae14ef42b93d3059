"""
Workbook loading: xlsx/xlsm/xls -> WorkbookSnapshot (row grid + canonical CSV per sheet).

.xlsx and .xlsm go through openpyxl; legacy .xls needs the optional `xlrd`
dependency (pip install 'dbdocdiff[excel-legacy]').
"""

from __future__ import annotations

import csv
import io
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Iterable, List, Sequence

import openpyxl

from .errors import ParseError
from .models import SheetContent, WorkbookSnapshot

SUPPORTED_EXCEL_TYPES = (".xlsx", ".xls", ".xlsm")


def cell_text(value: Any) -> str:
    """Render one cell value the same way every time."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    return str(value)


def _normalize_rows(raw_rows: Iterable[Sequence[Any]]) -> List[List[str]]:
    rows: List[List[str]] = []
    for raw in raw_rows:
        row = [cell_text(v) for v in raw]
        while row and row[-1] == "":
            row.pop()
        rows.append(row)
    # Formatting-only rows at the bottom are not content.
    while rows and not rows[-1]:
        rows.pop()
    return rows


def rows_to_csv(rows: Sequence[Sequence[str]]) -> str:
    """Canonical CSV: minimal quoting, '\\n' line endings, no trailing newline."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerows(rows)
    return buf.getvalue().rstrip("\n")


def make_sheet(name: str, raw_rows: Iterable[Sequence[Any]]) -> SheetContent:
    rows = _normalize_rows(raw_rows)
    return SheetContent(name=name, rows=rows, csv=rows_to_csv(rows))


def _xlsx_sheets(source: Any) -> dict:
    wb = openpyxl.load_workbook(source, read_only=True, data_only=True)
    try:
        sheets = {}
        for ws in wb.worksheets:
            # The stored <dimension> can be stale; rescan the real cell range.
            ws.reset_dimensions()
            sheets[ws.title] = make_sheet(ws.title, ws.iter_rows(values_only=True))
        return sheets
    finally:
        wb.close()


def _xls_value(cell: Any, datemode: int) -> Any:
    import xlrd
    from xlrd.biffh import error_text_from_code

    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
        return None
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    if cell.ctype == xlrd.XL_CELL_DATE:
        value = xlrd.xldate_as_datetime(cell.value, datemode)
        return value.time() if cell.value < 1 else value
    if cell.ctype == xlrd.XL_CELL_ERROR:
        return error_text_from_code.get(cell.value, "#ERR")
    return cell.value


def _xls_sheets(source: Any) -> dict:
    try:
        import xlrd
    except ImportError:
        raise ImportError(".xls files require xlrd: pip install 'dbdocdiff[excel-legacy]'") from None

    if isinstance(source, io.BytesIO):
        book = xlrd.open_workbook(file_contents=source.getvalue())
    else:
        book = xlrd.open_workbook(source)
    try:
        sheets = {}
        for sh in book.sheets():
            raw_rows = ([_xls_value(c, book.datemode) for c in sh.row(i)] for i in range(sh.nrows))
            sheets[sh.name] = make_sheet(sh.name, raw_rows)
        return sheets
    finally:
        book.release_resources()


def _read(source: Any, file_name: str) -> WorkbookSnapshot:
    reader = _xls_sheets if file_name.lower().endswith(".xls") else _xlsx_sheets
    # Sheet XML is parsed lazily while rows are iterated, so the whole read
    # sits inside one boundary: any reader failure is a ParseError.
    try:
        sheets = reader(source)
    except Exception as e:
        raise ParseError(file_name, f"{type(e).__name__}: {e}") from e
    return WorkbookSnapshot(file_name=file_name, sheets=sheets)


def load_workbook(path: str | Path) -> WorkbookSnapshot:
    path = Path(path)
    if path.suffix.lower() not in SUPPORTED_EXCEL_TYPES:
        raise ParseError(path.name, f"unsupported file type '{path.suffix}' (expected one of {', '.join(SUPPORTED_EXCEL_TYPES)})")
    if not path.is_file():
        raise ParseError(path.name, "file not found")
    return _read(str(path), path.name)


def parse_workbook(data: bytes, file_name: str) -> WorkbookSnapshot:
    """Parse an uploaded file held in memory; the file name's extension picks the reader."""
    return _read(io.BytesIO(data), file_name)
