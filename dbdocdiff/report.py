"""
Write the per-sheet diff ledger as JSON and as a PDF report.
"""

from __future__ import annotations

from pathlib import Path

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet

from .models import ComparisonReport, SheetStatus


def _escape_for_rl(s: str, truncate_chars: int = 2000) -> str:
    """Basic escaping for ReportLab Paragraph markup."""
    s = s.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
    if truncate_chars and len(s) > truncate_chars:
        s = s[:truncate_chars] + "\n...[truncated]..."
    return s.replace("\n", "<br/>")


def save_report_json(report: ComparisonReport, out_path: str) -> None:
    Path(out_path).write_text(
        report.model_dump_json(indent=2, by_alias=True, exclude_none=True),
        encoding="utf-8",
    )


def save_report_pdf(
    report: ComparisonReport,
    out_pdf_path: str,
    *,
    title: str = "Database Definition Diff Report",
    truncate_chars: int = 2000,
) -> None:
    styles = getSampleStyleSheet()
    story = []

    def esc(s: str) -> str:
        return _escape_for_rl(s, truncate_chars)

    story.append(Paragraph(f"<b>{esc(title)}</b>", styles["Title"]))
    story.append(Spacer(1, 0.5 * cm))

    story.append(Paragraph(f"<b>Old version:</b> {esc(report.old_file)}", styles["Normal"]))
    story.append(Paragraph(f"<b>New version:</b> {esc(report.new_file)}", styles["Normal"]))
    story.append(Paragraph(f"<b>Provider:</b> {esc(report.provider)} ({esc(report.model)})", styles["Normal"]))
    story.append(Spacer(1, 0.3 * cm))
    story.append(Paragraph(f"<b>Sheets:</b> {len(report.results)}", styles["Normal"]))
    story.append(Paragraph(f"<b>Completed:</b> {report.count(SheetStatus.COMPLETED)}", styles["Normal"]))
    story.append(Paragraph(f"<b>Errors:</b> {report.count(SheetStatus.ERROR)}", styles["Normal"]))
    story.append(Paragraph(f"<b>Skipped:</b> {report.count(SheetStatus.SKIPPED)}", styles["Normal"]))
    story.append(Paragraph(f"<b>Total changes:</b> {report.total_diffs}", styles["Normal"]))
    story.append(Spacer(1, 0.6 * cm))

    for r in report.results:
        story.append(Paragraph(f"<b>{esc(r.sheet_name)}</b> [{r.status.value}]", styles["Heading2"]))
        if r.summary:
            story.append(Paragraph(f"<b>Summary:</b> {esc(r.summary)}", styles["Normal"]))
        if r.error:
            story.append(Paragraph(f"<b>Error:</b> {esc(r.error)}", styles["Normal"]))
        story.append(Spacer(1, 0.2 * cm))

        for d in r.diffs:
            story.append(
                Paragraph(
                    f"<b>{d.action.value}</b> {d.type.value} <b>{esc(d.target)}</b>: {esc(d.description)}",
                    styles["BodyText"],
                )
            )
            if d.old_value is not None or d.new_value is not None:
                old = esc(d.old_value or "")
                new = esc(d.new_value or "")
                story.append(
                    Paragraph(f"<font name='Courier'>{old} -&gt; {new}</font>", styles["BodyText"])
                )
        story.append(Spacer(1, 0.4 * cm))

    doc = SimpleDocTemplate(
        out_pdf_path,
        pagesize=A4,
        leftMargin=2 * cm,
        rightMargin=2 * cm,
        topMargin=2 * cm,
        bottomMargin=2 * cm,
    )
    doc.build(story)
