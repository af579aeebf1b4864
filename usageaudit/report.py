"""Report rendering — text table, JSON and CSV outputs."""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime
from pathlib import Path
from typing import Any, TextIO

import usageaudit
from usageaudit.models import AnalysisResult, ProbeKind, UsageReportRow
from usageaudit.scoring import score_band

# ---------------------------------------------------------------------------
# Text output
# ---------------------------------------------------------------------------

_BAND_COLORS = {
    "unused": "\033[91m",  # red
    "maybe": "\033[93m",   # amber
    "used": "\033[92m",    # green
}
_RESET = "\033[0m"

_COLUMNS = ("Plugin", "Slug", "Active", "Options", "Meta", "Content", "Tables", "Cron", "Score")

INTERPRETATION = (
    "Score 0-1 & inactive -> almost certainly safe to remove.",
    "Score 0-1 & active   -> suspicious bloat; investigate why it is active.",
    "Score >= 3           -> clearly doing something the site depends on.",
)


def _score_label(score: int, color: bool = True) -> str:
    label = str(score)
    if color:
        return f"{_BAND_COLORS[score_band(score)]}{label}{_RESET}"
    return label


def _cells(row: UsageReportRow) -> list[str]:
    return [
        row.name,
        row.slug,
        "yes" if row.is_active else "no",
        *(str(row.count_for(kind)) for kind in ProbeKind),
        str(row.usage_score),
    ]


def render_text(result: AnalysisResult, color: bool = True) -> str:
    """Produce a human-friendly usage table."""
    lines: list[str] = []

    lines.append("=" * 60)
    lines.append(f"Plugin Usage Audit (usageaudit {usageaudit.__version__})")
    lines.append("=" * 60)
    lines.append(
        "Estimated usage per plugin from options, meta, content, tables and cron."
    )
    lines.append("")

    if not result.rows:
        lines.append("No plugins found.")
    else:
        table = [_cells(r) for r in result.rows]
        widths = [
            max(len(_COLUMNS[i]), *(len(cells[i]) for cells in table))
            for i in range(len(_COLUMNS))
        ]
        lines.append("  ".join(h.ljust(w) for h, w in zip(_COLUMNS, widths)).rstrip())
        lines.append("  ".join("-" * w for w in widths))
        for row, cells in zip(result.rows, table):
            # Score is last; pad before colouring so escapes don't skew widths.
            body = "  ".join(c.ljust(w) for c, w in zip(cells[:-1], widths[:-1]))
            lines.append(f"{body}  {_score_label(row.usage_score, color)}")

    if result.warnings:
        lines.append("")
        lines.append(f"Warnings ({len(result.warnings)}):")
        for w in result.warnings:
            lines.append(f"  ! [{w.kind}] {w.message}")

    lines.append("")
    lines.append("-" * 60)
    lines.append("Interpretation:")
    for text in INTERPRETATION:
        lines.append(f"  • {text}")
    lines.append("=" * 60)

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# JSON output
# ---------------------------------------------------------------------------


def _row_to_dict(row: UsageReportRow) -> dict[str, Any]:
    return {
        "name": row.name,
        "slug": row.slug,
        "install_path": row.install_path,
        "is_active": row.is_active,
        "options_count": row.options_count,
        "metadata_count": row.metadata_count,
        "content_count": row.content_count,
        "tables_count": row.tables_count,
        "cron_count": row.cron_count,
        "usage_score": row.usage_score,
        "band": score_band(row.usage_score),
    }


def render_json(result: AnalysisResult) -> str:
    """Produce stable JSON output (rows in ranked order)."""
    bands = [score_band(r.usage_score) for r in result.rows]
    doc: dict[str, Any] = {
        "tool": "usageaudit",
        "version": usageaudit.__version__,
        "summary": {
            "total": len(result.rows),
            "active": sum(1 for r in result.rows if r.is_active),
            "used": bands.count("used"),
            "maybe": bands.count("maybe"),
            "unused": bands.count("unused"),
        },
        "rows": [_row_to_dict(r) for r in result.rows],
        "warnings": [
            {
                "kind": w.kind,
                "install_path": w.install_path,
                "probe": str(w.probe) if w.probe else None,
                "message": w.message,
            }
            for w in result.warnings
        ],
    }
    return json.dumps(doc, indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# CSV export
# ---------------------------------------------------------------------------

CSV_HEADER = (
    "Plugin Name",
    "Slug",
    "Plugin File",
    "Active",
    "Options Count",
    "Postmeta Count",
    "Content Count",
    "Tables Count",
    "Cron Count",
    "Usage Score",
)


def write_csv(result: AnalysisResult, out: TextIO) -> None:
    """Write the header line, then one line per row in ranked order."""
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for row in result.rows:
        values = list(row.as_record())
        values[3] = "yes" if row.is_active else "no"
        writer.writerow(values)


def render_csv(result: AnalysisResult) -> str:
    buf = io.StringIO()
    write_csv(result, buf)
    return buf.getvalue()


def csv_filename(now: datetime | None = None) -> str:
    """Timestamped export name, e.g. ``plugin-usage-audit-2024-01-31-09-05-00.csv``."""
    now = now or datetime.now()
    return f"plugin-usage-audit-{now:%Y-%m-%d-%H-%M-%S}.csv"


def resolve_output_path(target: str | Path, fmt: str, now: datetime | None = None) -> Path:
    """A directory *target* gets a timestamped file name for CSV exports."""
    p = Path(target).expanduser()
    if p.is_dir():
        if fmt == "csv":
            return p / csv_filename(now)
        return p / f"plugin-usage-audit.{'json' if fmt == 'json' else 'txt'}"
    return p


def render(result: AnalysisResult, fmt: str = "text", color: bool = True) -> str:
    if fmt == "json":
        return render_json(result)
    if fmt == "csv":
        return render_csv(result)
    return render_text(result, color=color)
