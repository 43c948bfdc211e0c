"""JSON report helpers."""
from __future__ import annotations

import json
from pathlib import Path

from .core.types import RunReport
from .errors import WriteFailure


def write_json_report(report: RunReport, path: str | Path) -> Path:
    out_path = Path(path)
    data = report.to_dict()
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with out_path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, ensure_ascii=False, indent=2)
    except OSError as exc:
        raise WriteFailure(f"Could not write report {out_path}: {exc}") from exc
    return out_path


def format_summary(report: RunReport) -> str:
    """Plain text summary printed by the command line."""

    lines = [f"page {page.page_index + 1}: change {page.change_score * 100:.2f}%" for page in report.pages]
    for failure in report.failures:
        lines.append(f"page {failure.page_index + 1}: skipped ({failure.kind}) {failure.message}")
    lines.extend(f"warning: {warning}" for warning in report.warnings)
    lines.append(f"{report.pages_processed} pages processed, {report.pages_skipped} skipped")
    return "\n".join(lines)
