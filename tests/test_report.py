import json

import pytest

from pdfdiff.core.types import PageFailure, PageSummary, RunReport
from pdfdiff.errors import WriteFailure
from pdfdiff.report import format_summary, write_json_report


def _report():
    report = RunReport(old_pdf="old.pdf", new_pdf="new.pdf", params={"dpi": 300})
    report.pages.append(PageSummary(page_index=0, change_score=0.0125, output_path="out/diff_page_1.png"))
    report.failures.append(PageFailure(page_index=1, kind="render_failure", message="corrupt page"))
    report.warnings.append("Page count mismatch (old: 3, new: 2); old document page 3 not compared")
    return report


def test_write_json_report_creates_parent(tmp_path):
    path = write_json_report(_report(), tmp_path / "nested" / "report.json")

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["pages_processed"] == 1
    assert data["pages_skipped"] == 1
    assert data["failures"][0] == {"page_index": 1, "kind": "render_failure", "message": "corrupt page"}
    assert data["pages"][0]["output_path"] == "out/diff_page_1.png"


def test_write_json_report_matches_dict(tmp_path):
    report = _report()
    path = write_json_report(report, tmp_path / "report.json")

    assert json.loads(path.read_text(encoding="utf-8")) == report.to_dict()


def test_write_json_report_into_a_file_fails(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(WriteFailure) as excinfo:
        write_json_report(_report(), blocker / "report.json")

    assert isinstance(excinfo.value.__cause__, OSError)
    assert excinfo.value.kind == "write_failure"


def test_format_summary():
    text = format_summary(_report())

    assert "page 1: change 1.25%" in text
    assert "page 2: skipped (render_failure)" in text
    assert "warning: Page count mismatch" in text
    assert text.endswith("1 pages processed, 1 skipped")
