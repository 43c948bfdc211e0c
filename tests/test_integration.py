import json
import os
import subprocess
import sys
from pathlib import Path

import cv2
import fitz
import pytest

from pdfdiff.__main__ import EXIT_FATAL, EXIT_OK, EXIT_PARTIAL, main


def _make_pdf(path: Path, pages) -> None:
    doc = fitz.open()
    for rectangles in pages:
        page = doc.new_page(width=200, height=200)
        for rect in rectangles:
            page.draw_rect(fitz.Rect(*rect), color=(0, 0, 0), fill=None)
    doc.save(str(path))
    doc.close()


def run_cli(tmp_path: Path, args):
    cmd = [sys.executable, "-m", "pdfdiff"] + args
    env = dict(os.environ)
    existing = env.get("PYTHONPATH", "")
    src_path = str(Path(__file__).resolve().parents[1] / "src")
    env["PYTHONPATH"] = f"{src_path}{os.pathsep}{existing}" if existing else src_path
    return subprocess.run(cmd, cwd=tmp_path, env=env, capture_output=True, text=True)


def test_cli_detects_difference(tmp_path):
    old_pdf = tmp_path / "old.pdf"
    new_pdf = tmp_path / "new.pdf"
    _make_pdf(old_pdf, [[(40, 40, 140, 140)]])
    _make_pdf(new_pdf, [[(40, 40, 140, 140), (120, 120, 170, 170)]])
    out_dir = tmp_path / "diffs"

    proc = run_cli(
        tmp_path,
        ["--old", str(old_pdf), "--new", str(new_pdf), "-d", str(out_dir), "--dpi", "100"],
    )

    assert proc.returncode == EXIT_OK, proc.stderr
    assert "1 pages processed, 0 skipped" in proc.stdout
    diff_image = cv2.imread(str(out_dir / "diff_page_1.png"), cv2.IMREAD_UNCHANGED)
    assert diff_image is not None and diff_image.shape[2] == 3
    data = json.loads((out_dir / "report.json").read_text(encoding="utf-8"))
    assert data["pages"][0]["change_score"] > 0


def test_main_identical_pages(tmp_path, capsys):
    pdf = tmp_path / "same.pdf"
    _make_pdf(pdf, [[(40, 40, 140, 140)], [(10, 10, 60, 60)]])
    out_dir = tmp_path / "out"

    code = main(["-o", str(pdf), "-n", str(pdf), "-d", str(out_dir), "--dpi", "72", "--report", ""])

    assert code == EXIT_OK
    captured = capsys.readouterr()
    assert "page 1: change 0.00%" in captured.out
    assert "page 2: change 0.00%" in captured.out
    assert (out_dir / "diff_page_2.png").exists()
    assert not (out_dir / "report.json").exists()


def test_main_page_count_mismatch_warns(tmp_path, capsys):
    old_pdf = tmp_path / "old.pdf"
    new_pdf = tmp_path / "new.pdf"
    page = [(40, 40, 140, 140)]
    _make_pdf(old_pdf, [page, page, page])
    _make_pdf(new_pdf, [page, page])

    code = main(["-o", str(old_pdf), "-n", str(new_pdf), "-d", str(tmp_path / "out"), "--dpi", "72"])

    assert code == EXIT_OK
    out = capsys.readouterr().out
    assert "warning: Page count mismatch" in out
    assert "2 pages processed" in out


def test_main_invalid_sensitivity_is_usage_error(tmp_path):
    pdf = tmp_path / "same.pdf"
    _make_pdf(pdf, [[]])
    out_dir = tmp_path / "out"

    with pytest.raises(SystemExit) as excinfo:
        main(["-o", str(pdf), "-n", str(pdf), "-d", str(out_dir), "--sensitivity", "1.5"])

    assert excinfo.value.code == 2
    assert not out_dir.exists()


def test_main_missing_input_is_fatal(tmp_path, capsys):
    pdf = tmp_path / "same.pdf"
    _make_pdf(pdf, [[]])
    out_dir = tmp_path / "out"

    code = main(["-o", str(tmp_path / "nope.pdf"), "-n", str(pdf), "-d", str(out_dir)])

    assert code == EXIT_FATAL
    assert "old PDF" in capsys.readouterr().err
    assert not out_dir.exists()


def test_version_flag(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--version"])
    assert excinfo.value.code == 0
    assert "pdfdiff" in capsys.readouterr().out


def test_main_output_dir_is_a_file(tmp_path, capsys):
    pdf = tmp_path / "same.pdf"
    _make_pdf(pdf, [[(40, 40, 140, 140)]])
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")

    code = main(["-o", str(pdf), "-n", str(pdf), "-d", str(blocker), "--dpi", "72"])

    assert code == EXIT_PARTIAL
    out = capsys.readouterr().out
    assert "page 1: skipped (write_failure)" in out
    assert "warning: Could not write report" in out
    assert "0 pages processed, 1 skipped" in out
