"""Helpers for file input/output."""

from pathlib import Path

import cv2

from ..core.types import DiffResult
from ..errors import WriteFailure


def diff_image_name(page_index: int) -> str:
    return f"diff_page_{page_index + 1}.png"


def write_diff_image(result: DiffResult, output_dir) -> Path:
    """Write the diff bitmap of ``result`` as a PNG inside ``output_dir``."""

    out_dir = Path(output_dir)
    out_path = out_dir / diff_image_name(result.page_index)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        bgr = cv2.cvtColor(result.bitmap.pixels, cv2.COLOR_RGB2BGR)
        written = cv2.imwrite(str(out_path), bgr)
    except (OSError, cv2.error) as exc:
        raise WriteFailure(f"Could not write {out_path}: {exc}") from exc
    if not written:
        raise WriteFailure(f"Could not write {out_path}")
    return out_path

