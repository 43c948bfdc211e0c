"""Pixel level comparison of two page bitmaps."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np
from skimage.metrics import structural_similarity

from ..config import validate_sensitivity
from ..errors import DiffError, EmptyInput
from ..utils.image_ops import common_canvas, luminance, pad_to_canvas, render_highlights, to_rgb
from .types import Bitmap, DiffResult

logger = logging.getLogger(__name__)

SSIM_WINDOW = 7
SSIM_MAX_SIDE = 1000


@dataclass
class _DiffMasks:
    changed: np.ndarray
    added: np.ndarray
    removed: np.ndarray


def change_magnitude(rgb_a: np.ndarray, rgb_b: np.ndarray) -> np.ndarray:
    """Per pixel difference in ``[0, 1]``: the largest channel delta over 255."""

    abs_diff = cv2.absdiff(np.ascontiguousarray(rgb_a), np.ascontiguousarray(rgb_b))
    return abs_diff.max(axis=2).astype(np.float32) / 255.0


def _compute_masks(
    rgb_old: np.ndarray, rgb_new: np.ndarray, gray_old: np.ndarray, gray_new: np.ndarray, sensitivity: float
) -> _DiffMasks:
    # strictly greater: sensitivity 1.0 flags nothing, identical pixels never count
    changed = change_magnitude(rgb_old, rgb_new) > sensitivity
    darker = gray_new < gray_old
    return _DiffMasks(changed=changed, added=changed & darker, removed=changed & ~darker)


def _downscale_for_ssim(gray: np.ndarray) -> np.ndarray:
    height, width = gray.shape
    scale = SSIM_MAX_SIDE / max(height, width)
    if scale >= 1.0:
        return gray
    size = (max(1, round(width * scale)), max(1, round(height * scale)))
    return cv2.resize(gray, size, interpolation=cv2.INTER_AREA)


def _compute_ssim(gray_a: np.ndarray, gray_b: np.ndarray) -> Optional[float]:
    """Structural similarity of two grayscale pages, at most SSIM_MAX_SIDE px per side."""

    gray_a = _downscale_for_ssim(gray_a)
    gray_b = _downscale_for_ssim(gray_b)
    smallest = min(gray_a.shape)
    win_size = min(SSIM_WINDOW, smallest if smallest % 2 else smallest - 1)
    if win_size < 3:
        return None
    score = structural_similarity(gray_a, gray_b, win_size=win_size, data_range=255)
    return float(score)


def diff(bitmap_a: Bitmap, bitmap_b: Bitmap, sensitivity: float, *, page_index: int = 0) -> DiffResult:
    """Compare ``bitmap_a`` (old) against ``bitmap_b`` (new).

    Both bitmaps are padded with white, top-left aligned, to the larger
    canvas. A pixel is flagged when its largest channel difference, scaled to
    ``[0, 1]``, exceeds ``sensitivity``; lower values flag more pixels.

    The returned bitmap shows the new page faded to light grey, with added
    ink painted green and removed ink painted red. Numeric or allocation
    errors past input validation are raised as :class:`DiffError`.
    """

    sensitivity = validate_sensitivity(sensitivity)
    for label, bitmap in (("old", bitmap_a), ("new", bitmap_b)):
        if bitmap.is_empty():
            raise EmptyInput(f"Page {page_index}: {label} bitmap has no pixels ({bitmap.width}x{bitmap.height})")

    try:
        return _diff_pixels(bitmap_a, bitmap_b, sensitivity, page_index)
    except (MemoryError, cv2.error, ValueError) as exc:
        raise DiffError(f"Page {page_index}: comparison failed ({type(exc).__name__}: {exc})") from exc


def _diff_pixels(bitmap_a: Bitmap, bitmap_b: Bitmap, sensitivity: float, page_index: int) -> DiffResult:
    width, height = common_canvas(bitmap_a.size, bitmap_b.size)
    rgb_old = pad_to_canvas(to_rgb(bitmap_a), width, height)
    rgb_new = pad_to_canvas(to_rgb(bitmap_b), width, height)
    if bitmap_a.size != bitmap_b.size:
        logger.debug(
            "Page %d: padded %dx%d and %dx%d to %dx%d",
            page_index, bitmap_a.width, bitmap_a.height, bitmap_b.width, bitmap_b.height, width, height,
        )

    gray_old = luminance(rgb_old)
    gray_new = luminance(rgb_new)
    masks = _compute_masks(rgb_old, rgb_new, gray_old, gray_new, sensitivity)
    image = render_highlights(gray_new, masks.added, masks.removed)

    return DiffResult(
        page_index=page_index,
        bitmap=Bitmap(image),
        mask=masks.changed,
        changed_pixels=int(np.count_nonzero(masks.changed)),
        total_pixels=int(masks.changed.size),
        old_size=bitmap_a.size,
        new_size=bitmap_b.size,
        similarity=_compute_ssim(gray_old, gray_new),
    )
