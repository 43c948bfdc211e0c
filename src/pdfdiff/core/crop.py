"""Crop rendered pages to their non-white content."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .types import Bitmap, BoundingBox

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 10


def background_mask(bitmap: Bitmap, tolerance: int = DEFAULT_TOLERANCE) -> np.ndarray:
    """Return a ``(height, width)`` mask, ``True`` where the pixel is near white.

    Every channel, alpha included for RGBA, has to be within ``tolerance`` of
    255 for the pixel to count as background.
    """

    if not 0 <= tolerance <= 255:
        raise ValueError(f"tolerance must be in [0, 255], got {tolerance}")
    return np.all(bitmap.pixels >= 255 - tolerance, axis=2)


def _first_true(flags: np.ndarray) -> int:
    return int(np.argmax(flags))


def content_bbox(bitmap: Bitmap, tolerance: int = DEFAULT_TOLERANCE) -> Optional[BoundingBox]:
    """Return the box enclosing all non-background pixels, ``None`` when blank."""

    if bitmap.is_empty():
        return None
    content = ~background_mask(bitmap, tolerance)
    rows = content.any(axis=1)
    if not rows.any():
        return None
    cols = content.any(axis=0)

    # each edge is scanned inwards on its own
    top = _first_true(rows)
    bottom = bitmap.height - _first_true(rows[::-1])
    left = _first_true(cols)
    right = bitmap.width - _first_true(cols[::-1])
    return BoundingBox(left, top, right, bottom)


def crop(bitmap: Bitmap, box: BoundingBox) -> Bitmap:
    """Return a new bitmap holding the pixels inside ``box``."""

    if not box.fits(bitmap.width, bitmap.height):
        raise ValueError(f"{box} does not fit a {bitmap.width}x{bitmap.height} bitmap")
    return Bitmap(bitmap.pixels[box.top : box.bottom, box.left : box.right].copy())


def crop_to_content(bitmap: Bitmap, tolerance: int = DEFAULT_TOLERANCE) -> Bitmap:
    """Crop ``bitmap`` to its content bounding box.

    Blank pages have no content box; they come back as an unmodified copy so
    that they can still be diffed.
    """

    box = content_bbox(bitmap, tolerance)
    if box is None:
        logger.debug("No content within tolerance %d; keeping %dx%d page", tolerance, *bitmap.size)
        return bitmap.copy()
    return crop(bitmap, box)
