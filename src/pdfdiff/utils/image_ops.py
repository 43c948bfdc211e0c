from typing import Tuple

import cv2
import numpy as np

from ..core.types import WHITE, Bitmap, Color
from ..errors import DimensionMismatchUnresolvable

ADDED_COLOR: Color = (0, 186, 0)
REMOVED_COLOR: Color = (214, 0, 0)
FADE_OPACITY = 0.25


def to_rgb(bitmap: Bitmap) -> np.ndarray:
    """Return the RGB pixels of ``bitmap``, compositing RGBA over white."""

    pixels = bitmap.pixels
    if bitmap.channels == 3:
        return pixels
    alpha = pixels[..., 3:4].astype(np.float32) / 255.0
    rgb = pixels[..., :3].astype(np.float32) * alpha + 255.0 * (1.0 - alpha)
    return np.clip(np.rint(rgb), 0, 255).astype(np.uint8)


def pad_to_canvas(pixels: np.ndarray, width: int, height: int, fill: Color = WHITE) -> np.ndarray:
    """Place ``pixels`` at the top-left of a ``width`` x ``height`` canvas.

    The rest of the canvas is filled with ``fill``. Shrinking is not
    supported: a canvas smaller than the image raises
    :class:`DimensionMismatchUnresolvable`.
    """

    src_height, src_width = pixels.shape[:2]
    if width < src_width or height < src_height:
        raise DimensionMismatchUnresolvable(
            f"Cannot pad {src_width}x{src_height} image onto {width}x{height} canvas"
        )
    if (src_width, src_height) == (width, height):
        return pixels
    canvas = np.empty((height, width) + pixels.shape[2:], dtype=pixels.dtype)
    canvas[...] = np.asarray(fill, dtype=pixels.dtype)
    canvas[:src_height, :src_width] = pixels
    return canvas


def common_canvas(*sizes: Tuple[int, int]) -> Tuple[int, int]:
    """Smallest ``(width, height)`` holding every size in ``sizes``."""

    return max(w for w, _ in sizes), max(h for _, h in sizes)


def luminance(rgb: np.ndarray) -> np.ndarray:
    return cv2.cvtColor(np.ascontiguousarray(rgb), cv2.COLOR_RGB2GRAY)


def fade(gray: np.ndarray, opacity: float = FADE_OPACITY) -> np.ndarray:
    """Blend a grayscale image toward white; ``opacity`` of the ink is kept."""

    white = np.full_like(gray, 255)
    return cv2.addWeighted(gray, opacity, white, 1.0 - opacity, 0)


def render_highlights(
    base_gray: np.ndarray,
    added: np.ndarray,
    removed: np.ndarray,
    *,
    added_color: Color = ADDED_COLOR,
    removed_color: Color = REMOVED_COLOR,
) -> np.ndarray:
    """Return an RGB image: faded ``base_gray`` with the masks painted on top."""

    faded = fade(base_gray)
    out = cv2.cvtColor(faded, cv2.COLOR_GRAY2RGB)
    out[added] = added_color
    out[removed] = removed_color
    return out
