import numpy as np
import pytest

from pdfdiff.core.types import Bitmap
from pdfdiff.errors import DimensionMismatchUnresolvable
from pdfdiff.utils.image_ops import common_canvas, fade, pad_to_canvas, to_rgb


def test_pad_to_canvas_aligns_top_left():
    pixels = np.zeros((2, 3, 3), dtype=np.uint8)
    padded = pad_to_canvas(pixels, 5, 4)

    assert padded.shape == (4, 5, 3)
    assert (padded[:2, :3] == 0).all()
    assert (padded[2:, :] == 255).all()
    assert (padded[:, 3:] == 255).all()


def test_pad_to_canvas_same_size_is_unchanged():
    pixels = np.zeros((2, 3, 3), dtype=np.uint8)
    assert pad_to_canvas(pixels, 3, 2) is pixels


def test_pad_to_smaller_canvas_is_unresolvable():
    pixels = np.zeros((4, 4, 3), dtype=np.uint8)
    with pytest.raises(DimensionMismatchUnresolvable):
        pad_to_canvas(pixels, 3, 10)


def test_common_canvas():
    assert common_canvas((10, 2), (3, 7)) == (10, 7)


def test_to_rgb_blends_alpha_with_white():
    bitmap = Bitmap(np.array([[[0, 0, 0, 128], [10, 20, 30, 255]]], dtype=np.uint8))
    rgb = to_rgb(bitmap)

    assert rgb.shape == (1, 2, 3)
    assert abs(int(rgb[0, 0, 0]) - 127) <= 1
    assert rgb[0, 1].tolist() == [10, 20, 30]


def test_fade_keeps_white_and_lightens_ink():
    gray = np.array([[255, 0]], dtype=np.uint8)
    faded = fade(gray)

    assert faded[0, 0] == 255
    assert 180 <= faded[0, 1] <= 200
