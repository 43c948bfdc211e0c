"""Value types shared by the rasterize -> crop -> diff pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import numpy as np

Color = Tuple[int, int, int]

WHITE: Color = (255, 255, 255)


@dataclass(frozen=True, eq=False)
class Bitmap:
    """Row-major RGB or RGBA raster, shape ``(height, width, channels)``."""

    pixels: np.ndarray

    def __post_init__(self) -> None:
        pixels = self.pixels
        if not isinstance(pixels, np.ndarray):
            raise TypeError("Bitmap pixels must be a numpy array")
        if pixels.dtype != np.uint8:
            raise TypeError(f"Bitmap pixels must be uint8, got {pixels.dtype}")
        if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
            raise ValueError(f"Bitmap pixels must have shape (h, w, 3|4), got {pixels.shape}")

    @classmethod
    def blank(cls, width: int, height: int, color: Tuple[int, ...] = WHITE) -> "Bitmap":
        """Return a ``width`` x ``height`` bitmap filled with ``color``."""

        channels = len(color)
        pixels = np.empty((height, width, channels), dtype=np.uint8)
        pixels[...] = np.asarray(color, dtype=np.uint8)
        return cls(pixels)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def channels(self) -> int:
        return int(self.pixels.shape[2])

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def copy(self) -> "Bitmap":
        return Bitmap(self.pixels.copy())


@dataclass(frozen=True)
class BoundingBox:
    """Pixel rectangle ``[left, right) x [top, bottom)``."""

    left: int
    top: int
    right: int
    bottom: int

    def __post_init__(self) -> None:
        if not (0 <= self.left < self.right and 0 <= self.top < self.bottom):
            raise ValueError(
                f"Degenerate bounding box ({self.left}, {self.top}, {self.right}, {self.bottom})"
            )

    @classmethod
    def full(cls, bitmap: Bitmap) -> "BoundingBox":
        return cls(0, 0, bitmap.width, bitmap.height)

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    def fits(self, width: int, height: int) -> bool:
        return self.right <= width and self.bottom <= height


@dataclass(frozen=True)
class PagePair:
    """Indices of the old and new page compared together."""

    old_index: int
    new_index: int


@dataclass(frozen=True, eq=False)
class DiffResult:
    """Outcome of diffing one page pair."""

    page_index: int
    bitmap: Bitmap
    mask: np.ndarray
    changed_pixels: int
    total_pixels: int
    old_size: Tuple[int, int] = (0, 0)
    new_size: Tuple[int, int] = (0, 0)
    similarity: Optional[float] = None

    @property
    def change_score(self) -> float:
        if self.total_pixels == 0:
            return 0.0
        return self.changed_pixels / self.total_pixels

    @property
    def has_changes(self) -> bool:
        return self.changed_pixels > 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "page_index": self.page_index,
            "change_score": self.change_score,
            "changed_pixels": self.changed_pixels,
            "total_pixels": self.total_pixels,
            "width": self.bitmap.width,
            "height": self.bitmap.height,
            "old_size": list(self.old_size),
            "new_size": list(self.new_size),
            "similarity": self.similarity,
        }


@dataclass(frozen=True)
class PageFailure:
    """A page that could not be diffed."""

    page_index: int
    kind: str
    message: str

    def to_dict(self) -> Dict[str, object]:
        return {"page_index": self.page_index, "kind": self.kind, "message": self.message}


@dataclass
class PageSummary:
    page_index: int
    change_score: float
    similarity: Optional[float] = None
    output_path: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "page_index": self.page_index,
            "change_score": self.change_score,
            "similarity": self.similarity,
            "output_path": self.output_path,
        }


@dataclass
class RunReport:
    """Summary of a finished comparison run."""

    old_pdf: str
    new_pdf: str
    params: Dict[str, object]
    pages: list = field(default_factory=list)
    failures: list = field(default_factory=list)
    warnings: list = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def pages_processed(self) -> int:
        return len(self.pages)

    @property
    def pages_skipped(self) -> int:
        return len(self.failures)

    def to_dict(self) -> Dict[str, object]:
        return {
            "old_pdf": self.old_pdf,
            "new_pdf": self.new_pdf,
            "params": self.params,
            "pages_processed": self.pages_processed,
            "pages_skipped": self.pages_skipped,
            "pages": [page.to_dict() for page in self.pages],
            "failures": [failure.to_dict() for failure in self.failures],
            "warnings": list(self.warnings),
            "elapsed": self.elapsed,
        }
