"""Visual page-by-page diffs between two PDF revisions."""

from __future__ import annotations

from .config import RunConfig
from .core.align import PageAlignment, align
from .core.crop import content_bbox, crop_to_content
from .core.diff import diff
from .core.engine import Document, RenderEngine
from .core.types import Bitmap, BoundingBox, DiffResult, PageFailure, RunReport
from .pipeline import PipelineRun, compare_files, run

__all__ = [
    "align",
    "Bitmap",
    "BoundingBox",
    "compare_files",
    "content_bbox",
    "crop_to_content",
    "diff",
    "DiffResult",
    "Document",
    "PageAlignment",
    "PageFailure",
    "PipelineRun",
    "RenderEngine",
    "run",
    "RunConfig",
    "RunReport",
]

__version__ = "0.1.0"
