"""PyMuPDF rendering engine: document loading and page rasterization.

The engine is an explicit handle. Create one per run with
:meth:`RenderEngine.initialize`, pass it to whoever needs to load or render,
and close it when done. Every call into PyMuPDF goes through the engine lock
so rasterization may be requested from several threads.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import List, Optional, Tuple

import fitz  # type: ignore
import numpy as np

from ..config import validate_dpi
from ..errors import EngineUnavailable, LoadFailure, PageIndexOutOfRange, RenderFailure
from .types import Bitmap

logger = logging.getLogger(__name__)

POINTS_PER_INCH = 72.0
MIN_BINDING_VERSION = (1, 22)


def _binding_version() -> Tuple[int, ...]:
    version_str = getattr(fitz, "VersionBind", None) or fitz.version[0]
    parts: List[int] = []
    for part in str(version_str).split(".")[:2]:
        digits = "".join(ch for ch in part if ch.isdigit())
        parts.append(int(digits or 0))
    return tuple(parts)


class Document:
    """Loaded PDF; only the engine that produced it may render it."""

    def __init__(self, engine: "RenderEngine", handle: fitz.Document, path: Path):
        self._engine = engine
        self._handle = handle
        self.path = path
        self.page_count = len(handle)

    @property
    def engine(self) -> "RenderEngine":
        return self._engine

    @property
    def closed(self) -> bool:
        return self._handle is None

    def page_size_pts(self, page_index: int) -> Tuple[float, float]:
        """Return ``(width, height)`` of a page in PDF points."""

        self._check_index(page_index)
        with self._engine.lock:
            rect = self._require_handle()[page_index].rect
            return float(rect.width), float(rect.height)

    def page_size_inches(self, page_index: int) -> Tuple[float, float]:
        width, height = self.page_size_pts(page_index)
        return width / POINTS_PER_INCH, height / POINTS_PER_INCH

    def close(self) -> None:
        if self._handle is None:
            return
        with self._engine.lock:
            self._handle.close()
        self._handle = None

    def __enter__(self) -> "Document":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Document(path={str(self.path)!r}, page_count={self.page_count})"

    def _check_index(self, page_index: int) -> None:
        if not 0 <= page_index < self.page_count:
            raise PageIndexOutOfRange(
                f"Page index {page_index} out of range for '{self.path}' ({self.page_count} pages)"
            )

    def _require_handle(self) -> fitz.Document:
        if self._handle is None:
            raise RenderFailure(f"Document '{self.path}' is closed")
        return self._handle


class RenderEngine:
    """Handle over the PyMuPDF binding."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self._documents: List[Document] = []
        self._closed = False

    @classmethod
    def initialize(cls) -> "RenderEngine":
        """Check the binding and return a ready engine.

        Raises :class:`EngineUnavailable` when PyMuPDF is too old.
        """

        try:
            version = _binding_version()
        except (AttributeError, IndexError, ValueError) as exc:
            raise EngineUnavailable("Could not determine the PyMuPDF version") from exc
        if version < MIN_BINDING_VERSION:
            required = ".".join(str(p) for p in MIN_BINDING_VERSION)
            found = ".".join(str(p) for p in version)
            raise EngineUnavailable(f"PyMuPDF >={required} required, found {found}")
        logger.debug("PyMuPDF %s ready", ".".join(str(p) for p in version))
        return cls()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, path) -> Document:
        """Open ``path`` and return a :class:`Document`."""

        self._check_open()
        pdf_path = Path(path)
        if not pdf_path.exists():
            raise LoadFailure(pdf_path, "file does not exist")
        if not pdf_path.is_file():
            raise LoadFailure(pdf_path, "not a regular file")

        with self.lock:
            try:
                handle = fitz.open(str(pdf_path))
            except Exception as exc:
                raise LoadFailure(pdf_path, f"cannot be parsed ({exc})") from exc
            try:
                if not handle.is_pdf:
                    raise LoadFailure(pdf_path, "unsupported format (not a PDF)")
                if handle.needs_pass:
                    raise LoadFailure(pdf_path, "document is encrypted")
                if len(handle) == 0:
                    raise LoadFailure(pdf_path, "document has no pages")
            except LoadFailure:
                handle.close()
                raise
            document = Document(self, handle, pdf_path)

        self._documents.append(document)
        logger.debug("Loaded %s (%d pages)", pdf_path, document.page_count)
        return document

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def rasterize(self, document: Document, page_index: int, dpi: float) -> Bitmap:
        """Render one page of ``document`` into an RGB :class:`Bitmap`.

        The page is scaled by ``dpi / 72`` so the bitmap measures
        ``page_inches * dpi`` pixels on each side.
        """

        self._check_open()
        if document.engine is not self:
            raise RenderFailure("Document was loaded by a different engine")
        validate_dpi(dpi)
        document._check_index(page_index)

        scale = dpi / POINTS_PER_INCH
        matrix = fitz.Matrix(scale, scale)
        with self.lock:
            handle = document._require_handle()
            pix: Optional[fitz.Pixmap] = None
            try:
                page = handle[page_index]
                pix = page.get_pixmap(matrix=matrix, colorspace=fitz.csRGB, alpha=False)
                samples = np.frombuffer(pix.samples, dtype=np.uint8)
                rows = samples.reshape(pix.height, pix.stride)[:, : pix.width * pix.n]
                pixels = rows.reshape(pix.height, pix.width, pix.n).copy()
            except Exception as exc:
                raise RenderFailure(
                    f"Failed to render page {page_index} of '{document.path}' at {dpi:g} dpi: {exc}"
                ) from exc
            finally:
                pix = None

        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise RenderFailure(f"Page {page_index} of '{document.path}' rendered to an empty bitmap")
        return Bitmap(pixels)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close every document still open and release the engine."""

        if self._closed:
            return
        for document in self._documents:
            document.close()
        self._documents.clear()
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "RenderEngine":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _check_open(self) -> None:
        if self._closed:
            raise EngineUnavailable("Render engine has been closed")
