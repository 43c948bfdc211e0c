"""Custom exceptions used across pdfdiff.

Fatal errors abort a run before any page is rendered. Page level errors
derive from :class:`PageError`; the pipeline records them and keeps going.
"""

from __future__ import annotations

__all__ = [
    "PdfDiffError",
    "ConfigurationError",
    "InvalidDpi",
    "InvalidSensitivity",
    "LoadFailure",
    "EngineUnavailable",
    "PageError",
    "PageIndexOutOfRange",
    "RenderFailure",
    "DiffError",
    "EmptyInput",
    "DimensionMismatchUnresolvable",
    "WriteFailure",
]


class PdfDiffError(Exception):
    """Base class for every error raised by pdfdiff."""


# ---------------------------------------------------------------------------
# Fatal errors
# ---------------------------------------------------------------------------


class ConfigurationError(PdfDiffError, ValueError):
    """Raised when a configuration value is out of range or malformed."""


class InvalidDpi(ConfigurationError):
    """Raised when the rendering DPI is not a positive number."""


class InvalidSensitivity(ConfigurationError):
    """Raised when the sensitivity threshold is outside ``[0, 1]``."""


class LoadFailure(PdfDiffError):
    """Raised when a PDF cannot be opened.

    ``role`` is ``"old"`` or ``"new"`` when the document was loaded as one
    side of a comparison, ``None`` otherwise.
    """

    def __init__(self, path, reason: str, role: str | None = None):
        self.path = str(path)
        self.reason = reason
        self.role = role
        label = f"{role} PDF" if role else "PDF"
        super().__init__(f"Failed to load {label} '{self.path}': {reason}")

    def with_role(self, role: str) -> "LoadFailure":
        return LoadFailure(self.path, self.reason, role=role)


class EngineUnavailable(PdfDiffError):
    """Raised when the PDF rendering engine cannot be initialised."""


# ---------------------------------------------------------------------------
# Page level errors
# ---------------------------------------------------------------------------


class PageError(PdfDiffError):
    """Error confined to a single page; recorded as a partial failure."""

    kind = "page_error"


class PageIndexOutOfRange(PageError, IndexError):
    kind = "page_index_out_of_range"


class RenderFailure(PageError):
    kind = "render_failure"


class DiffError(PageError):
    kind = "diff_failure"


class EmptyInput(DiffError):
    kind = "empty_input"


class DimensionMismatchUnresolvable(DiffError):
    kind = "dimension_mismatch"


class WriteFailure(PageError):
    kind = "write_failure"
