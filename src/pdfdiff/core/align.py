"""Positional page pairing between two documents."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from .types import PagePair

logger = logging.getLogger(__name__)


def _format_pages(indices: Tuple[int, ...]) -> str:
    """Format zero based indices as 1-based page numbers, ranges collapsed.

    The zero based indices follow in parentheses, e.g. ``page 3 (index 2)``.
    """

    first, last = indices[0], indices[-1]
    if len(indices) == 1:
        return f"page {first + 1} (index {first})"
    return f"pages {first + 1}-{last + 1} (indices {first}-{last})"


@dataclass(frozen=True)
class PageAlignment:
    """Page ``i`` of the old document is paired with page ``i`` of the new one.

    Iterating yields :class:`PagePair` objects lazily; the alignment can be
    iterated again at any time.
    """

    old_count: int
    new_count: int

    def __post_init__(self) -> None:
        if self.old_count < 0 or self.new_count < 0:
            raise ValueError("Page counts must not be negative")

    def __iter__(self) -> Iterator[PagePair]:
        for index in range(len(self)):
            yield PagePair(index, index)

    def __len__(self) -> int:
        return min(self.old_count, self.new_count)

    @property
    def unmatched_old(self) -> Tuple[int, ...]:
        return tuple(range(len(self), self.old_count))

    @property
    def unmatched_new(self) -> Tuple[int, ...]:
        return tuple(range(len(self), self.new_count))

    @property
    def is_complete(self) -> bool:
        return self.old_count == self.new_count

    @property
    def warning(self) -> Optional[str]:
        """Human readable description of unmatched pages, if any."""

        if self.is_complete:
            return None
        if self.unmatched_old:
            side, unmatched = "old", self.unmatched_old
        else:
            side, unmatched = "new", self.unmatched_new
        return (
            f"Page count mismatch (old: {self.old_count}, new: {self.new_count}); "
            f"{side} document {_format_pages(unmatched)} not compared"
        )


def align(old_doc, new_doc) -> PageAlignment:
    """Pair the pages of two documents by position.

    Any object with a ``page_count`` attribute is accepted. A page count
    mismatch is logged as a warning; the matched prefix is still returned.
    """

    alignment = PageAlignment(old_doc.page_count, new_doc.page_count)
    if alignment.warning:
        logger.warning(alignment.warning)
    return alignment
