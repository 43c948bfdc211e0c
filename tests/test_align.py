import logging
from types import SimpleNamespace

import pytest

from pdfdiff.core.align import PageAlignment, align
from pdfdiff.core.types import PagePair


def test_equal_counts_pair_every_page():
    alignment = PageAlignment(2, 2)

    assert list(alignment) == [PagePair(0, 0), PagePair(1, 1)]
    assert alignment.is_complete
    assert alignment.warning is None


def test_longer_old_document():
    alignment = PageAlignment(3, 2)

    assert len(alignment) == 2
    assert [(p.old_index, p.new_index) for p in alignment] == [(0, 0), (1, 1)]
    assert alignment.unmatched_old == (2,)
    assert alignment.unmatched_new == ()
    assert "old document page 3 (index 2) not compared" in alignment.warning


def test_longer_new_document_lists_range():
    alignment = PageAlignment(1, 4)

    assert alignment.unmatched_new == (1, 2, 3)
    assert "new document pages 2-4 (indices 1-3) not compared" in alignment.warning


def test_alignment_is_restartable():
    alignment = PageAlignment(5, 3)
    assert list(alignment) == list(alignment)


def test_empty_alignment():
    assert list(PageAlignment(0, 0)) == []


def test_negative_counts_rejected():
    with pytest.raises(ValueError):
        PageAlignment(-1, 2)


def test_align_logs_mismatch(caplog):
    old_doc = SimpleNamespace(page_count=3)
    new_doc = SimpleNamespace(page_count=2)

    with caplog.at_level(logging.WARNING, logger="pdfdiff.core.align"):
        alignment = align(old_doc, new_doc)

    assert len(alignment) == 2
    assert "Page count mismatch" in caplog.text


def test_align_matching_counts_is_silent(caplog):
    with caplog.at_level(logging.WARNING):
        align(SimpleNamespace(page_count=2), SimpleNamespace(page_count=2))
    assert caplog.text == ""
