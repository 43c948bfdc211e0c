"""Rasterize -> crop -> diff pipeline over two PDF revisions.

:func:`run` drives the per-page work over already loaded documents and
yields results lazily. :func:`compare_files` is the full run used by the
command line: it validates the configuration, loads both inputs, writes one
PNG per page pair plus a JSON report and returns a :class:`RunReport`.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Deque, Iterator, List, Optional, Union

from .config import RunConfig
from .core.align import PageAlignment, align
from .core.crop import crop_to_content
from .core.diff import diff
from .core.engine import Document, RenderEngine
from .core.types import DiffResult, PageFailure, PagePair, PageSummary, RunReport
from .errors import LoadFailure, PageError, WriteFailure
from .report import write_json_report
from .utils.file_io import write_diff_image

logger = logging.getLogger(__name__)

PageOutcome = Union[DiffResult, PageFailure]


class PipelineRun:
    """Lazy, single pass iteration over the diff of every aligned page pair.

    Failed pages are not yielded; they are collected in :attr:`failures`.
    Page count mismatches end up in :attr:`warnings`.
    """

    def __init__(self, engine, old_doc, new_doc, config: RunConfig):
        self.engine = engine
        self.old_doc = old_doc
        self.new_doc = new_doc
        self.config = config.validate()
        self.alignment: PageAlignment = align(old_doc, new_doc)
        self.failures: List[PageFailure] = []
        self.warnings: List[str] = [self.alignment.warning] if self.alignment.warning else []
        self.completed = 0
        self._cancel = threading.Event()
        self._started = False

    def cancel(self) -> None:
        """Stop before the next page pair starts."""

        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def __iter__(self) -> Iterator[DiffResult]:
        if self._started:
            raise RuntimeError("A pipeline run can only be iterated once")
        self._started = True
        outcomes = self._run_parallel() if self.config.workers > 1 else self._run_sequential()
        for outcome in outcomes:
            if isinstance(outcome, PageFailure):
                self.failures.append(outcome)
                continue
            self.completed += 1
            yield outcome

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def _run_sequential(self) -> Iterator[PageOutcome]:
        for pair in self.alignment:
            if self.cancelled:
                logger.info("Run cancelled before page %d", pair.old_index + 1)
                return
            yield self._attempt(pair)

    def _run_parallel(self) -> Iterator[PageOutcome]:
        workers = self.config.workers
        pairs = iter(self.alignment)
        pending: Deque[Future] = deque()

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="pdfdiff") as pool:

            def submit_more() -> None:
                while len(pending) < workers and not self.cancelled:
                    pair = next(pairs, None)
                    if pair is None:
                        return
                    pending.append(pool.submit(self._attempt, pair))

            submit_more()
            while pending:
                yield pending.popleft().result()
                submit_more()
        if self.cancelled:
            logger.info("Run cancelled after %d pages", self.completed)

    # ------------------------------------------------------------------
    # Per page work
    # ------------------------------------------------------------------

    def _attempt(self, pair: PagePair) -> PageOutcome:
        try:
            return self.process_pair(pair)
        except PageError as exc:
            logger.warning("Skipping page %d: %s", pair.old_index + 1, exc)
            return PageFailure(page_index=pair.old_index, kind=exc.kind, message=str(exc))

    def process_pair(self, pair: PagePair) -> DiffResult:
        page_start = time.time()
        dpi = self.config.dpi
        tolerance = self.config.crop_tolerance

        old_bitmap = self.engine.rasterize(self.old_doc, pair.old_index, dpi)
        new_bitmap = self.engine.rasterize(self.new_doc, pair.new_index, dpi)
        old_bitmap = crop_to_content(old_bitmap, tolerance)
        new_bitmap = crop_to_content(new_bitmap, tolerance)
        result = diff(old_bitmap, new_bitmap, self.config.sensitivity, page_index=pair.old_index)

        logger.info(
            "page %d processed in %.2fs: %.4f%% changed",
            pair.old_index + 1,
            time.time() - page_start,
            result.change_score * 100.0,
        )
        return result


def run(engine, old_doc, new_doc, config: Optional[RunConfig] = None) -> PipelineRun:
    """Return a lazy run diffing every aligned page of two documents."""

    return PipelineRun(engine, old_doc, new_doc, config or RunConfig())


def _load(engine: RenderEngine, path, role: str) -> Document:
    try:
        return engine.load(path)
    except LoadFailure as exc:
        raise exc.with_role(role) from exc


def compare_files(
    old_pdf: Union[str, Path],
    new_pdf: Union[str, Path],
    config: Optional[RunConfig] = None,
    *,
    engine: Optional[RenderEngine] = None,
) -> RunReport:
    """Compare two PDF files and write the diff images and report.

    Configuration, engine and load errors are raised before any page is
    rendered. Page level errors end up in ``RunReport.failures``; a JSON
    report that cannot be written is noted in ``RunReport.warnings``.
    """

    config = (config or RunConfig()).validate()
    t_start = time.time()
    logger.debug("Comparing %s -> %s with %s", old_pdf, new_pdf, config.to_dict())

    owns_engine = engine is None
    if engine is None:
        engine = RenderEngine.initialize()
    output_dir = Path(config.output_dir)
    report = RunReport(old_pdf=str(old_pdf), new_pdf=str(new_pdf), params=config.to_dict())

    try:
        old_doc = _load(engine, old_pdf, "old")
        try:
            new_doc = _load(engine, new_pdf, "new")
        except LoadFailure:
            old_doc.close()
            raise
        logger.info("Loaded %d old and %d new pages", old_doc.page_count, new_doc.page_count)

        with old_doc, new_doc:
            pipeline = run(engine, old_doc, new_doc, config)
            for result in pipeline:
                try:
                    path = write_diff_image(result, output_dir)
                except PageError as exc:
                    logger.warning("Skipping page %d: %s", result.page_index + 1, exc)
                    report.failures.append(PageFailure(result.page_index, exc.kind, str(exc)))
                    continue
                report.pages.append(
                    PageSummary(
                        page_index=result.page_index,
                        change_score=result.change_score,
                        similarity=result.similarity,
                        output_path=str(path),
                    )
                )
            report.failures.extend(pipeline.failures)
            report.failures.sort(key=lambda failure: failure.page_index)
            report.warnings.extend(pipeline.warnings)
    finally:
        if owns_engine:
            engine.close()

    report.elapsed = time.time() - t_start
    if config.report_name:
        try:
            write_json_report(report, output_dir / config.report_name)
        except WriteFailure as exc:
            logger.warning("%s", exc)
            report.warnings.append(str(exc))
    logger.info(
        "Finished in %.2fs: %d pages processed, %d skipped",
        report.elapsed,
        report.pages_processed,
        report.pages_skipped,
    )
    return report
