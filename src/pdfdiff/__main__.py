"""Command line interface for pdfdiff."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Iterable, Optional

from dotenv import load_dotenv

from .config import RunConfig
from .errors import PdfDiffError
from .pipeline import compare_files
from .report import format_summary

logger = logging.getLogger("pdfdiff")

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_USAGE = 2
EXIT_PARTIAL = 3


def build_parser() -> argparse.ArgumentParser:
    from . import __version__

    parser = argparse.ArgumentParser(
        prog="pdfdiff",
        description="A tool for comparing PDF documents by generating visual diffs.",
    )
    parser.add_argument("-o", "--old", required=True, help="Path to the old PDF file")
    parser.add_argument("-n", "--new", required=True, help="Path to the new PDF file")
    parser.add_argument("-d", "--output-dir", help="Directory to save diff images (default: output)")
    parser.add_argument("--dpi", type=float, help="DPI for PDF rendering (default: 300)")
    parser.add_argument(
        "--sensitivity",
        type=float,
        help="Diff sensitivity threshold, 0.0-1.0, lower = more sensitive (default: 0.12)",
    )
    parser.add_argument(
        "--crop-tolerance",
        type=int,
        help="Distance from white (0-255) still treated as background when cropping (default: 10)",
    )
    parser.add_argument("--workers", type=int, help="Pages diffed in parallel (default: 1)")
    parser.add_argument(
        "--report",
        dest="report_name",
        help="File name of the JSON report inside the output directory; empty to disable",
    )
    parser.add_argument("-v", "--verbose", action="store_true", default=None, help="Enable verbose output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _override_config(base: RunConfig, args: argparse.Namespace) -> RunConfig:
    overrides = {}
    for field_name in ("output_dir", "dpi", "sensitivity", "crop_tolerance", "workers", "report_name", "verbose"):
        value = getattr(args, field_name)
        if value is not None:
            overrides[field_name] = value
    return base.copy(**overrides)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(None if argv is None else list(argv))

    load_dotenv()
    try:
        config = _override_config(RunConfig.from_env(), args).validate()
    except PdfDiffError as exc:
        parser.error(str(exc))
        return EXIT_USAGE

    _configure_logging(config.verbose)
    logger.debug("Old PDF: %s", args.old)
    logger.debug("New PDF: %s", args.new)
    logger.debug("Output directory: %s", config.output_dir)

    try:
        report = compare_files(args.old, args.new, config)
    except PdfDiffError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_FATAL

    print(format_summary(report))
    print(f"Diff images saved to '{config.output_dir}'")
    return EXIT_PARTIAL if report.pages_skipped else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
