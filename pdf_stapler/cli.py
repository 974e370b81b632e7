"""Command-line entry point: ``pdf-stapler -i a.pdf b.pdf -o merged.pdf``."""
from __future__ import annotations

import argparse
import glob
import sys
from pathlib import Path

from pdf_stapler.domain.errors import StaplerError
from pdf_stapler.infrastructure.config import AppConfig
from pdf_stapler.infrastructure.logger import configure_logging
from pdf_stapler.services.stapler_service import build_stapler

GLOB_CHARACTERS = frozenset("*?[")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pdf-stapler",
        description="Merge multiple (minimum 2) PDF files into one PDF file",
    )
    parser.add_argument(
        "-i",
        "--input",
        nargs="+",
        required=True,
        metavar="FILES",
        help="Input PDF files or glob patterns",
    )
    parser.add_argument("-o", "--output", required=True, metavar="FILE", help="Output PDF file")
    parser.add_argument(
        "-c", "--compress", action="store_true", help="Compress the output PDF file"
    )
    return parser


def expand_inputs(patterns: list[str]) -> list[str]:
    paths: list[str] = []
    for pattern in patterns:
        if GLOB_CHARACTERS.isdisjoint(pattern):
            paths.append(pattern)
            continue
        paths.extend(
            match for match in sorted(glob.glob(pattern)) if Path(match).suffix.lower() == ".pdf"
        )
    return paths


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = AppConfig()
    configure_logging(config.log_level)

    try:
        result = build_stapler(config).staple(
            expand_inputs(args.input), args.output, compress=args.compress
        )
    except StaplerError as exc:
        print(f"error: {' '.join(str(exc).split())}", file=sys.stderr)
        return 1

    print(f"PDFs merged successfully. Output file: {result.output_path}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
