"""Command-line entry point: optimize one PNG into a fixed output file."""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from .config import SETTINGS, configure_logging
from .errors import PngShrinkError
from .infrastructure.network import FETCHER
from .processing.pipeline import optimize_png


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pngshrink",
        description="Losslessly re-encode a PNG into the smallest equivalent file.",
    )
    parser.add_argument("src", help="source PNG path or http(s) URL")
    parser.add_argument(
        "-o",
        "--output",
        help=f"output file (default: {SETTINGS.output_name} in the current directory)",
    )
    parser.add_argument(
        "--no-verify",
        action="store_true",
        help="skip decoding the result to confirm the pixels are unchanged",
    )
    parser.add_argument("--log-level", default=None, help="logging level (default: $LOG_LEVEL or INFO)")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logger = configure_logging(args.log_level)

    settings = replace(SETTINGS, verify_roundtrip=False) if args.no_verify else SETTINGS
    output = Path(args.output or settings.output_name)

    try:
        source = FETCHER.fetch(args.src)
        result = optimize_png(source, settings=settings)
    except PngShrinkError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return 1

    try:
        output.write_bytes(result.data)
    except OSError as exc:
        logger.error("cannot write %s: %s", output, exc)
        return 1

    delta = len(result.data) - len(source)
    logger.info(
        "wrote %s: %d -> %d bytes (%+d), layout=%s filter=%s",
        output,
        len(source),
        len(result.data),
        delta,
        result.layout.name,
        result.candidate.strategy.name,
    )
    return 0
