#!/usr/bin/env python3

# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from depmatrix.adapters import SOURCE_NAMES
from depmatrix.app import SourceBatch, discover_dependencies, extract_claims
from depmatrix.config import ConfigurationError, configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from depmatrix.domain.model import Claim

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Extract dependency claims from collected source text"
    )
    parser.add_argument(
        "source",
        choices=sorted(SOURCE_NAMES),
        help="Kind of source the files were collected from",
    )
    parser.add_argument(
        "files",
        nargs="+",
        type=Path,
        help="Files holding raw source text",
    )
    parser.add_argument(
        "--format",
        type=str,
        default=None,
        help="Format tag understood by the source adapter (default: auto-detect)",
    )
    parser.add_argument(
        "--source-application",
        type=str,
        help="Application owning the parsed build manifests (codebase only)",
    )
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Print extracted claims without scoring or conflict resolution",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(list(argv))


def _read_batches(args: argparse.Namespace) -> list[SourceBatch]:
    batches: list[SourceBatch] = []
    for path in args.files:
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ValueError(f"Cannot read {path}: {exc.strerror or exc}") from exc
        batches.append(
            SourceBatch(
                source=args.source,
                raw=raw,
                format=args.format,
                source_application=args.source_application,
            )
        )
    return batches


def _run(args: argparse.Namespace, batches: Sequence[SourceBatch]) -> list[Claim]:
    if args.raw:
        claims: list[Claim] = []
        for batch in batches:
            claims.extend(extract_claims(batch))
        return claims
    return discover_dependencies(batches)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    try:
        parsed_args = _parse_args(sys.argv[1:] if argv is None else argv)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        batches = _read_batches(parsed_args)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    try:
        claims = _run(parsed_args, batches)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)
    except Exception as e:  # noqa: BLE001
        log.exception("Dependency discovery failed")
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    for claim in claims:
        print(json.dumps(claim.to_dict()))


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
