#!/usr/bin/env python3
"""Extract standalone context snippets around matching chat messages.

Reads an HTML chat export, finds every message whose content mentions a
selection term (``.litematic`` by default), and writes one small HTML file per
match containing the surrounding messages, re-wrapped in the export's own
head and tail so it renders exactly like the original.

Usage::

    python3 scripts/extract_context.py --source share-projects.html
    python3 scripts/extract_context.py --source export.html --term .schem --term .nbt \
      --window 10 --output-dir snippets --report snippets/report.json
    python3 scripts/extract_context.py --config extract.json --dry-run -v
"""
from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Any

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from chatslice.config import ExtractConfig
from chatslice.engine import extract_contexts
from chatslice.extract_types import ChatsliceError
from chatslice.html_utils import read_document
from chatslice.run_manifest import (
    build_manifest,
    compare_manifests,
    generate_run_id,
    git_commit_hash,
    load_manifest,
    write_manifest,
)

log = logging.getLogger("extract_context")

DEFAULT_SOURCE = "share-projects.html"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Write context snippets around chat messages matching a term."
    )
    parser.add_argument(
        "--source", type=Path, default=Path(DEFAULT_SOURCE),
        help=f"HTML chat export to scan (default: {DEFAULT_SOURCE})",
    )
    parser.add_argument(
        "--config", type=Path, default=None,
        help="JSON file with ExtractConfig fields; flags below override it",
    )
    parser.add_argument(
        "--output-dir", type=Path, default=None,
        help="Directory for snippet files (default: litematic-context)",
    )
    parser.add_argument(
        "--window", type=int, default=None,
        help="Messages to include before and after each match (default: 20)",
    )
    parser.add_argument(
        "--term", action="append", default=None, dest="terms",
        help="Selection term, case-insensitive; repeatable (default: .litematic)",
    )
    parser.add_argument(
        "--workers", type=int, default=None,
        help="Parallel file writers (default: 4)",
    )
    parser.add_argument(
        "--report", type=Path, default=None,
        help="Optional JSON run report path",
    )
    parser.add_argument(
        "--compare-with", type=Path, default=None,
        help="Previous run report to diff this run against",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Plan extracts and report them without writing files",
    )
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser


def load_config(args: argparse.Namespace) -> ExtractConfig:
    base = ExtractConfig.from_json(args.config) if args.config else ExtractConfig()
    return base.with_overrides(
        output_dir=args.output_dir,
        half_window=args.window,
        selection_terms=args.terms,
        workers=args.workers,
    ).validate()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    t0 = time.monotonic()
    try:
        config = load_config(args)
        document = read_document(args.source)
        t_read = time.monotonic()
        report = extract_contexts(document, config, dry_run=args.dry_run)
    except ChatsliceError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    t_done = time.monotonic()

    if report.no_matches:
        terms = ", ".join(config.selection_terms)
        log.info("No messages matching %s found (%d messages scanned).", terms, report.total_records)
    else:
        for extract in report.extracts:
            if args.dry_run:
                log.info("Would write %s", extract.summary().removeprefix("Saved "))
            else:
                log.info("%s", extract.summary())
            for url, name in zip(extract.attachment_urls, extract.attachment_names):
                log.debug("  attachment %s -> %s", name, url)
        if report.synthetic_ids:
            log.info("%d message(s) had no parsable id", report.synthetic_ids)
        if report.failures:
            log.warning(
                "%d of %d extracts failed to write", len(report.failures), report.match_count,
            )

    if args.report is None and args.compare_with is None:
        return 0

    manifest = build_manifest(
        run_id=generate_run_id(),
        document=document,
        config=config,
        report=report,
        timings_sec={
            "read": round(t_read - t0, 4),
            "extract": round(t_done - t_read, 4),
            "total": round(t_done - t0, 4),
        },
        git_commit=git_commit_hash(search_from=args.source.resolve()),
    )

    if args.compare_with is not None:
        try:
            delta = compare_manifests(manifest, load_manifest(args.compare_with))
        except (OSError, ValueError, TypeError) as exc:
            print(f"Error: cannot load previous report {args.compare_with}: {exc}", file=sys.stderr)
            return 1
        log_comparison(delta)

    if args.report is not None:
        try:
            write_manifest(args.report, manifest)
        except OSError as exc:
            print(f"Error: cannot write report {args.report}: {exc}", file=sys.stderr)
            return 1
        log.info("Report written to %s", args.report)

    return 0


def log_comparison(delta: dict[str, Any]) -> None:
    log.info(
        "Compared with %s: records %+d, matches %+d, failures %+d",
        delta["previous_run_id"],
        delta["total_records_delta"],
        delta["match_count_delta"],
        delta["failures_delta"],
    )
    if delta["source_changed"]:
        log.info("Source document changed since previous run")
    if delta["config_changed"]:
        log.info("Configuration changed since previous run")
    if delta["new_match_ids"]:
        log.info("New matches: %s", ", ".join(delta["new_match_ids"]))
    if delta["removed_match_ids"]:
        log.info("Removed matches: %s", ", ".join(delta["removed_match_ids"]))


if __name__ == "__main__":
    sys.exit(main())
