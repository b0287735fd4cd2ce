"""End-to-end context extraction: split, scan, window, write.

``plan_extracts`` is pure; ``extract_contexts`` adds the writes. Fatal errors
(StructureError, NoRecordsError, ConfigError) propagate before anything is
written. Per-extract write failures are collected in the RunReport.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from chatslice.attachments import attachment_filename, extract_attachment_urls
from chatslice.config import ExtractConfig
from chatslice.envelope import split_envelope
from chatslice.extract_types import (
    Envelope,
    Err,
    Ok,
    RecordDescriptor,
    Result,
    SourceDocument,
    Window,
    WriteFailure,
)
from chatslice.extract_writer import ensure_output_dir, output_name, write_extract
from chatslice.html_utils import record_preview
from chatslice.record_scanner import scan_records, select_matches
from chatslice.window import resolve_window

log = logging.getLogger("chatslice.engine")

OUTCOME_OK = "ok"
OUTCOME_PARTIAL = "partial"
OUTCOME_NO_MATCHES = "no_matches"


@dataclass(frozen=True, slots=True)
class ExtractJob:
    """One planned extract: the matched record and its resolved window."""

    output_index: int  # 1-based, discovery order
    record: RecordDescriptor
    window: Window


@dataclass(frozen=True, slots=True)
class ExtractPlan:
    envelope: Envelope
    records: tuple[RecordDescriptor, ...]
    jobs: tuple[ExtractJob, ...]

    @property
    def synthetic_ids(self) -> int:
        return sum(1 for r in self.records if r.id_synthetic)


@dataclass(frozen=True, slots=True)
class ExtractReport:
    """Progress record for one extract (window bounds are 1-based)."""

    output_index: int
    output_path: str
    match_id: str
    window_start: int
    window_end: int
    total_records: int
    attachment_urls: tuple[str, ...] = ()
    attachment_names: tuple[str, ...] = ()  # local names, unique across the run
    preview: str = ""

    def summary(self) -> str:
        return (
            f"Saved {self.output_path} (messages {self.window_start}-{self.window_end}"
            f" of {self.total_records}, target id {self.match_id})"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "output_index": self.output_index,
            "output_path": self.output_path,
            "match_id": self.match_id,
            "window_start": self.window_start,
            "window_end": self.window_end,
            "total_records": self.total_records,
            "attachment_urls": list(self.attachment_urls),
            "attachment_names": list(self.attachment_names),
            "preview": self.preview,
        }


@dataclass(slots=True)
class RunReport:
    """Outcome of one extraction run."""

    outcome: str
    total_records: int
    match_count: int
    synthetic_ids: int = 0
    dry_run: bool = False
    extracts: list[ExtractReport] = field(default_factory=list[ExtractReport])
    failures: list[WriteFailure] = field(default_factory=list[WriteFailure])

    @property
    def no_matches(self) -> bool:
        return self.outcome == OUTCOME_NO_MATCHES

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome,
            "total_records": self.total_records,
            "match_count": self.match_count,
            "synthetic_ids": self.synthetic_ids,
            "dry_run": self.dry_run,
            "extracts": [e.to_dict() for e in self.extracts],
            "failures": [
                {
                    "output_index": f.output_index,
                    "record_id": f.record_id,
                    "path": f.path,
                    "reason": f.reason,
                }
                for f in self.failures
            ],
        }


def plan_extracts(document: SourceDocument, config: ExtractConfig) -> ExtractPlan:
    """Split, scan and resolve one window per matching record. No I/O."""
    config.validate()
    text = document.text
    envelope = split_envelope(text, config)
    records = scan_records(text, envelope, config)
    for r in records:
        if r.id_synthetic:
            log.debug("Record %d has no parsable id; using %s", r.index, r.record_id)

    jobs = tuple(
        ExtractJob(
            output_index=i,
            record=match,
            window=resolve_window(
                records, match.index, config.half_window, envelope.container_end,
            ),
        )
        for i, match in enumerate(select_matches(records), 1)
    )
    return ExtractPlan(envelope=envelope, records=records, jobs=jobs)


def _report_for(
    document: SourceDocument,
    job: ExtractJob,
    output_path: str,
    total_records: int,
    config: ExtractConfig,
    used_names: set[str],
) -> ExtractReport:
    span = document.text[job.record.start_offset:job.record.end_offset]
    first, last = job.window.display_range
    urls = tuple(extract_attachment_urls(span, config.selection_terms))
    return ExtractReport(
        output_index=job.output_index,
        output_path=output_path,
        match_id=job.record.record_id,
        window_start=first,
        window_end=last,
        total_records=total_records,
        attachment_urls=urls,
        attachment_names=tuple(attachment_filename(u, used_names) for u in urls),
        preview=record_preview(span),
    )


def extract_contexts(
    document: SourceDocument,
    config: ExtractConfig,
    *,
    dry_run: bool = False,
) -> RunReport:
    """Run the whole pipeline over *document* and write one file per match.

    With ``dry_run`` the plan is reported (with the paths that would be
    written) but nothing touches the filesystem.
    """
    plan = plan_extracts(document, config)
    total = len(plan.records)
    report = RunReport(
        outcome=OUTCOME_OK,
        total_records=total,
        match_count=len(plan.jobs),
        synthetic_ids=plan.synthetic_ids,
        dry_run=dry_run,
    )
    if not plan.jobs:
        report.outcome = OUTCOME_NO_MATCHES
        return report

    used_names: set[str] = set()
    if dry_run:
        report.extracts = [
            _report_for(
                document, job,
                str(config.output_dir / output_name(config, job.output_index, job.record.record_id)),
                total, config, used_names,
            )
            for job in plan.jobs
        ]
        return report

    try:
        ensure_output_dir(config.output_dir)
    except OSError as exc:
        # Each write retries the mkdir and records its own WriteFailure.
        log.warning("Cannot create output directory %s: %s", config.output_dir, exc)

    def run_job(job: ExtractJob) -> tuple[ExtractJob, Result[Path, WriteFailure]]:
        return job, write_extract(
            document, plan.envelope, job.window,
            output_index=job.output_index,
            record_id=job.record.record_id,
            config=config,
        )

    results: list[tuple[ExtractJob, Result[Path, WriteFailure]]]
    if config.workers == 1 or len(plan.jobs) == 1:
        results = [run_job(job) for job in plan.jobs]
    else:
        results = []
        with ThreadPoolExecutor(max_workers=min(config.workers, len(plan.jobs))) as pool:
            futures = [pool.submit(run_job, job) for job in plan.jobs]
            for future in as_completed(futures):
                results.append(future.result())
        results.sort(key=lambda item: item[0].output_index)

    for job, result in results:
        match result:
            case Ok(value=path):
                report.extracts.append(_report_for(document, job, str(path), total, config, used_names))
            case Err(error=failure):
                log.warning(
                    "Failed to write extract %d (target id %s): %s",
                    failure.output_index, failure.record_id, failure.reason,
                )
                report.failures.append(failure)

    if report.failures:
        report.outcome = OUTCOME_PARTIAL
    return report
