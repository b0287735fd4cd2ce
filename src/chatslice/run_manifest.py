"""Run-manifest utilities for extraction reproducibility and comparison."""
from __future__ import annotations

import subprocess
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

from chatslice.config import ExtractConfig
from chatslice.engine import RunReport
from chatslice.extract_types import SourceDocument
from chatslice.io_utils import load_json, save_json

MANIFEST_VERSION = "1.0"


def utc_now_iso() -> str:
    """Return current UTC timestamp in ISO-8601 format."""
    return datetime.now(UTC).isoformat()


def generate_run_id(prefix: str = "extract") -> str:
    """Generate a compact run id suitable for artifact naming."""
    ts = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
    return f"{prefix}_{ts}_{uuid4().hex[:8]}"


def git_commit_hash(*, search_from: Path | None = None) -> str | None:
    """Best-effort current git commit hash for reproducibility metadata."""
    cwd = (search_from or Path.cwd())
    if cwd.is_file():
        cwd = cwd.parent
    try:
        proc = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            cwd=str(cwd),
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError:
        return None
    if proc.returncode != 0:
        return None
    out = proc.stdout.strip()
    return out if out else None


def source_info(document: SourceDocument) -> dict[str, Any]:
    return {
        "path": str(document.path) if document.path is not None else None,
        "sha256": document.sha256,
        "encoding": document.encoding,
        "chars": len(document),
    }


def build_manifest(
    *,
    run_id: str,
    document: SourceDocument,
    config: ExtractConfig,
    report: RunReport,
    timings_sec: dict[str, float],
    git_commit: str | None = None,
) -> dict[str, Any]:
    """Build canonical manifest payload for one extraction run."""
    payload = report.to_dict()
    return {
        "manifest_version": MANIFEST_VERSION,
        "created_at": utc_now_iso(),
        "run_id": run_id,
        "git_commit": git_commit,
        "source": source_info(document),
        "config": config.to_dict(),
        "outcome": payload["outcome"],
        "total_records": payload["total_records"],
        "match_count": payload["match_count"],
        "synthetic_ids": payload["synthetic_ids"],
        "dry_run": payload["dry_run"],
        "extracts": payload["extracts"],
        "failures": payload["failures"],
        "timings_sec": timings_sec,
    }


def write_manifest(path: Path, manifest: dict[str, Any]) -> Path:
    save_json(manifest, path, pretty=True)
    return path


def load_manifest(path: Path) -> dict[str, Any]:
    """Load a manifest from JSON."""
    data = load_json(path)
    if not isinstance(data, dict):
        raise ValueError(f"Invalid manifest payload in {path}")
    return data


def _match_ids(manifest: dict[str, Any]) -> set[str]:
    extracts = manifest.get("extracts", [])
    if not isinstance(extracts, list):
        return set()
    return {
        str(e.get("match_id"))
        for e in extracts
        if isinstance(e, dict) and e.get("match_id") is not None
    }


def compare_manifests(
    current: dict[str, Any],
    previous: dict[str, Any],
) -> dict[str, Any]:
    """Compare two manifest payloads and produce deterministic deltas."""
    curr_source = current.get("source", {})
    prev_source = previous.get("source", {})
    curr_source = curr_source if isinstance(curr_source, dict) else {}
    prev_source = prev_source if isinstance(prev_source, dict) else {}

    curr_ids = _match_ids(current)
    prev_ids = _match_ids(previous)

    return {
        "current_run_id": current.get("run_id"),
        "previous_run_id": previous.get("run_id"),
        "source_changed": curr_source.get("sha256") != prev_source.get("sha256"),
        "config_changed": current.get("config") != previous.get("config"),
        "total_records_delta": (
            int(current.get("total_records", 0) or 0)
            - int(previous.get("total_records", 0) or 0)
        ),
        "match_count_delta": (
            int(current.get("match_count", 0) or 0)
            - int(previous.get("match_count", 0) or 0)
        ),
        "failures_delta": (
            len(current.get("failures", []) or [])
            - len(previous.get("failures", []) or [])
        ),
        "new_match_ids": sorted(curr_ids - prev_ids),
        "removed_match_ids": sorted(prev_ids - curr_ids),
    }
