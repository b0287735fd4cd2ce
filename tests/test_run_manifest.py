"""Tests for chatslice.run_manifest utilities."""
from __future__ import annotations

from pathlib import Path

from chatslice.config import ExtractConfig
from chatslice.engine import extract_contexts
from chatslice.html_utils import document_from_text
from chatslice.run_manifest import (
    build_manifest,
    compare_manifests,
    generate_run_id,
    load_manifest,
    write_manifest,
)
from export_helpers import numbered_export


def _manifest(tmp_path: Path, *, matches: tuple[int, ...], run_id: str) -> dict[str, object]:
    doc = document_from_text(numbered_export(30, matches=matches))
    cfg = ExtractConfig(output_dir=tmp_path / run_id)
    report = extract_contexts(doc, cfg)
    return build_manifest(
        run_id=run_id,
        document=doc,
        config=cfg,
        report=report,
        timings_sec={"total": 0.01},
        git_commit="abc123",
    )


def test_generate_run_id_format() -> None:
    run_id = generate_run_id()
    assert run_id.startswith("extract_")
    assert len(run_id.split("_")) == 3


def test_build_manifest_fields(tmp_path: Path) -> None:
    manifest = _manifest(tmp_path, matches=(4, 20), run_id="r1")
    assert manifest["run_id"] == "r1"
    assert manifest["outcome"] == "ok"
    assert manifest["total_records"] == 30
    assert manifest["match_count"] == 2
    assert manifest["git_commit"] == "abc123"
    source = manifest["source"]
    assert isinstance(source, dict)
    assert source["path"] is None
    assert len(source["sha256"]) == 64
    extracts = manifest["extracts"]
    assert isinstance(extracts, list)
    assert [e["match_id"] for e in extracts] == ["1004", "1020"]


def test_write_and_load_manifest(tmp_path: Path) -> None:
    manifest = _manifest(tmp_path, matches=(4,), run_id="r1")
    path = write_manifest(tmp_path / "reports" / "run.json", manifest)
    assert path.exists()
    loaded = load_manifest(path)
    assert loaded["run_id"] == "r1"
    assert loaded["config"]["half_window"] == 20
    assert loaded["extracts"][0]["window_start"] == 1


def test_compare_manifests_reports_deltas(tmp_path: Path) -> None:
    previous = _manifest(tmp_path, matches=(4, 20), run_id="r1")
    current = _manifest(tmp_path, matches=(4, 25, 27), run_id="r2")
    delta = compare_manifests(current, previous)
    assert delta["current_run_id"] == "r2"
    assert delta["previous_run_id"] == "r1"
    assert delta["source_changed"] is True
    assert delta["config_changed"] is True  # output_dir differs per run
    assert delta["match_count_delta"] == 1
    assert delta["total_records_delta"] == 0
    assert delta["new_match_ids"] == ["1025", "1027"]
    assert delta["removed_match_ids"] == ["1020"]


def test_compare_identical_runs(tmp_path: Path) -> None:
    manifest = _manifest(tmp_path, matches=(4,), run_id="r1")
    delta = compare_manifests(manifest, manifest)
    assert delta["source_changed"] is False
    assert delta["match_count_delta"] == 0
    assert delta["new_match_ids"] == []
    assert delta["removed_match_ids"] == []
