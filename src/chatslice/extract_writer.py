"""Materialize windows as standalone documents.

The body is ``prefix + text[slice_start:slice_end] + suffix`` with no
re-encoding or whitespace changes to the slice. Write errors come back as
``Err(WriteFailure)`` so one bad extract never stops the batch.
"""
from __future__ import annotations

from pathlib import Path

from chatslice.config import ExtractConfig
from chatslice.extract_types import (
    Envelope,
    Err,
    Ok,
    Result,
    SourceDocument,
    Window,
    WriteFailure,
)


def output_name(config: ExtractConfig, output_index: int, record_id: str) -> str:
    """Deterministic filename for the *output_index*-th (1-based) extract."""
    return config.filename_template.format(
        output_index=output_index, record_id=record_id,
    )


def render_extract(
    document: SourceDocument,
    envelope: Envelope,
    window: Window,
) -> str:
    """Standalone document text for *window*."""
    return envelope.wrap(document.text[window.slice_start:window.slice_end])


def ensure_output_dir(output_dir: Path) -> Path:
    """Create *output_dir* if absent. Safe to call concurrently."""
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def write_extract(
    document: SourceDocument,
    envelope: Envelope,
    window: Window,
    *,
    output_index: int,
    record_id: str,
    config: ExtractConfig,
) -> Result[Path, WriteFailure]:
    """Render and persist one extract under ``config.output_dir``.

    Names that would leave ``output_dir`` (path separators, ``..``) or that
    the OS cannot represent (NUL) are reported as failures, not written.
    """
    name = output_name(config, output_index, record_id)
    path = config.output_dir / name
    try:
        if not is_safe_filename(name):
            raise ValueError(f"unsafe extract filename {name!r}")
        ensure_output_dir(config.output_dir)
        body = render_extract(document, envelope, window)
        path.write_bytes(body.encode(document.encoding))
    except (OSError, UnicodeEncodeError, ValueError) as exc:
        return Err(WriteFailure(
            output_index=output_index,
            record_id=record_id,
            path=str(path),
            reason=f"{type(exc).__name__}: {exc}",
        ))
    return Ok(path)


def is_safe_filename(name: str) -> bool:
    """True if *name* is a single plain path component."""
    if not name or name in (".", "..") or "\x00" in name:
        return False
    return "/" not in name and "\\" not in name
