"""Record scanning over the container region.

Records are located by raw substring search for the record-start marker.
Each record spans from its marker to the next marker (or the container end),
so the records partition ``[first_marker, container_end)`` exactly once and
every span test below is linear in the container size overall.
"""
from __future__ import annotations

import re
from collections.abc import Iterator

from chatslice.config import ExtractConfig
from chatslice.extract_types import Envelope, NoRecordsError, RecordDescriptor


def find_marker_offsets(
    text: str,
    marker: str,
    start: int,
    end: int,
) -> Iterator[int]:
    """Yield non-overlapping offsets of *marker* that begin in ``[start, end)``."""
    if not marker:
        return
    idx = text.find(marker, start, end)
    while idx != -1:
        yield idx
        idx = text.find(marker, idx + len(marker), end)


def _marker_tag_text(text: str, start: int, end: int) -> str:
    """Text of the tag opened at *start*, clipped to the record span."""
    close = text.find(">", start, end)
    return text[start:end] if close == -1 else text[start:close + 1]


def extract_record_id(
    tag_text: str,
    id_regex: re.Pattern[str],
) -> str | None:
    """Capture the record id from the marker tag, or None when malformed."""
    m = id_regex.search(tag_text)
    if m is None:
        return None
    captured = m.group(1)
    return captured or None


def scan_records(
    text: str,
    envelope: Envelope,
    config: ExtractConfig,
) -> tuple[RecordDescriptor, ...]:
    """Build the ordered record sequence for the container.

    Raises:
        NoRecordsError: no record marker inside the container.
    """
    starts = list(find_marker_offsets(
        text, config.record_marker, envelope.container_start, envelope.container_end,
    ))
    if not starts:
        raise NoRecordsError(
            f"no records found: {config.record_marker!r} does not occur inside the container"
        )

    id_regex = config.id_regex
    group_marker = config.group_marker
    terms = config.selection_terms_lower

    records: list[RecordDescriptor] = []
    for i, pos in enumerate(starts):
        end = starts[i + 1] if i + 1 < len(starts) else envelope.container_end
        span = text[pos:end]

        record_id = extract_record_id(_marker_tag_text(text, pos, end), id_regex)
        synthetic = record_id is None
        if record_id is None:
            record_id = f"unknown-{i}"

        span_lower = span.lower()
        records.append(RecordDescriptor(
            index=i,
            start_offset=pos,
            end_offset=end,
            record_id=record_id,
            is_group_start=group_marker in span,
            matches_predicate=any(t in span_lower for t in terms),
            id_synthetic=synthetic,
        ))
    return tuple(records)


def select_matches(
    records: tuple[RecordDescriptor, ...],
) -> list[RecordDescriptor]:
    """Records satisfying the selection predicate, in document order."""
    return [r for r in records if r.matches_predicate]
