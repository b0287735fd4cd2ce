"""Context-window resolution around a target record.

The window is ``half_window`` records either side of the target, clamped to
the sequence. Its left edge is then walked back to the nearest group start so
an extract never opens in the middle of a message group. The right edge is
not realigned.
"""
from __future__ import annotations

from collections.abc import Sequence

from chatslice.extract_types import RecordDescriptor, Window


def resolve_window(
    records: Sequence[RecordDescriptor],
    target_index: int,
    half_window: int,
    container_end: int,
) -> Window:
    """Compute the group-aligned window for ``records[target_index]``.

    Args:
        records: Full record sequence in document order.
        target_index: Index of the matched record.
        half_window: Records to include on each side before alignment.
        container_end: End offset of the container (slice end for the last record).

    Returns:
        Window with inclusive record bounds and the byte slice covering them.
    """
    n = len(records)
    if not 0 <= target_index < n:
        raise IndexError(f"target_index {target_index} out of range for {n} records")
    if half_window < 0:
        raise ValueError(f"half_window must be non-negative, got {half_window}")

    hi = min(n - 1, target_index + half_window)
    lo = max(0, target_index - half_window)

    while lo > 0 and not records[lo].is_group_start:
        lo -= 1

    slice_start = records[lo].start_offset
    slice_end = records[hi + 1].start_offset if hi + 1 < n else container_end
    return Window(lo_index=lo, hi_index=hi, slice_start=slice_start, slice_end=slice_end)
