"""Core types for the context-extraction pipeline.

Every stage shares these types. All offsets are global char offsets into the
decoded source text (never record-relative). All dataclasses use
``slots=True`` and are frozen: descriptors and windows are computed once and
read-only thereafter.

Type hierarchy:
  Ok[T] / Err[E]    : Result type for recoverable per-item outcomes
  SourceDocument    : The full exported document, decoded once per run
  Envelope          : prefix/suffix needed to re-wrap any container body
  RecordDescriptor  : One message record with its span and flags
  Window            : Group-aligned record range around a target record
  WriteFailure      : Typed failure for persisting one extract
  ChatsliceError    : Base for fatal errors (StructureError, NoRecordsError, ...)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Generic, TypeAlias, TypeVar

T = TypeVar("T")
E = TypeVar("E")

# ---------------------------------------------------------------------------
# Result ADT
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Success case of Result[T, E].

    Usage::

        result: Result[Path, WriteFailure] = Ok(path)
        match result:
            case Ok(value=p): print(p)
            case Err(error=e): print(e.reason)
    """
    value: T


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failure case of Result[T, E]. Keeps the typed reason instead of None."""
    error: E


Result: TypeAlias = Ok[T] | Err[E]


# ---------------------------------------------------------------------------
# Fatal errors
# ---------------------------------------------------------------------------


class ChatsliceError(RuntimeError):
    """Base class for errors that abort a whole extraction run."""


class StructureError(ChatsliceError):
    """The record container could not be located in the document."""


class NoRecordsError(ChatsliceError):
    """The container was found but holds no record markers."""


class ConfigError(ChatsliceError):
    """Invalid extraction configuration."""


class SourceReadError(ChatsliceError):
    """The source document could not be read."""


# ---------------------------------------------------------------------------
# Document + envelope
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SourceDocument:
    """The exported document, decoded once and never mutated.

    ``text`` is decoded without newline translation so that slicing and
    re-encoding with ``encoding`` reproduces the original bytes.
    """
    text: str
    encoding: str = "utf-8"
    path: Path | None = None
    sha256: str = ""

    def __len__(self) -> int:
        return len(self.text)


@dataclass(frozen=True, slots=True)
class Envelope:
    """Reusable document head/tail around the record container.

    ``prefix`` ends with the open container tag; ``suffix`` starts with the
    matching close tag. ``prefix + body + suffix`` is a standalone document
    for any container body.
    """
    prefix: str
    suffix: str
    container_start: int  # offset just past the container-open marker
    container_end: int    # offset of the end marker, or len(text)
    close_tag: str = ""   # synthetic close token that starts the suffix

    def __post_init__(self) -> None:
        if self.container_start > self.container_end:
            raise ValueError(
                f"container_start ({self.container_start}) > "
                f"container_end ({self.container_end})"
            )

    def wrap(self, body: str) -> str:
        """Re-wrap a container body as a full document."""
        return f"{self.prefix}{body}{self.suffix}"


# ---------------------------------------------------------------------------
# Records + windows
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RecordDescriptor:
    """One message record: ``[start_offset, end_offset)`` of the source text."""
    index: int
    start_offset: int
    end_offset: int
    record_id: str
    is_group_start: bool
    matches_predicate: bool
    id_synthetic: bool = False  # record_id is the unknown-<index> fallback

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError(f"index must be non-negative, got {self.index}")
        if self.end_offset < self.start_offset:
            raise ValueError(
                f"end_offset ({self.end_offset}) < start_offset ({self.start_offset})"
            )

    @property
    def length(self) -> int:
        return self.end_offset - self.start_offset


@dataclass(frozen=True, slots=True)
class Window:
    """Inclusive record range ``[lo_index, hi_index]`` and its byte slice."""
    lo_index: int
    hi_index: int
    slice_start: int
    slice_end: int

    @property
    def display_range(self) -> tuple[int, int]:
        """1-based (first, last) record numbers for human-facing output."""
        return (self.lo_index + 1, self.hi_index + 1)

    @property
    def record_count(self) -> int:
        return self.hi_index - self.lo_index + 1


@dataclass(frozen=True, slots=True)
class WriteFailure:
    """Typed failure for persisting one extract. The batch continues."""
    output_index: int
    record_id: str
    path: str
    reason: str
