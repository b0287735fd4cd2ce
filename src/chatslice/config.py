"""Extraction configuration value object.

All markers, predicates and output settings live here instead of module
globals, so several configurations can run side by side (tests, parallel
runs). Defaults target Discord chat exports where matching records carry a
``.litematic`` attachment.
"""
from __future__ import annotations

import dataclasses
import re
import string
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import orjson

from chatslice.extract_types import ConfigError

DEFAULT_CONTAINER_OPEN = '<div class="chatlog">'
DEFAULT_CONTAINER_END_MARKER = "<div class=postamble"
DEFAULT_RECORD_MARKER = "<div id=chatlog__message-container-"
DEFAULT_ID_PATTERN = r"id=chatlog__message-container-([0-9]+)"
DEFAULT_GROUP_MARKER = "chatlog__message-group"
DEFAULT_SELECTION_TERMS: tuple[str, ...] = (".litematic",)
DEFAULT_HALF_WINDOW = 20
DEFAULT_OUTPUT_DIR = "litematic-context"
DEFAULT_FILENAME_TEMPLATE = "context-{output_index}-{record_id}.html"
DEFAULT_WORKERS = 4

_TEMPLATE_FIELDS = frozenset({"output_index", "record_id"})
_STR_FIELDS: tuple[str, ...] = (
    "container_open",
    "container_end_marker",
    "record_marker",
    "id_pattern",
    "group_marker",
    "filename_template",
)
_INT_FIELDS: tuple[str, ...] = ("half_window", "workers")


@dataclass(frozen=True, slots=True)
class ExtractConfig:
    """Markers, predicates and output settings for one extraction run."""

    container_open: str = DEFAULT_CONTAINER_OPEN
    container_end_marker: str = DEFAULT_CONTAINER_END_MARKER
    record_marker: str = DEFAULT_RECORD_MARKER
    id_pattern: str = DEFAULT_ID_PATTERN
    group_marker: str = DEFAULT_GROUP_MARKER
    selection_terms: tuple[str, ...] = field(default=DEFAULT_SELECTION_TERMS)
    half_window: int = DEFAULT_HALF_WINDOW
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    filename_template: str = DEFAULT_FILENAME_TEMPLATE
    workers: int = DEFAULT_WORKERS

    def validate(self) -> ExtractConfig:
        """Raise ConfigError on unusable settings; return self for chaining."""
        for name in _STR_FIELDS:
            if not isinstance(getattr(self, name), str):
                raise ConfigError(f"{name} must be a string")
        for name in _INT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} must be an integer, got {value!r}")
        if isinstance(self.selection_terms, str) or any(
            not isinstance(t, str) for t in self.selection_terms
        ):
            raise ConfigError("selection_terms must be a list of strings")
        if not self.container_open:
            raise ConfigError("container_open must be non-empty")
        if not self.record_marker:
            raise ConfigError("record_marker must be non-empty")
        if not self.group_marker:
            raise ConfigError("group_marker must be non-empty")
        if not self.selection_terms or any(not t for t in self.selection_terms):
            raise ConfigError("selection_terms must be a non-empty list of non-empty strings")
        if self.half_window < 0:
            raise ConfigError(f"half_window must be non-negative, got {self.half_window}")
        if self.workers < 1:
            raise ConfigError(f"workers must be >= 1, got {self.workers}")
        try:
            compiled = re.compile(self.id_pattern)
        except re.error as exc:
            raise ConfigError(f"invalid id_pattern {self.id_pattern!r}: {exc}") from exc
        if compiled.groups < 1:
            raise ConfigError("id_pattern must contain a capture group")
        fields = {
            name for _, name, _, _ in string.Formatter().parse(self.filename_template)
            if name
        }
        if not fields <= _TEMPLATE_FIELDS:
            raise ConfigError(
                f"filename_template uses unknown fields: {sorted(fields - _TEMPLATE_FIELDS)}"
            )
        if "output_index" not in fields:
            raise ConfigError("filename_template must include {output_index}")
        try:
            self.filename_template.format(output_index=1, record_id="0")
        except (ValueError, KeyError, IndexError) as exc:
            raise ConfigError(
                f"invalid filename_template {self.filename_template!r}: {exc}"
            ) from exc
        return self

    @property
    def id_regex(self) -> re.Pattern[str]:
        return re.compile(self.id_pattern)

    @property
    def selection_terms_lower(self) -> tuple[str, ...]:
        return tuple(t.lower() for t in self.selection_terms)

    def with_overrides(self, **overrides: Any) -> ExtractConfig:
        """Return a copy with non-None overrides applied (CLI flags)."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if "selection_terms" in changes:
            terms = changes["selection_terms"]
            if isinstance(terms, str) or not isinstance(terms, (list, tuple)):
                raise ConfigError(
                    f"selection_terms must be a list of strings, got {terms!r}"
                )
            changes["selection_terms"] = tuple(terms)
        if "output_dir" in changes:
            if not isinstance(changes["output_dir"], (str, Path)):
                raise ConfigError(f"output_dir must be a path, got {changes['output_dir']!r}")
            changes["output_dir"] = Path(changes["output_dir"])
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        data = dataclasses.asdict(self)
        data["output_dir"] = str(self.output_dir)
        data["selection_terms"] = list(self.selection_terms)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExtractConfig:
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown config keys: {unknown}")
        return cls().with_overrides(**data).validate()

    @classmethod
    def from_json(cls, path: Path) -> ExtractConfig:
        """Load from a JSON file; missing keys keep their defaults."""
        try:
            data = orjson.loads(path.read_bytes())
        except OSError as exc:
            raise ConfigError(f"cannot read config {path}: {exc}") from exc
        except orjson.JSONDecodeError as exc:
            raise ConfigError(f"invalid JSON in config {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"config {path} must contain a JSON object")
        return cls.from_dict(data)
