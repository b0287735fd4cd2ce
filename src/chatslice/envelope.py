"""Envelope splitting: the document head/tail around the record container.

Pure substring search, no markup parser, so malformed exports are tolerated
exactly as far as the markers can still be found.
"""
from __future__ import annotations

import re

from chatslice.config import ExtractConfig
from chatslice.extract_types import ConfigError, Envelope, StructureError

_OPEN_TAG_RE = re.compile(r"<\s*([A-Za-z][A-Za-z0-9:-]*)")


def closing_tag_for(marker: str) -> str:
    """Return the close tag matching the element opened by *marker*.

    ``'<div class="chatlog">'`` -> ``'</div>'``.
    """
    m = _OPEN_TAG_RE.match(marker)
    if m is None:
        raise ConfigError(f"container marker does not open a tag: {marker!r}")
    return f"</{m.group(1)}>"


def split_envelope(text: str, config: ExtractConfig) -> Envelope:
    """Locate the container and derive the reusable prefix/suffix.

    The end marker is searched only after the container opens; when it is
    missing the rest of the document is container content.

    Raises:
        StructureError: the container-open marker is absent.
    """
    close_tag = closing_tag_for(config.container_open)

    open_at = text.find(config.container_open)
    if open_at == -1:
        raise StructureError(
            f"container not found: {config.container_open!r} is absent from the document"
        )
    container_start = open_at + len(config.container_open)

    end_at = -1
    if config.container_end_marker:
        end_at = text.find(config.container_end_marker, container_start)
    container_end = len(text) if end_at == -1 else end_at

    return Envelope(
        prefix=text[:container_start],
        suffix=close_tag + text[container_end:],
        container_start=container_start,
        container_end=container_end,
        close_tag=close_tag,
    )


def container_body(text: str, envelope: Envelope) -> str:
    """Container content without the container's own close tag.

    When the export closes the container right before the end marker, that
    close tag is dropped so ``envelope.wrap(container_body(...))`` rebuilds
    the original document exactly.
    """
    body = text[envelope.container_start:envelope.container_end]
    if envelope.close_tag and body.endswith(envelope.close_tag):
        body = body[:-len(envelope.close_tag)]
    return body
