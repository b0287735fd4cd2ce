"""Attachment link discovery inside exported records.

Finds ``href`` targets that mention a selection term (``.litematic`` by
default) and derives collision-free local filenames for callers that
download them. No network access happens here.
"""
from __future__ import annotations

import html
import re
from collections.abc import Iterable
from pathlib import PurePosixPath
from urllib.parse import urlsplit


def attachment_regex(term: str) -> re.Pattern[str]:
    """``href="..."`` / ``href='...'`` whose target contains *term* (any case)."""
    return re.compile(
        r"""href=["']([^"']*?""" + re.escape(term) + r"""[^"']*)["']""",
        re.IGNORECASE,
    )


def extract_attachment_urls(text: str, terms: Iterable[str]) -> list[str]:
    """Unique, entity-decoded attachment URLs in first-seen order."""
    patterns = [attachment_regex(t) for t in terms if t]
    if not patterns:
        return []
    hits: list[tuple[int, str]] = []
    for pattern in patterns:
        for m in pattern.finditer(text):
            hits.append((m.start(), html.unescape(m.group(1))))
    hits.sort(key=lambda h: h[0])

    seen: set[str] = set()
    urls: list[str] = []
    for _, url in hits:
        if url not in seen:
            seen.add(url)
            urls.append(url)
    return urls


def attachment_filename(
    url: str,
    used: set[str],
    *,
    default_name: str = "file.litematic",
) -> str:
    """Local filename for *url*, unique within *used* (which is updated).

    Names are ``<stem>-<parent segment><ext>``; the parent path segment is the
    upload id on CDN links. Collisions fall back to ``<stem>-<n><ext>``.
    """
    path = PurePosixPath(urlsplit(url).path)
    base = path.name or default_name
    stem, dot, ext = base.rpartition(".")
    if not dot:
        stem, ext = base, ""
    else:
        ext = "." + ext

    parts = [p for p in path.parts if p != "/"]
    parent = parts[-2] if len(parts) >= 2 else "unknown"

    name = f"{stem}-{parent}{ext}"
    n = 1
    while name in used:
        name = f"{stem}-{n}{ext}"
        n += 1
    used.add(name)
    return name
