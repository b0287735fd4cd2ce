"""HTML text extraction and encoding-safe document reading.

Two concerns:
- ``read_document``: decode an export with encoding fallback
  (UTF-8 -> CP1252 -> replace) while keeping newlines untouched, so that
  offsets and re-encoded extracts stay byte-exact.
- ``strip_html`` / ``record_preview``: plain-text previews of records for
  progress output and run reports. Previews never feed back into extracts.
"""
from __future__ import annotations

import hashlib
import re
from pathlib import Path

from bs4 import BeautifulSoup

from chatslice.extract_types import SourceDocument, SourceReadError

_BLOCK_TAGS: list[str] = ["p", "div", "br", "li", "blockquote", "pre"]

# U+200B (ZWSP), U+200C (ZWNJ), U+FEFF (BOM)
_ZERO_WIDTH_RE = re.compile("[\u200b\u200c\ufeff]")

_FALLBACK_ENCODINGS: tuple[str, ...] = ("utf-8", "cp1252")


# ---------------------------------------------------------------------------
# Encoding-safe reading
# ---------------------------------------------------------------------------


def decode_bytes(raw: bytes) -> tuple[str, str]:
    """Decode *raw* trying UTF-8 then CP1252, finally UTF-8 with replacement.

    Returns:
        (text, encoding), where encoding re-encodes *text* back to *raw*
        (except in the replacement case).
    """
    for encoding in _FALLBACK_ENCODINGS:
        try:
            return raw.decode(encoding), encoding
        except UnicodeDecodeError:
            continue
    return raw.decode("utf-8", errors="replace"), "utf-8"


def read_document(fpath: Path) -> SourceDocument:
    """Read an exported document from disk.

    Raises:
        SourceReadError: the file is missing or unreadable.
    """
    try:
        raw = fpath.read_bytes()
    except OSError as exc:
        raise SourceReadError(f"cannot read source document {fpath}: {exc}") from exc
    text, encoding = decode_bytes(raw)
    return SourceDocument(
        text=text,
        encoding=encoding,
        path=fpath,
        sha256=hashlib.sha256(raw).hexdigest(),
    )


def document_from_text(text: str, *, encoding: str = "utf-8") -> SourceDocument:
    """Wrap an in-memory export (already decoded) as a SourceDocument."""
    return SourceDocument(
        text=text,
        encoding=encoding,
        sha256=hashlib.sha256(text.encode(encoding, errors="replace")).hexdigest(),
    )


# ---------------------------------------------------------------------------
# Text extraction
# ---------------------------------------------------------------------------


def strip_html(raw_html: str) -> str:
    """Extract readable text from an HTML fragment.

    Block-level elements become line breaks; horizontal whitespace collapses.
    Empty string if *raw_html* is empty.
    """
    if not raw_html:
        return ""

    soup = BeautifulSoup(raw_html, "html.parser")
    for tag in soup.find_all(["script", "style"]):
        tag.decompose()
    for tag in soup.find_all(_BLOCK_TAGS):
        tag.insert_before("\n")

    text = soup.get_text(separator=" ")
    text = re.sub(r"[^\S\n]+", " ", text)
    text = re.sub(r" *\n[\n ]*", "\n", text)
    return strip_zero_width(text.strip())


def strip_zero_width(text: str) -> str:
    """Remove zero-width Unicode characters."""
    return _ZERO_WIDTH_RE.sub("", text)


def record_preview(raw_html: str, *, max_chars: int = 200) -> str:
    """Single-line text preview of a record, truncated to *max_chars*."""
    text = " ".join(strip_html(raw_html).split())
    if len(text) <= max_chars:
        return text
    return text[: max(0, max_chars - 1)].rstrip() + "\u2026"
