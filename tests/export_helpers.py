"""Builders for synthetic HTML chat exports used across the test suite."""
from __future__ import annotations

from collections.abc import Iterable

HEAD = (
    "<!DOCTYPE html>\n<html lang=en>\n<head>\n<title>share-projects</title>\n"
    "<style>.chatlog{padding:1rem}</style>\n</head>\n<body>\n"
    "<div class=preamble><div class=preamble__entry>Builds / share-projects</div></div>\n"
    '<div class="chatlog">'
)
TAIL = (
    "</div><div class=postamble><div class=postamble__entry>"
    "Exported messages</div></div>\n</body>\n</html>\n"
)


def message(
    msg_id: int | str,
    text: str = "hello",
    *,
    group_start: bool = False,
    attachment: str | None = None,
) -> str:
    """One exported message record; group starts carry a group header."""
    parts = [
        f"<div id=chatlog__message-container-{msg_id} class=chatlog__message-container>",
        "<div class=chatlog__message>",
    ]
    if group_start:
        parts.append("<div class=chatlog__message-group-header>builder</div>")
    parts.append(f"<div class=chatlog__content>{text}</div>")
    if attachment is not None:
        parts.append(
            f"<div class=chatlog__attachment><a href='{attachment}'>attachment</a></div>"
        )
    parts.append("</div></div>\n")
    return "".join(parts)


def build_export(records: Iterable[str], *, head: str = HEAD, tail: str = TAIL) -> str:
    return head + "".join(records) + tail


def numbered_export(
    count: int,
    *,
    group_starts: Iterable[int] = (0,),
    matches: Iterable[int] = (),
    term: str = "castle.litematic",
) -> str:
    """Export of *count* messages with ids 1000+i; *matches* mention *term*."""
    starts = set(group_starts)
    hits = set(matches)
    return build_export(
        message(
            1000 + i,
            f"message {i}",
            group_start=i in starts,
            attachment=f"https://cdn.example.com/attachments/1/{9000 + i}/{term}" if i in hits else None,
        )
        for i in range(count)
    )
