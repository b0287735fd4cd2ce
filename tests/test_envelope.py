"""Tests for chatslice.envelope module."""
from __future__ import annotations

import pytest

from chatslice.config import ExtractConfig
from chatslice.envelope import closing_tag_for, container_body, split_envelope
from chatslice.extract_types import ConfigError, StructureError
from export_helpers import HEAD, TAIL, build_export, message


class TestClosingTagFor:
    def test_div(self) -> None:
        assert closing_tag_for('<div class="chatlog">') == "</div>"

    def test_other_tag(self) -> None:
        assert closing_tag_for("<section id=log>") == "</section>"

    def test_not_a_tag(self) -> None:
        with pytest.raises(ConfigError):
            closing_tag_for("chatlog")


class TestSplitEnvelope:
    def test_prefix_ends_with_open_marker(self) -> None:
        html = build_export([message(1)])
        env = split_envelope(html, ExtractConfig())
        assert env.prefix == HEAD
        assert env.prefix.endswith('<div class="chatlog">')
        assert env.container_start == len(HEAD)

    def test_suffix_is_close_tag_plus_tail(self) -> None:
        html = build_export([message(1)])
        env = split_envelope(html, ExtractConfig())
        tail_from_marker = TAIL[len("</div>"):]
        assert env.suffix == "</div>" + tail_from_marker
        assert html[env.container_end:] == tail_from_marker

    def test_missing_container_raises(self) -> None:
        with pytest.raises(StructureError, match="container not found"):
            split_envelope("<html><body>nothing</body></html>", ExtractConfig())

    def test_missing_end_marker_uses_document_end(self) -> None:
        html = HEAD + message(1)
        env = split_envelope(html, ExtractConfig())
        assert env.container_end == len(html)
        assert env.suffix == "</div>"

    def test_end_marker_before_container_is_ignored(self) -> None:
        html = "<div class=postamble>early</div>" + build_export([message(1)])
        env = split_envelope(html, ExtractConfig())
        assert env.container_end > env.container_start
        assert html[env.container_end:].startswith("<div class=postamble>")

    def test_close_tag_follows_configured_container(self) -> None:
        cfg = ExtractConfig(container_open="<main class=log>", container_end_marker="<footer")
        html = "<html><main class=log><p>x</p></main><footer>f</footer></html>"
        env = split_envelope(html, cfg)
        assert env.suffix.startswith("</main>")
        assert env.close_tag == "</main>"

    def test_empty_end_marker_means_no_end(self) -> None:
        cfg = ExtractConfig(container_end_marker="")
        html = build_export([message(1)])
        env = split_envelope(html, cfg)
        assert env.container_end == len(html)


class TestRoundTrip:
    def test_full_body_reconstructs_original(self) -> None:
        html = build_export([message(i, group_start=i == 0) for i in range(5)])
        env = split_envelope(html, ExtractConfig())
        assert env.wrap(container_body(html, env)) == html

    def test_round_trip_preserves_crlf_and_unicode(self) -> None:
        html = build_export([message(1, "café ☃\r\n  spaced"), message(2)])
        env = split_envelope(html, ExtractConfig())
        assert env.wrap(container_body(html, env)) == html
