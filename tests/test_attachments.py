"""Tests for chatslice.attachments module."""
from __future__ import annotations

from chatslice.attachments import attachment_filename, extract_attachment_urls


class TestExtractAttachmentUrls:
    def test_both_quote_styles(self) -> None:
        text = (
            '<a href="https://cdn.example.com/a/1/one.litematic">x</a>'
            "<a href='https://cdn.example.com/a/2/two.litematic'>y</a>"
        )
        assert extract_attachment_urls(text, [".litematic"]) == [
            "https://cdn.example.com/a/1/one.litematic",
            "https://cdn.example.com/a/2/two.litematic",
        ]

    def test_case_insensitive_and_query_string(self) -> None:
        text = '<a HREF="https://cdn.example.com/a/1/Big.LITEMATIC?ex=ab&amp;hm=cd">x</a>'
        assert extract_attachment_urls(text, [".litematic"]) == [
            "https://cdn.example.com/a/1/Big.LITEMATIC?ex=ab&hm=cd",
        ]

    def test_deduplicates_in_first_seen_order(self) -> None:
        text = (
            "<a href='u/2/b.litematic'></a><a href='u/1/a.litematic'></a>"
            "<a href='u/2/b.litematic'></a>"
        )
        assert extract_attachment_urls(text, [".litematic"]) == [
            "u/2/b.litematic",
            "u/1/a.litematic",
        ]

    def test_several_terms_keep_document_order(self) -> None:
        text = "<a href='x/1/a.nbt'></a><a href='x/2/b.schem'></a>"
        assert extract_attachment_urls(text, [".schem", ".nbt"]) == ["x/1/a.nbt", "x/2/b.schem"]

    def test_ignores_text_mentions(self) -> None:
        assert extract_attachment_urls("download castle.litematic here", [".litematic"]) == []

    def test_no_terms(self) -> None:
        assert extract_attachment_urls("<a href='a.litematic'></a>", []) == []


class TestAttachmentFilename:
    def test_parent_segment_suffix(self) -> None:
        used: set[str] = set()
        url = "https://cdn.discordapp.com/attachments/111/222/castle.litematic?ex=1"
        assert attachment_filename(url, used) == "castle-222.litematic"
        assert used == {"castle-222.litematic"}

    def test_collision_counter(self) -> None:
        used = {"castle-222.litematic"}
        url = "https://cdn.discordapp.com/attachments/111/222/castle.litematic"
        assert attachment_filename(url, used) == "castle-1.litematic"
        assert attachment_filename(url, used) == "castle-2.litematic"

    def test_no_extension(self) -> None:
        assert attachment_filename("https://h/a/9/README", set()) == "README-9"

    def test_empty_path_uses_default(self) -> None:
        assert attachment_filename("https://h", set()) == "file-unknown.litematic"
