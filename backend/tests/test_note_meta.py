"""
PadPress Backend — Note Metadata Tests
=======================================

What we test:
    ✅ Front matter split from the body; absent or broken front matter
    ✅ Wrong-typed values dropped, aliases mapped
    ✅ Title fallbacks and the display helpers
"""

from app.services.note_meta import (
    decode_title,
    extract_meta,
    generate_description,
    generate_web_title,
    is_reveal_theme,
    parse_meta,
    parse_note_title,
)

CONTENT = """---
title: Weekly sync
GA: UA-1234
slideOptions:
  theme: night
---
# Agenda
- one
"""


class TestExtractMeta:

    def test_front_matter(self):
        meta, body = extract_meta(CONTENT)

        assert meta["title"] == "Weekly sync"
        assert meta["slideOptions"] == {"theme": "night"}
        assert body == "# Agenda\n- one\n"

    def test_no_front_matter(self):
        assert extract_meta("# Agenda") == ({}, "# Agenda")

    def test_empty(self):
        assert extract_meta("") == ({}, "")

    def test_malformed_yaml(self):
        content = "---\ntitle: [unclosed\n---\nbody"
        assert extract_meta(content) == ({}, content)

    def test_scalar_front_matter_ignored(self):
        content = "---\njust text\n---\nbody"
        assert extract_meta(content) == ({}, content)


class TestParseMeta:

    def test_known_keys(self):
        meta = parse_meta(extract_meta(CONTENT)[0])

        assert meta.title == "Weekly sync"
        assert meta.ga == "UA-1234"
        assert meta.slide_options == {"theme": "night"}

    def test_wrong_types_dropped(self):
        meta = parse_meta({"title": ["a"], "robots": True, "slideOptions": "night", "disqus": 7})

        assert meta.title is None
        assert meta.robots is None
        assert meta.slide_options is None
        assert meta.disqus == "7"


class TestTitles:

    def test_meta_title_wins(self):
        assert parse_note_title(CONTENT) == "Weekly sync"

    def test_heading_fallback(self):
        assert parse_note_title("intro\n# Release plan ##\ntext") == "Release plan"

    def test_no_title(self):
        assert parse_note_title("plain text") == ""

    def test_decode_and_web_title(self):
        assert decode_title("  Plan ") == "Plan"
        assert decode_title("") == ""
        assert generate_web_title("Plan") == "Plan - PadPress"
        assert generate_web_title("") == ""

    def test_description(self):
        assert generate_description("a\nb\r\nc") == "a b c"
        assert len(generate_description("x" * 500)) == 100

    def test_reveal_theme(self):
        assert is_reveal_theme("night") == "night"
        assert is_reveal_theme("neon") is None
        assert is_reveal_theme(None) is None
