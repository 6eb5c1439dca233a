"""Tests for document loading and front matter."""

from __future__ import annotations

import datetime as dt
from pathlib import Path

import pytest

from wikigen.content import (
    first_heading,
    load_document,
    normalize_list_spacing,
    parse_front_matter,
    slugify,
)
from wikigen.errors import ContentNotFoundError, FrontMatterError


class TestParseFrontMatter:
    """Tests for parse_front_matter."""

    def test_no_block(self) -> None:
        """Text without a metadata block is returned untouched."""
        assert parse_front_matter("# Title\n\nBody") == ({}, "# Title\n\nBody")

    def test_simple_block(self) -> None:
        """Keys are lower-cased and values stripped of quotes."""
        meta, body = parse_front_matter('---\nTitle: "Kubernetes"\nauthor: Lyz\n---\n# Body')
        assert meta == {"title": "Kubernetes", "author": "Lyz"}
        assert body == "# Body"

    def test_lists_and_comments(self) -> None:
        """List keys accept both spellings; comments and blanks are skipped."""
        meta, _ = parse_front_matter("---\n# comment\n\ntags: [k8s, 'devops']\ncategories: a, b\n---\n")
        assert meta == {"tags": ["k8s", "devops"], "categories": ["a", "b"]}

    def test_value_with_colon(self) -> None:
        """Only the first colon separates key and value."""
        meta, _ = parse_front_matter("---\nsource: https://example.com/x\n---\n")
        assert meta == {"source": "https://example.com/x"}

    def test_byte_order_mark(self) -> None:
        """A leading BOM does not hide the block."""
        meta, body = parse_front_matter("\ufeff---\ntitle: X\n---\ntext")
        assert meta == {"title": "X"}
        assert body == "text"

    @pytest.mark.parametrize(
        "text",
        [
            "---\ntitle: X\n",
            "---\njust some words\n---\n",
            "---\n: value\n---\n",
            "---\ntitle: A\ntitle: B\n---\n",
            "---\nbad$key: v\n---\n",
        ],
    )
    def test_malformed(self, text: str) -> None:
        """Malformed blocks raise FrontMatterError."""
        with pytest.raises(FrontMatterError):
            parse_front_matter(text, "page.md")


class TestLoadDocument:
    """Tests for load_document."""

    def test_loads_metadata(self, tmp_path: Path) -> None:
        """Title, date, author and tags are lifted from the metadata."""
        (tmp_path / "page.md").write_text(
            "---\ntitle: X\ndate: 2020-03-01\nauthor: Lyz\ntags: a, b\n---\n# Heading\n", encoding="utf-8"
        )

        document = load_document(tmp_path, "page.md")

        assert document.path == "page.md"
        assert document.title == "X"
        assert document.date == dt.date(2020, 3, 1)
        assert document.author == "Lyz"
        assert document.tags == ("a", "b")
        assert document.body == "# Heading"
        assert document.source == (tmp_path / "page.md").resolve()

    def test_datetime_value(self, tmp_path: Path) -> None:
        """A datetime is reduced to its date."""
        (tmp_path / "page.md").write_text("---\ndate: 2021-01-02 10:30\n---\n", encoding="utf-8")
        assert load_document(tmp_path, "page.md").date == dt.date(2021, 1, 2)

    def test_without_metadata(self, tmp_path: Path) -> None:
        """Plain Markdown loads with empty metadata."""
        (tmp_path / "page.md").write_text("Just text", encoding="utf-8")
        document = load_document(tmp_path, "page.md")
        assert document.title is None
        assert document.date is None
        assert document.meta == {}
        assert document.body == "Just text"

    def test_is_immutable(self, tmp_path: Path) -> None:
        """Documents cannot be modified after load."""
        (tmp_path / "page.md").write_text("text", encoding="utf-8")
        document = load_document(tmp_path, "page.md")
        with pytest.raises(AttributeError):
            document.body = "changed"  # type: ignore[misc]

    def test_invalid_date(self, tmp_path: Path) -> None:
        """An unparseable date is a front matter error."""
        (tmp_path / "page.md").write_text("---\ndate: yesterday\n---\n", encoding="utf-8")
        with pytest.raises(FrontMatterError) as excinfo:
            load_document(tmp_path, "page.md")
        assert excinfo.value.path == "page.md"

    def test_missing(self, tmp_path: Path) -> None:
        """A missing file raises ContentNotFoundError."""
        with pytest.raises(ContentNotFoundError) as excinfo:
            load_document(tmp_path, "nope.md")
        assert "nope.md" in str(excinfo.value)

    def test_outside_docs_dir(self, tmp_path: Path) -> None:
        """Paths escaping the docs directory are not readable."""
        docs = tmp_path / "docs"
        docs.mkdir()
        (tmp_path / "secret.md").write_text("x", encoding="utf-8")
        with pytest.raises(ContentNotFoundError):
            load_document(docs, "../secret.md")


class TestNormalizeListSpacing:
    """Tests for normalize_list_spacing."""

    def test_inserts_blank_line_before_list(self) -> None:
        """A list right after a paragraph gets a separating blank line."""
        assert normalize_list_spacing("Intro\n- a\n- b") == ("Intro\n\n- a\n- b", False)

    def test_leaves_fenced_code_alone(self) -> None:
        """Fenced blocks are copied verbatim."""
        text = "```\nIntro\n- a\n```"
        assert normalize_list_spacing(text) == (text, False)

    def test_reports_open_fence(self) -> None:
        """An unclosed fence is flagged."""
        _, open_fence = normalize_list_spacing("~~~python\nprint(1)")
        assert open_fence is True


def test_first_heading_skips_code() -> None:
    """Headings inside fences are ignored."""
    assert first_heading("```\n# not this\n```\n\n# Real ##") == "Real"
    assert first_heading("no heading") is None


def test_slugify() -> None:
    """Titles become URL-safe slugs."""
    assert slugify("Software Architecture") == "software-architecture"
    assert slugify("API Management!") == "api-management"
    assert slugify("***") == "section"
