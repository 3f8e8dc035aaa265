"""Tests for HTML fact extraction and the derived statistics."""

from __future__ import annotations

from datetime import datetime, timezone

from pagescope.scraper.extractor import extract_page
from pagescope.scraper.models import Heading, Image, Link, PageMeta
from pagescope.scraper.stats import compute_stats, count_words

_BASE = "https://example.com/"


def _page(body: str, base: str = _BASE):
    return extract_page(f"<html><body>{body}</body></html>", base)


# ---------------------------------------------------------------------------
# End-to-end
# ---------------------------------------------------------------------------

class TestExtractPage:
    def test_reference_document(self) -> None:
        html = (
            "<html><head><title>T</title></head><body><h1>H</h1>"
            "<p>This is a long enough paragraph to pass the filter.</p>"
            '<a href="/x">link</a></body></html>'
        )
        page = extract_page(html.encode("utf-8"), "https://example.com/")

        assert page.url == "https://example.com/"
        assert page.title == "T"
        assert page.headings == (Heading(level="h1", text="H"),)
        assert page.paragraphs == ("This is a long enough paragraph to pass the filter.",)
        assert page.links == (Link(url="https://example.com/x", text="link"),)
        assert page.images == ()
        assert page.stats is None

    def test_sample_document(self, sample_html: str) -> None:
        page = extract_page(sample_html, _BASE)

        assert page.title == "Sample Page"
        assert page.meta.description == "A page used in tests."
        assert page.meta.og_title == "Sample OG title"
        assert [h.level for h in page.headings] == ["h1", "h2"]
        assert page.paragraphs == (
            "This is the first paragraph with enough words in it.",
            "A second paragraph, spread over two lines of markup.",
        )
        assert page.links == (
            Link(url="https://example.com/about", text="About us"),
            Link(url="https://other.example.org/page", text="Elsewhere"),
        )
        assert page.images == (
            Image(src="https://example.com/img/logo.png", alt="Logo", title="Our logo"),
        )

    def test_empty_document_does_not_raise(self) -> None:
        page = extract_page(b"", _BASE)
        assert page.title == "untitled"
        assert page.meta == PageMeta()
        assert page.headings == page.paragraphs == page.links == page.images == ()

    def test_broken_markup_degrades_gracefully(self) -> None:
        page = extract_page("<html><body><p>Unclosed paragraph that is long enough<div><a href='/y'>y", _BASE)
        assert page.links == (Link(url="https://example.com/y", text="y"),)

    def test_decodes_declared_charset(self) -> None:
        html = '<html><head><meta charset="utf-8"><title>Café déjà vu</title></head></html>'
        assert extract_page(html.encode("utf-8"), _BASE).title == "Café déjà vu"

    def test_repeated_extraction_is_identical(self, sample_html: str) -> None:
        when = datetime(2024, 1, 1, tzinfo=timezone.utc)
        first = extract_page(sample_html, _BASE, scraped_at=when)
        second = extract_page(sample_html, _BASE, scraped_at=when)
        assert first == second
        assert first.to_dict() == second.to_dict()


# ---------------------------------------------------------------------------
# Title and meta
# ---------------------------------------------------------------------------

class TestTitle:
    def test_title_is_trimmed(self) -> None:
        page = extract_page("<html><head><title>  Spaced  </title></head></html>", _BASE)
        assert page.title == "Spaced"

    def test_falls_back_to_first_h1(self) -> None:
        page = extract_page("<html><head><title> </title></head><body><h1> First </h1><h1>Second</h1></body></html>", _BASE)
        assert page.title == "First"

    def test_falls_back_to_untitled(self) -> None:
        assert _page("<p>nothing here</p>").title == "untitled"


class TestMeta:
    def test_all_fields(self) -> None:
        html = """
        <html><head>
          <meta name="description" content="Desc">
          <meta name="keywords" content="a, b">
          <meta name="author" content="Ada">
          <meta property="og:title" content="OG T">
          <meta property="og:description" content="OG D">
          <meta property="og:image" content="https://example.com/og.png">
        </head></html>
        """
        meta = extract_page(html, _BASE).meta
        assert meta == PageMeta(
            description="Desc",
            keywords="a, b",
            author="Ada",
            og_title="OG T",
            og_description="OG D",
            og_image="https://example.com/og.png",
        )

    def test_missing_content_defaults_to_empty(self) -> None:
        meta = extract_page('<html><head><meta name="author"></head></html>', _BASE).meta
        assert meta.author == ""

    def test_og_keys_are_read_from_property_only(self) -> None:
        meta = extract_page('<html><head><meta name="og:title" content="x"></head></html>', _BASE).meta
        assert meta.og_title == ""


# ---------------------------------------------------------------------------
# Headings and paragraphs
# ---------------------------------------------------------------------------

class TestHeadings:
    def test_grouped_by_level_then_document_order(self) -> None:
        page = _page("<h2>B1</h2><h1>A1</h1><h3>C</h3><h2>B2</h2><h1>A2</h1>")
        assert [(h.level, h.text) for h in page.headings] == [
            ("h1", "A1"),
            ("h1", "A2"),
            ("h2", "B1"),
            ("h2", "B2"),
            ("h3", "C"),
        ]

    def test_empty_headings_skipped(self) -> None:
        page = _page("<h1>   </h1><h4><span></span></h4><h6>Tiny</h6>")
        assert page.headings == (Heading(level="h6", text="Tiny"),)

    def test_nested_markup_text(self) -> None:
        page = _page("<h2>Hello <em>there</em></h2>")
        assert page.headings[0].text == "Hello there"


class TestParagraphs:
    def test_whitespace_is_collapsed(self) -> None:
        page = _page("<p>  Lots\n\tof    <b>spacing</b>   in   this   one  </p>")
        assert page.paragraphs == ("Lots of spacing in this one",)

    def test_length_threshold(self) -> None:
        page = _page(f"<p>{'x' * 20}</p><p>{'y' * 21}</p>")
        assert page.paragraphs == ("y" * 21,)

    def test_no_leading_trailing_or_doubled_whitespace(self, sample_html: str) -> None:
        for paragraph in extract_page(sample_html, _BASE).paragraphs:
            assert len(paragraph) > 20
            assert paragraph == paragraph.strip()
            assert "  " not in paragraph


# ---------------------------------------------------------------------------
# Links and images
# ---------------------------------------------------------------------------

class TestLinks:
    def test_relative_forms_are_resolved(self) -> None:
        page = _page(
            '<a href="./next.html">next</a>'
            '<a href="../api.html">api</a>'
            '<a href="/root">root</a>'
            '<a href="//cdn.example.org/lib">cdn</a>',
            base="https://example.com/docs/guide/intro.html",
        )
        assert [lnk.url for lnk in page.links] == [
            "https://example.com/docs/guide/next.html",
            "https://example.com/docs/api.html",
            "https://example.com/root",
            "https://cdn.example.org/lib",
        ]

    def test_non_http_targets_discarded(self) -> None:
        page = _page(
            '<a href="mailto:someone@example.com">mail</a>'
            '<a href="javascript:void(0)">js</a>'
            '<a href="#section">frag</a>'
            '<a href="page.html">bare</a>'
            '<a href="ftp://example.com/file">ftp</a>'
            '<a href="">empty</a>'
            "<a>no href</a>"
        )
        assert page.links == ()

    def test_duplicates_keep_first_text(self) -> None:
        page = _page(
            '<a href="https://example.com/a">First</a>'
            '<a href="/a">Second</a>'
            '<a href="https://example.com/a">Third</a>'
        )
        assert page.links == (Link(url="https://example.com/a", text="First"),)

    def test_equivalent_spellings_deduplicate(self) -> None:
        page = _page(
            '<a href="/a b">spaced</a>'
            '<a href="/a%20b">encoded</a>'
            '<a href="//CDN.example.org/x">cdn</a>'
            '<a href="https://cdn.example.org/x">cdn again</a>'
        )
        assert page.links == (
            Link(url="https://example.com/a%20b", text="spaced"),
            Link(url="https://cdn.example.org/x", text="cdn"),
        )

    def test_absolute_hrefs_are_canonicalised(self) -> None:
        page = _page('<a href="HTTPS://Other.Example.org">home</a>')
        assert page.links == (Link(url="https://other.example.org/", text="home"),)

    def test_empty_anchor_text_fallback(self) -> None:
        page = _page('<a href="https://example.com/img"><img src="/i.png"></a>')
        assert page.links[0].text == "no text"


class TestImages:
    def test_resolution_and_defaults(self) -> None:
        page = _page('<img src="/a.png"><img src="https://cdn.example.org/b.jpg" alt="B">')
        assert page.images == (
            Image(src="https://example.com/a.png", alt="", title=""),
            Image(src="https://cdn.example.org/b.jpg", alt="B", title=""),
        )

    def test_deduplicated_by_src(self) -> None:
        page = _page('<img src="/a.png" alt="one"><img src="https://example.com/a.png" alt="two">')
        assert page.images == (Image(src="https://example.com/a.png", alt="one"),)

    def test_sources_are_percent_encoded(self) -> None:
        page = _page('<img src="/i m.png"><img src="/i%20m.png">')
        assert page.images == (Image(src="https://example.com/i%20m.png"),)

    def test_data_uri_kept(self) -> None:
        page = _page('<img src="data:image/gif;base64,R0lGOD">')
        assert page.images[0].src == "data:image/gif;base64,R0lGOD"

    def test_unresolvable_sources_skipped(self) -> None:
        page = _page('<img src=""><img src="relative.png"><img>')
        assert page.images == ()


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------

class TestStats:
    def test_count_words(self) -> None:
        assert count_words(["one two three", "four"]) == 4
        assert count_words([]) == 0

    def test_totals_match_collections(self, sample_html: str) -> None:
        page = extract_page(sample_html, _BASE)
        stats = compute_stats(page)

        assert stats.total_headings == len(page.headings) == 2
        assert stats.total_paragraphs == len(page.paragraphs) == 2
        assert stats.total_links == len(page.links) == 2
        assert stats.total_images == len(page.images) == 1
        assert stats.word_count == 19

    def test_with_stats_returns_new_page(self, sample_html: str) -> None:
        page = extract_page(sample_html, _BASE)
        enriched = page.with_stats(compute_stats(page))
        assert page.stats is None
        assert enriched.stats is not None
        assert enriched.to_dict()["stats"]["wordCount"] == 19
