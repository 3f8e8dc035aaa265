"""Content extraction: turns a raw HTML document into a :class:`PageData`."""

from __future__ import annotations

import re
from datetime import datetime
from typing import List
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup

from pagescope.scraper.models import Heading, Image, Link, PageData, PageMeta
from pagescope.scraper.validator import normalize_url

UNTITLED = "untitled"
NO_LINK_TEXT = "no text"
MIN_PARAGRAPH_LENGTH = 20

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")

# (PageMeta field, attribute used for lookup, attribute value)
_META_FIELDS = (
    ("description", "name", "description"),
    ("keywords", "name", "keywords"),
    ("author", "name", "author"),
    ("og_title", "property", "og:title"),
    ("og_description", "property", "og:description"),
    ("og_image", "property", "og:image"),
)

_RELATIVE_PREFIXES = ("/", "./", "../")
_WHITESPACE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _resolve(reference: str, base_url: str) -> str | None:
    """Resolve scheme-, root- and dot-relative *reference* against *base_url*.

    Other references are taken as written.  Either way the result is put in
    canonical form (lower-case host, percent-encoded path) so equivalent
    spellings compare equal.  ``None`` means the reference could not be
    resolved to an absolute URL.
    """
    reference = reference.strip()
    if not reference:
        return None
    if reference.startswith(_RELATIVE_PREFIXES):
        try:
            reference = urljoin(base_url, reference)
        except ValueError:
            return None
    return normalize_url(reference)


def _is_http_url(url: str) -> bool:
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme.lower() in ("http", "https") and bool(parts.netloc)


def _extract_title(soup: BeautifulSoup) -> str:
    """Return the ``<title>`` text, else the first ``<h1>``, else ``"untitled"``."""
    for tag_name in ("title", "h1"):
        tag = soup.find(tag_name)
        if tag is not None:
            text = tag.get_text().strip()
            if text:
                return text
    return UNTITLED


def _extract_meta(soup: BeautifulSoup) -> PageMeta:
    values: dict[str, str] = {}
    for field_name, attr, key in _META_FIELDS:
        tag = soup.find("meta", attrs={attr: key})
        content = tag.get("content") if tag is not None else None
        values[field_name] = content if isinstance(content, str) else ""
    return PageMeta(**values)


def _extract_headings(soup: BeautifulSoup) -> List[Heading]:
    """Return headings grouped by level (all ``h1`` first, then ``h2`` …)."""
    headings: List[Heading] = []
    for level in HEADING_TAGS:
        for tag in soup.find_all(level):
            text = tag.get_text().strip()
            if text:
                headings.append(Heading(level=level, text=text))
    return headings


def _extract_paragraphs(soup: BeautifulSoup) -> List[str]:
    """Return whitespace-normalised ``<p>`` texts longer than 20 characters."""
    paragraphs: List[str] = []
    for tag in soup.find_all("p"):
        text = _WHITESPACE.sub(" ", tag.get_text().strip())
        if len(text) > MIN_PARAGRAPH_LENGTH:
            paragraphs.append(text)
    return paragraphs


def _extract_links(soup: BeautifulSoup, base_url: str) -> List[Link]:
    """Return absolute http(s) links, deduplicated by URL (first one wins)."""
    seen: set[str] = set()
    links: List[Link] = []
    for tag in soup.find_all("a", href=True):
        url = _resolve(tag["href"], base_url)
        if url is None or not _is_http_url(url) or url in seen:
            continue
        seen.add(url)
        links.append(Link(url=url, text=tag.get_text().strip() or NO_LINK_TEXT))
    return links


def _extract_images(soup: BeautifulSoup, base_url: str) -> List[Image]:
    """Return images with absolute ``src`` values, deduplicated by ``src``."""
    seen: set[str] = set()
    images: List[Image] = []
    for tag in soup.find_all("img", src=True):
        src = _resolve(tag["src"], base_url)
        if src is None or src in seen:
            continue
        seen.add(src)
        images.append(
            Image(src=src, alt=tag.get("alt") or "", title=tag.get("title") or "")
        )
    return images


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_page(
    raw_html: bytes | str,
    request_url: str,
    *,
    scraped_at: datetime | None = None,
) -> PageData:
    """Parse *raw_html* and extract the page's fact sheet.

    Relative links and image sources are resolved against *request_url*,
    which is also recorded as ``PageData.url``.  Sparse or sloppy markup
    never raises; missing elements just produce empty fields.  ``stats`` is
    left unset for :func:`pagescope.scraper.stats.compute_stats`.
    """
    soup = BeautifulSoup(raw_html, "html.parser")

    fields = {}
    if scraped_at is not None:
        fields["scraped_at"] = scraped_at

    return PageData(
        url=request_url,
        title=_extract_title(soup),
        meta=_extract_meta(soup),
        headings=tuple(_extract_headings(soup)),
        paragraphs=tuple(_extract_paragraphs(soup)),
        links=tuple(_extract_links(soup, request_url)),
        images=tuple(_extract_images(soup, request_url)),
        **fields,
    )
