"""Data models for the scrape pipeline.

Everything that leaves the extractor is frozen: collections are tuples and
dataclasses are immutable, so a :class:`PageData` held by the cache can be
handed to any number of callers without defensive copies.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

from pagescope.scraper.errors import ValidationErrorKind


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of admitting a candidate URL."""

    is_valid: bool
    normalized_url: str | None = None
    error_reason: ValidationErrorKind | None = None
    message: str = ""


@dataclass(frozen=True)
class FetchSuccess:
    """The raw HTTP response for a single admitted URL fetch."""

    status_code: int
    body: bytes
    final_url: str
    content_type: str = ""


@dataclass(frozen=True)
class PageMeta:
    description: str = ""
    keywords: str = ""
    author: str = ""
    og_title: str = ""
    og_description: str = ""
    og_image: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "description": self.description,
            "keywords": self.keywords,
            "author": self.author,
            "ogTitle": self.og_title,
            "ogDescription": self.og_description,
            "ogImage": self.og_image,
        }


@dataclass(frozen=True)
class Heading:
    level: str
    text: str


@dataclass(frozen=True)
class Link:
    url: str
    text: str


@dataclass(frozen=True)
class Image:
    src: str
    alt: str = ""
    title: str = ""


@dataclass(frozen=True)
class PageStats:
    total_headings: int
    total_paragraphs: int
    total_links: int
    total_images: int
    word_count: int

    def to_dict(self) -> dict[str, int]:
        return {
            "totalHeadings": self.total_headings,
            "totalParagraphs": self.total_paragraphs,
            "totalLinks": self.total_links,
            "totalImages": self.total_images,
            "wordCount": self.word_count,
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PageData:
    """The fact sheet extracted from one page.

    ``url`` is the normalised URL that was requested (the cache key), not the
    post-redirect location.  ``stats`` is ``None`` straight out of the
    extractor and filled in by :func:`pagescope.scraper.stats.compute_stats`.
    """

    url: str
    title: str
    meta: PageMeta = field(default_factory=PageMeta)
    headings: tuple[Heading, ...] = ()
    paragraphs: tuple[str, ...] = ()
    links: tuple[Link, ...] = ()
    images: tuple[Image, ...] = ()
    stats: PageStats | None = None
    scraped_at: datetime = field(default_factory=_utcnow)

    def with_stats(self, stats: PageStats) -> PageData:
        """Return a copy of this page carrying *stats*."""
        return replace(self, stats=stats)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the camelCase JSON shape exposed by the API."""
        return {
            "url": self.url,
            "scrapedAt": format_timestamp(self.scraped_at),
            "title": self.title,
            "meta": self.meta.to_dict(),
            "headings": [{"level": h.level, "text": h.text} for h in self.headings],
            "paragraphs": list(self.paragraphs),
            "links": [{"url": lnk.url, "text": lnk.text} for lnk in self.links],
            "images": [
                {"src": img.src, "alt": img.alt, "title": img.title}
                for img in self.images
            ],
            "stats": self.stats.to_dict() if self.stats is not None else {},
        }


def format_timestamp(value: datetime) -> str:
    """Render *value* as an ISO-8601 UTC string with millisecond precision."""
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")
