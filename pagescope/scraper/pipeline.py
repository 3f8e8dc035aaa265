"""Scrape orchestration: validate → cache → fetch → extract → stats → cache.

Validation always runs before any network access, and a page is only
cached after it was fetched and extracted successfully, so a failed
request never leaves anything behind.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

import structlog

from pagescope.scraper.cache import ResultCache
from pagescope.scraper.errors import (
    ExtractionError,
    ScrapeError,
    ValidationError,
    ValidationErrorKind,
)
from pagescope.scraper.extractor import extract_page
from pagescope.scraper.fetcher import fetch_url
from pagescope.scraper.models import FetchSuccess, PageData, format_timestamp
from pagescope.scraper.stats import compute_stats
from pagescope.scraper.validator import validate_url

logger = structlog.get_logger(__name__)

#: Content-Type prefixes that cannot be parsed as HTML.
BINARY_CONTENT_TYPES: frozenset[str] = frozenset(
    {
        "application/pdf",
        "application/zip",
        "application/octet-stream",
        "application/vnd.",
        "image/",
        "video/",
        "audio/",
        "font/",
    }
)


def _is_binary_content_type(content_type: str) -> bool:
    ct = content_type.lower().split(";")[0].strip()
    return any(ct.startswith(prefix) for prefix in BINARY_CONTENT_TYPES)


@dataclass(frozen=True)
class ScrapeResult:
    page: PageData
    from_cache: bool

    def to_dict(self) -> dict[str, Any]:
        payload = self.page.to_dict()
        payload["fromCache"] = self.from_cache
        if self.from_cache:
            payload["cachedAt"] = format_timestamp(self.page.scraped_at)
        return payload


class ScrapePipeline:
    """Run one scrape request end to end.

    The pipeline keeps no per-request state; the cache is the only shared
    resource, so requests for different URLs may run in parallel threads.
    Two concurrent misses on the same URL both fetch and the later write
    wins.
    """

    def __init__(
        self,
        cache: ResultCache | None = None,
        fetcher: Callable[[str], FetchSuccess] = fetch_url,
    ) -> None:
        self.cache = cache if cache is not None else ResultCache()
        self._fetch = fetcher

    def scrape(self, candidate: object) -> ScrapeResult:
        """Scrape *candidate* and return the page plus its cache provenance.

        Raises:
            ValidationError: The URL was refused; nothing was fetched.
            FetchError: The fetch failed; nothing was cached.
            ExtractionError: The response is not an HTML document.
        """
        validation = validate_url(candidate)
        if not validation.is_valid:
            reason = validation.error_reason or ValidationErrorKind.MALFORMED_URL
            logger.info("scrape.rejected", url=str(candidate)[:200], reason=reason.value)
            raise ValidationError(reason, validation.message)

        url = validation.normalized_url or str(candidate)
        log = logger.bind(url=url)

        cached = self.cache.get(url)
        if cached is not None:
            log.info("scrape.cache_hit")
            return ScrapeResult(page=cached, from_cache=True)

        log.info("scrape.start")
        try:
            fetched = self._fetch(url)
            if _is_binary_content_type(fetched.content_type):
                raise ExtractionError(
                    f"binary content-type {fetched.content_type!r} for {url}"
                )
            page = extract_page(fetched.body, url)
            page = page.with_stats(compute_stats(page))
        except ScrapeError as exc:
            log.warning(
                "scrape.failed",
                error=type(exc).__name__,
                kind=getattr(getattr(exc, "kind", None), "value", None),
                message=exc.message,
            )
            raise

        self.cache.put(url, page)
        log.info(
            "scrape.success",
            status=fetched.status_code,
            final_url=fetched.final_url,
            links=page.stats.total_links if page.stats else 0,
        )
        return ScrapeResult(page=page, from_cache=False)
