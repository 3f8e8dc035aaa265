"""Scraper package — URL admission, bounded fetch, extraction and caching."""

from pagescope.scraper.cache import ResultCache
from pagescope.scraper.errors import (
    ExtractionError,
    FetchError,
    FetchErrorKind,
    ScrapeError,
    ValidationError,
    ValidationErrorKind,
)
from pagescope.scraper.extractor import extract_page
from pagescope.scraper.fetcher import fetch_url
from pagescope.scraper.models import PageData, PageStats
from pagescope.scraper.pipeline import ScrapePipeline, ScrapeResult
from pagescope.scraper.stats import compute_stats
from pagescope.scraper.validator import validate_url

__all__ = [
    "validate_url",
    "fetch_url",
    "extract_page",
    "compute_stats",
    "ResultCache",
    "ScrapePipeline",
    "ScrapeResult",
    "PageData",
    "PageStats",
    "ScrapeError",
    "ValidationError",
    "ValidationErrorKind",
    "FetchError",
    "FetchErrorKind",
    "ExtractionError",
]
