"""Aggregate counts derived from an extracted :class:`PageData`."""

from __future__ import annotations

from typing import Iterable

from pagescope.scraper.models import PageData, PageStats


def count_words(paragraphs: Iterable[str]) -> int:
    """Sum the whitespace-delimited token counts of *paragraphs*."""
    return sum(len(paragraph.split()) for paragraph in paragraphs)


def compute_stats(page: PageData) -> PageStats:
    return PageStats(
        total_headings=len(page.headings),
        total_paragraphs=len(page.paragraphs),
        total_links=len(page.links),
        total_images=len(page.images),
        word_count=count_words(page.paragraphs),
    )
