"""Shared fixtures for the pagescope test suite."""

from __future__ import annotations

import logging
from typing import Callable, Iterator

import pytest
import structlog

from pagescope.scraper.models import FetchSuccess

SAMPLE_HTML = """\
<!DOCTYPE html>
<html>
<head>
  <title>Sample Page</title>
  <meta name="description" content="A page used in tests.">
  <meta property="og:title" content="Sample OG title">
</head>
<body>
  <h1>Main heading</h1>
  <h2>Sub heading</h2>
  <p>This is the first paragraph with enough words in it.</p>
  <p>Too short.</p>
  <p>A second   paragraph,
     spread over two lines of markup.</p>
  <a href="/about">About us</a>
  <a href="https://other.example.org/page">Elsewhere</a>
  <a href="/about">About again</a>
  <img src="/img/logo.png" alt="Logo" title="Our logo">
</body>
</html>
"""


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeFetcher:
    """Stands in for ``fetch_url``; records every URL it was asked for."""

    def __init__(
        self,
        body: bytes | str = SAMPLE_HTML,
        content_type: str = "text/html; charset=utf-8",
        error: Exception | None = None,
    ) -> None:
        self.body = body.encode("utf-8") if isinstance(body, str) else body
        self.content_type = content_type
        self.error = error
        self.calls: list[str] = []

    def __call__(self, url: str) -> FetchSuccess:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return FetchSuccess(
            status_code=200,
            body=self.body,
            final_url=url,
            content_type=self.content_type,
        )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture()
def make_fetcher() -> Callable[..., FakeFetcher]:
    return FakeFetcher


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Drop handlers installed by ``configure_logging`` during a test."""
    yield
    logging.getLogger().handlers.clear()
    structlog.contextvars.clear_contextvars()


@pytest.fixture()
def sample_html() -> str:
    return SAMPLE_HTML
