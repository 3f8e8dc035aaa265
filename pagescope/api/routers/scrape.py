"""Scrape and cache endpoints.

Routes
------
POST   /api/scrape        Body: {"url": "https://..."}  → PageData + fromCache
GET    /api/cache/stats   Cache counters
DELETE /api/cache/clear   Drop every cached page
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from pagescope.scraper.errors import ScrapeError
from pagescope.scraper.pipeline import ScrapePipeline

logger = structlog.get_logger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class ScrapeRequest(BaseModel):
    # Non-string values are refused by the validator (400), not by pydantic.
    url: Any = None


class CacheStatsResponse(BaseModel):
    keys: int
    hits: int
    misses: int
    ksize: int
    vsize: int


class MessageResponse(BaseModel):
    message: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _pipeline(request: Request) -> ScrapePipeline:
    return request.app.state.pipeline


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/scrape")
def scrape_endpoint(body: ScrapeRequest, request: Request) -> Any:
    """Scrape a URL and return its extracted facts.

    Served from the cache when the same normalised URL was scraped within
    the TTL window.
    """
    if body.url is None or body.url == "":
        return JSONResponse(
            status_code=400,
            content={"error": "Missing URL", "details": "Please provide a URL to scrape"},
        )

    try:
        result = _pipeline(request).scrape(body.url)
    except ScrapeError as exc:
        return JSONResponse(status_code=exc.http_status, content=exc.to_payload())
    return result.to_dict()


@router.get("/cache/stats", response_model=CacheStatsResponse)
def cache_stats(request: Request) -> dict[str, int]:
    stats = _pipeline(request).cache.stats()
    return {
        "keys": stats.entry_count,
        "hits": stats.hits,
        "misses": stats.misses,
        "ksize": stats.entry_count,
        "vsize": stats.approximate_value_bytes,
    }


@router.delete("/cache/clear", response_model=MessageResponse)
def cache_clear(request: Request) -> dict[str, str]:
    _pipeline(request).cache.clear()
    return {"message": "Cache cleared"}
