"""FastAPI application factory.

Lifespan
--------
On startup the app configures logging and builds one
:class:`~pagescope.scraper.pipeline.ScrapePipeline` (and with it the result
cache) shared by every request via ``request.app.state.pipeline``.  On
shutdown the cache is flushed.

Routers
-------
All endpoints are mounted under ``/api``:

    /api/scrape        — scrape a URL
    /api/cache/stats   — cache counters
    /api/cache/clear   — flush the cache
"""

from __future__ import annotations

import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pagescope.api.routers import scrape as scrape_router
from pagescope.config import settings
from pagescope.logging_config import configure_logging
from pagescope.scraper.pipeline import ScrapePipeline

logger = structlog.get_logger(__name__)


def create_app(pipeline: ScrapePipeline | None = None) -> FastAPI:
    """Return a fully-configured FastAPI application instance.

    Args:
        pipeline: Pipeline to serve requests with.  A fresh one (with its
            own empty cache) is built at startup when omitted.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging()
        app.state.pipeline = pipeline if pipeline is not None else ScrapePipeline()
        logger.info("app.started", environment=settings.environment)
        try:
            yield
        finally:
            app.state.pipeline.cache.clear()

    app = FastAPI(
        title="pagescope API",
        description=(
            "Fetches an arbitrary public URL behind SSRF admission checks and "
            "returns its title, metadata, headings, paragraphs, links, images "
            "and word statistics.  Results are cached per URL for a short TTL."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):  # type: ignore[no-untyped-def]
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=str(uuid.uuid4()))
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "http.request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("http.unhandled_error", path=request.url.path)
        content: dict[str, str] = {"error": "Internal server error"}
        if settings.is_development:
            content["message"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    @app.get("/api/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(scrape_router.router, prefix="/api", tags=["scrape"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn pagescope.api.app:app --reload
app = create_app()
