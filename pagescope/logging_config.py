"""Structured logging configuration using structlog.

Call :func:`configure_logging` once at startup (the API lifespan and the CLI
entry-point both do).  Modules then log through structlog with key/value
context::

    import structlog
    logger = structlog.get_logger(__name__)
    logger.info("scrape.success", url=url, links=12)

Records emitted through the stdlib ``logging`` API (httpx, uvicorn) are routed
through the same renderer so the output stays uniform.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog

from pagescope.config import settings


def configure_logging(
    log_level: str | None = None,
    json_logs: bool | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: Verbosity name (``"DEBUG"``, ``"INFO"`` …).  Defaults to
            ``settings.log_level``.
        json_logs: Render newline-delimited JSON instead of the coloured
            console format.  Defaults to ``settings.log_json``.
        stream: Where records are written.  Defaults to ``sys.stdout``.

    Safe to call repeatedly; each call replaces the previous configuration.
    """
    level_name = (log_level or settings.log_level).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)
    if json_logs is None:
        json_logs = settings.log_json
    if stream is None:
        stream = sys.stdout

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_logs:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=stream.isatty())

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    if numeric_level > logging.DEBUG:
        for noisy_logger in ("httpx", "httpcore", "uvicorn.access"):
            logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
