"""Bounded HTTP fetcher for admitted URLs.

One call performs exactly one request sequence (the initial GET plus any
redirects) and never retries.  Every failure is raised as a classified
:class:`~pagescope.scraper.errors.FetchError`.
"""

from __future__ import annotations

import socket
import time

import httpx
import structlog

from pagescope.config import settings
from pagescope.scraper.errors import FetchError, FetchErrorKind
from pagescope.scraper.models import FetchSuccess
from pagescope.scraper.validator import validate_url

logger = structlog.get_logger(__name__)

_DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Upgrade-Insecure-Requests": "1",
}

_DNS_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
    "getaddrinfo failed",
    "no address associated with hostname",
)
_REFUSED_MARKERS = ("connection refused", "errno 111", "winerror 10061")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _classify_transport_error(exc: BaseException) -> FetchErrorKind:
    """Map a low-level httpx transport error onto a :class:`FetchErrorKind`.

    httpx wraps the socket error it got from httpcore, so the original
    ``socket.gaierror`` / ``ConnectionRefusedError`` is found on the cause
    chain.  The message text is used when the chain has been flattened.
    """
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, socket.gaierror):
            return FetchErrorKind.DNS_FAILURE
        if isinstance(current, ConnectionRefusedError):
            return FetchErrorKind.CONNECTION_REFUSED
        current = current.__cause__ or current.__context__

    text = str(exc).lower()
    if any(marker in text for marker in _DNS_MARKERS):
        return FetchErrorKind.DNS_FAILURE
    if any(marker in text for marker in _REFUSED_MARKERS):
        return FetchErrorKind.CONNECTION_REFUSED
    return FetchErrorKind.TRANSPORT


def _remaining(deadline: float, url: str) -> float:
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        logger.warning("fetch.timeout", url=url)
        raise FetchError(FetchErrorKind.TIMEOUT, f"timeout fetching {url}")
    return remaining


def _check_status(response: httpx.Response, url: str) -> None:
    status = response.status_code
    if status >= 500:
        logger.info("fetch.http_error", url=url, status=status)
        raise FetchError(
            FetchErrorKind.HTTP_SERVER_ERROR, f"HTTP {status} for {url}", status_code=status
        )
    if status >= 400:
        logger.info("fetch.http_error", url=url, status=status)
        raise FetchError(
            FetchErrorKind.HTTP_CLIENT_ERROR, f"HTTP {status} for {url}", status_code=status
        )


def _read_body(
    response: httpx.Response,
    url: str,
    max_content_length: int,
    deadline: float,
) -> bytes:
    """Stream the body, aborting once it passes *max_content_length* bytes."""
    declared = response.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > max_content_length:
        logger.warning("fetch.too_large", url=url, declared=int(declared))
        raise FetchError(
            FetchErrorKind.TOO_LARGE,
            f"response of {declared} bytes exceeds {max_content_length} for {url}",
        )

    chunks: list[bytes] = []
    received = 0
    for chunk in response.iter_bytes():
        received += len(chunk)
        if received > max_content_length:
            logger.warning("fetch.too_large", url=url, received=received)
            raise FetchError(
                FetchErrorKind.TOO_LARGE,
                f"response body exceeds {max_content_length} bytes for {url}",
            )
        chunks.append(chunk)
        _remaining(deadline, url)
    return b"".join(chunks)


def _send(
    client: httpx.Client,
    url: str,
    timeout: float,
    max_redirects: int,
    max_content_length: int,
) -> FetchSuccess:
    deadline = time.monotonic() + timeout
    current = url
    redirects = 0

    while True:
        request = client.build_request(
            "GET",
            current,
            headers=_DEFAULT_HEADERS,
            timeout=_remaining(deadline, url),
        )
        response = client.send(request, stream=True, follow_redirects=False)
        try:
            location = response.headers.get("location")
            if response.is_redirect and location:
                redirects += 1
                if redirects > max_redirects:
                    logger.warning("fetch.too_many_redirects", url=url, limit=max_redirects)
                    raise FetchError(
                        FetchErrorKind.TOO_MANY_REDIRECTS,
                        f"more than {max_redirects} redirects for {url}",
                    )
                target = str(response.url.join(location))
                admitted = validate_url(target)
                if not admitted.is_valid:
                    logger.warning(
                        "fetch.redirect_blocked",
                        url=url,
                        target=target,
                        reason=admitted.error_reason.value if admitted.error_reason else None,
                    )
                    raise FetchError(
                        FetchErrorKind.BLOCKED_REDIRECT,
                        f"redirect from {current} to a forbidden target: {admitted.message}",
                    )
                logger.debug("fetch.redirect", url=current, target=admitted.normalized_url)
                current = admitted.normalized_url or target
                continue

            _check_status(response, current)
            body = _read_body(response, current, max_content_length, deadline)
            return FetchSuccess(
                status_code=response.status_code,
                body=body,
                final_url=str(response.url),
                content_type=response.headers.get("content-type", ""),
            )
        finally:
            response.close()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def fetch_url(
    url: str,
    *,
    timeout: float | None = None,
    max_redirects: int | None = None,
    max_content_length: int | None = None,
    client: httpx.Client | None = None,
) -> FetchSuccess:
    """Fetch an already-validated *url* and return its raw body.

    Args:
        url: Admitted URL (output of :func:`validate_url`).
        timeout: Overall deadline in seconds covering every redirect hop and
            the body download.  Defaults to ``settings.request_timeout``.
        max_redirects: Redirect hops allowed before giving up.
        max_content_length: Largest body accepted, in bytes.
        client: Optional pre-built ``httpx.Client``; one is created (and
            closed) per call otherwise.

    Raises:
        FetchError: Classified failure (timeout, DNS, refused connection,
            HTTP 4xx/5xx, oversize body, redirect limit or forbidden
            redirect target).
    """
    if timeout is None:
        timeout = settings.request_timeout
    if max_redirects is None:
        max_redirects = settings.max_redirects
    if max_content_length is None:
        max_content_length = settings.max_content_length

    try:
        if client is not None:
            return _send(client, url, timeout, max_redirects, max_content_length)
        with httpx.Client(follow_redirects=False) as own_client:
            return _send(own_client, url, timeout, max_redirects, max_content_length)
    except httpx.TimeoutException as exc:
        logger.warning("fetch.timeout", url=url)
        raise FetchError(FetchErrorKind.TIMEOUT, f"timeout fetching {url}") from exc
    except httpx.RequestError as exc:
        kind = _classify_transport_error(exc)
        logger.warning("fetch.transport_error", url=url, kind=kind.value, error=str(exc))
        raise FetchError(kind, f"{kind.value} fetching {url}: {exc}") from exc
