"""Error taxonomy for the scrape pipeline.

Errors are classified once, where they originate, and travel unchanged to
the API layer.  Each carries the HTTP status and the ``{error, details}``
pair the boundary layer reports to callers.
"""

from __future__ import annotations

from enum import Enum


class ValidationErrorKind(str, Enum):
    EMPTY = "empty"
    MALFORMED_URL = "malformed_url"
    DISALLOWED_SCHEME = "disallowed_scheme"
    FORBIDDEN_HOST = "forbidden_host"
    PRIVATE_ADDRESS = "private_address"
    FORBIDDEN_TLD = "forbidden_tld"
    TOO_LONG = "too_long"


class FetchErrorKind(str, Enum):
    TIMEOUT = "timeout"
    DNS_FAILURE = "dns_failure"
    CONNECTION_REFUSED = "connection_refused"
    HTTP_CLIENT_ERROR = "http_client_error"
    HTTP_SERVER_ERROR = "http_server_error"
    TOO_LARGE = "too_large"
    TOO_MANY_REDIRECTS = "too_many_redirects"
    BLOCKED_REDIRECT = "blocked_redirect"
    TRANSPORT = "transport"


class ScrapeError(Exception):
    """Base class for every classified pipeline failure."""

    http_status: int = 500
    title: str = "Scraping failed"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def details(self) -> str:
        return self.message

    def to_payload(self) -> dict[str, str]:
        return {"error": self.title, "details": self.details}


class ValidationError(ScrapeError):
    """The candidate URL was refused by admission control."""

    http_status = 400
    title = "Invalid URL"

    def __init__(self, kind: ValidationErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class FetchError(ScrapeError):
    """The outbound fetch failed; ``status_code`` is set for HTTP kinds."""

    def __init__(
        self,
        kind: FetchErrorKind,
        message: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code

    @property
    def http_status(self) -> int:  # type: ignore[override]
        if self.kind is FetchErrorKind.TIMEOUT:
            return 408
        if self.kind is FetchErrorKind.HTTP_CLIENT_ERROR and self.status_code in (403, 404):
            return self.status_code
        return 500

    @property
    def title(self) -> str:  # type: ignore[override]
        if self.kind is FetchErrorKind.TIMEOUT:
            return "Timeout"
        if self.status_code == 404:
            return "Page not found"
        if self.status_code == 403:
            return "Access denied"
        return "Scraping failed"

    @property
    def details(self) -> str:
        if self.kind is FetchErrorKind.TIMEOUT:
            return "The page took too long to respond"
        if self.status_code == 404:
            return "The requested page does not exist"
        if self.status_code == 403:
            return "The site blocks access to scraping"
        return "Unable to scrape this URL. Check that it is reachable."


class ExtractionError(ScrapeError):
    """The fetched document cannot be parsed as HTML."""

    title = "Unsupported content"
