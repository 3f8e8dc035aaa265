"""URL admission control: syntactic checks plus SSRF guards.

:func:`validate_url` is a pure function.  It never resolves DNS, so a public
hostname that later resolves to a private address is not caught here.
"""

from __future__ import annotations

import ipaddress
import re
import socket
from urllib.parse import quote, urlsplit

from pagescope.config import settings
from pagescope.scraper.errors import ValidationErrorKind
from pagescope.scraper.models import ValidationResult

ALLOWED_SCHEMES: frozenset[str] = frozenset({"http", "https"})

FORBIDDEN_HOSTS: frozenset[str] = frozenset(
    {"localhost", "127.0.0.1", "0.0.0.0", "::1", "[::1]"}
)

PRIVATE_NETWORKS: tuple[ipaddress.IPv4Network, ...] = (
    ipaddress.IPv4Network("10.0.0.0/8"),
    ipaddress.IPv4Network("172.16.0.0/12"),
    ipaddress.IPv4Network("192.168.0.0/16"),
    ipaddress.IPv4Network("169.254.0.0/16"),
)

FORBIDDEN_TLD = ".local"

_DEFAULT_PORTS = {"http": 80, "https": 443}

_DOTTED_QUAD = re.compile(r"^(\d{1,3}\.){3}\d{1,3}$")
# Hostnames made only of numeric labels are IPv4 literals in shorthand
# (``127.1``, ``0x7f.0.0.1``, ``2130706433``) and get canonicalised.
_NUMERIC_HOST = re.compile(r"^(0x[0-9a-f]*|\d+)(\.(0x[0-9a-f]*|\d+)){0,3}\.?$")
_FORBIDDEN_HOST_CHARS = re.compile(r"[\s<>\\^|%#?@\[\]]")

_PATH_SAFE = "/%:@!$&'()*+,;=-._~"
_QUERY_SAFE = _PATH_SAFE + "?"

_MESSAGES = {
    ValidationErrorKind.EMPTY: "URL is empty or not a string",
    ValidationErrorKind.MALFORMED_URL: "Invalid URL format",
    ValidationErrorKind.DISALLOWED_SCHEME: "Only HTTP and HTTPS URLs are allowed",
    ValidationErrorKind.FORBIDDEN_HOST: "Local URLs are not allowed",
    ValidationErrorKind.PRIVATE_ADDRESS: "Private IP addresses are not allowed",
    ValidationErrorKind.FORBIDDEN_TLD: ".local domains are not allowed",
    ValidationErrorKind.TOO_LONG: "URL is too long",
}


class _Malformed(ValueError):
    pass


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _reject(kind: ValidationErrorKind, max_length: int | None = None) -> ValidationResult:
    message = _MESSAGES[kind]
    if kind is ValidationErrorKind.TOO_LONG and max_length is not None:
        message = f"URL is too long (max {max_length} characters)"
    return ValidationResult(is_valid=False, error_reason=kind, message=message)


def _canonical_host(hostname: str) -> str:
    """Lower-case, IDNA-encode and normalise IP literals in *hostname*."""
    if ":" in hostname:
        try:
            return f"[{ipaddress.IPv6Address(hostname).compressed}]"
        except ValueError as exc:
            raise _Malformed(hostname) from exc

    host = hostname.lower()
    if not host or _FORBIDDEN_HOST_CHARS.search(host):
        raise _Malformed(hostname)

    if _NUMERIC_HOST.match(host):
        try:
            return socket.inet_ntoa(socket.inet_aton(host.rstrip(".")))
        except OSError as exc:
            raise _Malformed(hostname) from exc

    try:
        return host.encode("idna").decode("ascii")
    except UnicodeError as exc:
        raise _Malformed(hostname) from exc


def _serialise(candidate: str) -> tuple[str, str, str]:
    """Parse *candidate* into ``(scheme, host, canonical_url)``.

    Raises:
        _Malformed: If the string is not an absolute URL with a usable host.
    """
    try:
        parts = urlsplit(candidate)
        port = parts.port
    except ValueError as exc:
        raise _Malformed(candidate) from exc

    scheme = parts.scheme.lower()
    if not scheme:
        raise _Malformed(candidate)
    if scheme not in ALLOWED_SCHEMES:
        # Scheme checks win over host checks: ``mailto:x@y`` is well formed.
        return scheme, "", candidate
    if not parts.hostname:
        raise _Malformed(candidate)

    host = _canonical_host(parts.hostname)

    netloc = host
    if parts.username is not None:
        userinfo = quote(parts.username, safe="%!$&'()*+,;=-._~")
        if parts.password is not None:
            userinfo += ":" + quote(parts.password, safe="%!$&'()*+,;=-._~")
        netloc = f"{userinfo}@{netloc}"
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc = f"{netloc}:{port}"

    url = f"{scheme}://{netloc}{quote(parts.path or '/', safe=_PATH_SAFE)}"
    if parts.query:
        url += "?" + quote(parts.query, safe=_QUERY_SAFE)
    if parts.fragment:
        url += "#" + quote(parts.fragment, safe=_QUERY_SAFE)
    return scheme, host, url


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def normalize_url(url: str) -> str | None:
    """Return the canonical form of an absolute *url*, or ``None`` if malformed.

    Non-http(s) URLs (``mailto:``, ``data:`` …) are returned unchanged.
    """
    try:
        return _serialise(url)[2]
    except _Malformed:
        return None


def is_private_ip(hostname: str) -> bool:
    """Return ``True`` if *hostname* is a dotted-quad IPv4 in a private range.

    Anything that is not a literal dotted quad (domain names, IPv6) is not
    checked and returns ``False``.
    """
    if not _DOTTED_QUAD.match(hostname):
        return False
    try:
        address = ipaddress.IPv4Address(hostname)
    except ValueError:
        return False
    return any(address in network for network in PRIVATE_NETWORKS)


def validate_url(candidate: object, *, max_length: int | None = None) -> ValidationResult:
    """Admit or refuse *candidate* as a scrape target.

    Checks, in order: presence, URL syntax, scheme, host denylist, private
    IPv4 ranges, the ``.local`` TLD and finally the raw length.  On success
    ``normalized_url`` holds the canonical serialisation, which is also the
    cache key for the page.
    """
    if max_length is None:
        max_length = settings.max_url_length

    if not isinstance(candidate, str) or not candidate.strip():
        return _reject(ValidationErrorKind.EMPTY)

    try:
        scheme, host, normalized = _serialise(candidate.strip())
    except _Malformed:
        return _reject(ValidationErrorKind.MALFORMED_URL)

    if scheme not in ALLOWED_SCHEMES:
        return _reject(ValidationErrorKind.DISALLOWED_SCHEME)

    if host in FORBIDDEN_HOSTS or host.strip("[]").rstrip(".") in FORBIDDEN_HOSTS:
        return _reject(ValidationErrorKind.FORBIDDEN_HOST)

    if is_private_ip(host):
        return _reject(ValidationErrorKind.PRIVATE_ADDRESS)

    if host.rstrip(".").endswith(FORBIDDEN_TLD):
        return _reject(ValidationErrorKind.FORBIDDEN_TLD)

    if len(candidate) > max_length:
        return _reject(ValidationErrorKind.TOO_LONG, max_length)

    return ValidationResult(is_valid=True, normalized_url=normalized)
