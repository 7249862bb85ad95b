"""
URL canonicalization.

The canonical string is the only identity key used for dedup, queue
membership and graph nodes, so ``normalize_url`` must be idempotent.
"""
from __future__ import annotations

from typing import List, Tuple
from urllib.parse import (
    SplitResult,
    parse_qsl,
    quote,
    quote_plus,
    unquote_to_bytes,
    urljoin,
    urlsplit,
    urlunsplit,
)

from site_crawl.crawler.errors import InvalidURL, UnsupportedScheme
from site_crawl.crawler.scope import normalize_host

__all__ = ("normalize_url", "resolve_and_normalize", "is_tracking_param")

_DEFAULT_PORTS = {"http": 80, "https": 443}
_SKIPPED_PREFIXES = ("javascript:", "mailto:", "tel:", "data:")
_TRACKING_KEYS = frozenset({"gclid", "fbclid"})
# RFC 3986 pchar minus unreserved (always safe for quote)
_PATH_SAFE = "!$&'()*+,;=:@"
# undecodable query bytes survive a decode/encode round trip
_RAW = "surrogateescape"


def is_tracking_param(key: str) -> bool:
    lowered = key.lower()
    return lowered.startswith("utm_") or lowered in _TRACKING_KEYS


def normalize_url(raw: str, clean: bool = False) -> str:
    """Return the canonical form of an absolute http(s) URL."""
    try:
        parts = urlsplit(raw.strip())
    except ValueError as exc:
        raise InvalidURL(f"invalid url {raw!r}: {exc}") from exc
    return _normalize_parts(parts, clean)


def resolve_and_normalize(base_url: str, href: str, clean: bool = False) -> str:
    """Resolve ``href`` against ``base_url`` and canonicalize the result."""
    ref = href.strip()
    if not ref:
        raise InvalidURL("empty link")
    if ref.lower().startswith(_SKIPPED_PREFIXES):
        raise UnsupportedScheme(f"unsupported link scheme: {ref[:32]!r}")
    try:
        resolved = urljoin(base_url, ref)
    except ValueError as exc:
        raise InvalidURL(f"cannot resolve {ref!r} against {base_url!r}: {exc}") from exc
    return normalize_url(resolved, clean)


def _normalize_parts(parts: SplitResult, clean: bool) -> str:
    scheme = parts.scheme.lower()
    if not scheme:
        raise InvalidURL(f"missing scheme in url {parts.geturl()!r}")
    if scheme not in _DEFAULT_PORTS:
        raise UnsupportedScheme(f"unsupported scheme {scheme!r}")

    try:
        hostname = parts.hostname or ""
        port = parts.port
        host = normalize_host(hostname)
    except ValueError as exc:
        raise InvalidURL(f"invalid host in {parts.geturl()!r}: {exc}") from exc

    netloc = f"[{host}]" if ":" in host else host
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc = f"{netloc}:{port}"

    path = _clean_path(parts.path)
    query = _encode_query(parts.query, clean)
    return urlunsplit((scheme, netloc, path, query, ""))


def _clean_path(path: str) -> str:
    """Resolve dot-segments, drop empty segments and re-escape each segment."""
    segments: List[bytes] = []
    for raw_segment in path.split("/"):
        segment = unquote_to_bytes(raw_segment)
        if segment in (b"", b"."):
            continue
        if segment == b"..":
            if segments:
                segments.pop()
            continue
        segments.append(segment)
    return "/" + "/".join(quote(s, safe=_PATH_SAFE) for s in segments)


def _encode_query(query: str, clean: bool) -> str:
    pairs: List[Tuple[str, str]] = parse_qsl(query, keep_blank_values=True, errors=_RAW)
    if clean:
        pairs = [(k, v) for k, v in pairs if not is_tracking_param(k)]
    pairs.sort()
    return "&".join(f"{quote_plus(k, errors=_RAW)}={quote_plus(v, errors=_RAW)}" for k, v in pairs)
