"""
Host scoping for a single-domain crawl.

Only ``<domain>`` and ``www.<domain>`` are fetched. Other subdomains of the
base domain are "out of scope"; anything else is "external".
"""
from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from enum import Enum
from typing import Tuple
from urllib.parse import urlsplit

from site_crawl.crawler.errors import InvalidDomain

__all__ = ("Scope", "ScopeClass", "normalize_host")


class ScopeClass(str, Enum):
    ALLOWED = "allowed"
    OUT_OF_SCOPE = "out_of_scope"
    EXTERNAL = "external"


def _strip_port(host: str) -> str:
    if host.startswith("["):
        end = host.find("]")
        return host[1:end] if end != -1 else host[1:]
    if host.count(":") == 1:
        return host.partition(":")[0]
    return host


def normalize_host(host: str) -> str:
    """Canonical host form: case-folded, no trailing dot, port or brackets, IDNA ASCII.

    Raises ``ValueError`` when nothing usable is left.
    """
    value = host.strip().lower()
    value = _strip_port(value).strip("[]")
    if value.endswith("."):
        value = value[:-1]
    if not value:
        raise ValueError("empty host")
    try:
        return ipaddress.ip_address(value).compressed
    except ValueError:
        pass
    if not value.isascii():
        try:
            value = value.encode("idna").decode("ascii")
        except UnicodeError as exc:
            raise ValueError(f"invalid host {host!r}: {exc}") from exc
    return value.rstrip(".").lower()


@dataclass(frozen=True, slots=True)
class Scope:
    """Immutable host scope of one crawl run."""

    base_domain: str
    allowed_hosts: Tuple[str, str]

    @classmethod
    def from_input(cls, raw: str) -> Scope:
        """Build the scope from a domain or URL such as ``www.Example.com``."""
        value = (raw or "").strip()
        if not value:
            raise InvalidDomain("invalid domain: domain is empty")
        if "://" not in value:
            value = "https://" + value
        try:
            hostname = urlsplit(value).hostname
        except ValueError as exc:
            raise InvalidDomain(f"invalid domain: {exc}") from exc
        if not hostname:
            raise InvalidDomain("invalid domain: missing host")
        try:
            host = normalize_host(hostname)
        except ValueError as exc:
            raise InvalidDomain(f"invalid domain: {exc}") from exc
        base = host.removeprefix("www.")
        if not base:
            raise InvalidDomain("invalid domain: empty base domain")
        return cls(base_domain=base, allowed_hosts=(base, "www." + base))

    def is_allowed_host(self, host: str) -> bool:
        try:
            return normalize_host(host) in self.allowed_hosts
        except ValueError:
            return False

    def is_allowed_url(self, url: str) -> bool:
        try:
            hostname = urlsplit(url).hostname
        except ValueError:
            return False
        return bool(hostname) and self.is_allowed_host(hostname)

    def classify_host(self, host: str) -> ScopeClass:
        try:
            normalized = normalize_host(host)
        except ValueError:
            return ScopeClass.EXTERNAL
        if normalized in self.allowed_hosts:
            return ScopeClass.ALLOWED
        if normalized.endswith("." + self.base_domain):
            return ScopeClass.OUT_OF_SCOPE
        return ScopeClass.EXTERNAL
