"""
Exception hierarchy for the crawler.

Per-URL problems (``InvalidURL``, ``FetchError``, ``RobotsLoadError``) are
recorded and the run continues; ``InvalidDomain`` and ``CrawlAborted`` end it.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from site_crawl.crawler.models import CrawlResult


class CrawlError(Exception):
    """Base class for all crawler errors."""


class InvalidDomain(CrawlError, ValueError):
    """The crawl domain is empty or has no usable host."""


class InvalidURL(CrawlError, ValueError):
    """A URL or link reference cannot be canonicalized."""


class UnsupportedScheme(InvalidURL):
    """A link uses a scheme other than http(s)."""


class NavigationError(CrawlError):
    """One navigation attempt failed; the message is used for classification."""


class FetchError(CrawlError):
    """Navigation failed after the retry policy gave up."""

    def __init__(self, url: str, cause: BaseException) -> None:
        super().__init__(str(cause) or type(cause).__name__)
        self.url = url
        self.cause = cause


class RobotsLoadError(CrawlError):
    """robots.txt could not be fetched or parsed; the host is treated as allowed."""


class CrawlCancelled(CrawlError):
    """The run was interrupted by the cancellation signal."""


class CrawlAborted(CrawlError):
    """A run-fatal failure; ``result`` holds everything assembled so far."""

    def __init__(self, message: str, result: Optional["CrawlResult"] = None) -> None:
        super().__init__(message)
        self.result = result


class StartPageError(CrawlAborted):
    """The start page could not be fetched over HTTPS nor HTTP."""


__all__ = [
    "CrawlError",
    "InvalidDomain",
    "InvalidURL",
    "UnsupportedScheme",
    "NavigationError",
    "FetchError",
    "RobotsLoadError",
    "CrawlCancelled",
    "CrawlAborted",
    "StartPageError",
]
