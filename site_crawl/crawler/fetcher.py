# site_crawl/crawler/fetcher.py
"""
Fetch policy: retry a page navigation with linear backoff and classify errors.

The navigation itself is delegated to a :class:`~site_crawl.crawler.renderer.Renderer`,
so the policy can be exercised with a scripted fake.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence

from site_crawl.crawler.errors import FetchError, NavigationError
from site_crawl.crawler.models import RenderedPage
from site_crawl.crawler.renderer import Renderer
from site_crawl.logger import LOGGER_NAME
from site_crawl.utils import check_cancelled, run_cancellable, sleep_or_cancel

__all__ = ("FetchPolicy", "is_transient_error", "should_fallback_to_http", "linear_backoff")

_TRANSIENT_NEEDLES: Sequence[str] = (
    "timeout",
    "net::err_",
    "connection reset",
    "connection refused",
    "temporary",
    "no such host",
)
_HTTP_FALLBACK_NEEDLES: Sequence[str] = (
    "net::err_ssl",
    "net::err_cert",
    "tls",
    "x509",
    "unsupported protocol scheme",
    "net::err_connection_refused",
    "net::err_empty_response",
)


def _error_text(exc: BaseException) -> str:
    if isinstance(exc, FetchError):
        exc = exc.cause
    return str(exc).lower()


def is_transient_error(exc: BaseException) -> bool:
    """Deadline, cancellation or a network-ish message: worth another attempt."""
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError, asyncio.CancelledError)):
        return True
    text = _error_text(exc)
    return any(needle in text for needle in _TRANSIENT_NEEDLES)


def should_fallback_to_http(exc: BaseException) -> bool:
    """TLS/protocol failures on the HTTPS start URL that justify trying plain HTTP."""
    text = _error_text(exc)
    return any(needle in text for needle in _HTTP_FALLBACK_NEEDLES)


def linear_backoff(attempt: int) -> float:
    """Seconds to wait before retry number *attempt* (1-based): 0.5, 1.0, 1.5, ..."""
    return attempt * 0.5


class FetchPolicy:
    """Handles page navigation with a fixed attempt budget and backoff."""

    def __init__(
        self,
        renderer: Renderer,
        *,
        attempts: int = 2,
        backoff: Callable[[int], float] = linear_backoff,
        is_transient: Callable[[BaseException], bool] = is_transient_error,
        sleep: Callable[[float, Optional[asyncio.Event]], Awaitable[None]] = sleep_or_cancel,
    ) -> None:
        if attempts < 1:
            raise ValueError("attempts must be >= 1")
        self.renderer = renderer
        self.attempts = attempts
        self._backoff = backoff
        self._is_transient = is_transient
        self._sleep = sleep
        self.logger = logging.getLogger(LOGGER_NAME)

    async def fetch(
        self,
        url: str,
        *,
        clean: bool,
        timeout: float,
        cancel: Optional[asyncio.Event] = None,
    ) -> RenderedPage:
        """
        Navigate to *url*, retrying transient failures.

        Raises FetchError once the error is fatal or the budget is spent;
        CrawlCancelled passes through untouched.
        """
        for attempt in range(self.attempts):
            if attempt:
                await self._sleep(self._backoff(attempt), cancel)
                self.logger.warning("Retrying page navigation %s (attempt %d/%d)", url, attempt + 1, self.attempts)
            check_cancelled(cancel)
            try:
                return await run_cancellable(
                    self.renderer.render(url, clean=clean, timeout=timeout), cancel
                )
            except (NavigationError, asyncio.TimeoutError) as exc:
                if not self._is_transient(exc) or attempt == self.attempts - 1:
                    raise FetchError(url, exc) from exc
                self.logger.debug("Transient navigation error for %s: %s", url, exc)
        # unreachable: the last attempt either returns or raises
        raise FetchError(url, NavigationError("navigation failed"))
