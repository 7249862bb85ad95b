from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from typing import Deque, Dict, List, Optional, Set
from urllib.parse import urlsplit

from aiohttp import ClientSession

from site_crawl.config import CrawlConfig
from site_crawl.crawler.errors import (
    CrawlCancelled,
    FetchError,
    InvalidURL,
    StartPageError,
)
from site_crawl.crawler.fetcher import FetchPolicy, should_fallback_to_http
from site_crawl.crawler.models import (
    CrawlResult,
    Page,
    PageStatus,
    QueueEntry,
    RenderedPage,
    RunStatus,
    Strategy,
)
from site_crawl.crawler.ranking import LinkGraph, apply_scores
from site_crawl.crawler.renderer import HttpRenderer, Renderer
from site_crawl.crawler.robots import RobotsCache, RobotsFetcher, session_robots_fetcher
from site_crawl.crawler.scope import Scope, ScopeClass
from site_crawl.crawler.url_normalize import normalize_url, resolve_and_normalize
from site_crawl.logger import LOGGER_NAME
from site_crawl.utils import check_cancelled, jittered_delay, run_cancellable, sleep_or_cancel

__all__ = ("SiteCrawler",)


class SiteCrawler:
    """Sequential single-domain crawler with robots.txt, retry and a page budget.

    Usage::

        async with SiteCrawler(config) as crawler:
            result = await crawler.crawl(cancel_event)

    ``renderer`` and ``robots_fetch`` may be injected; whatever is missing is
    built on an aiohttp session owned by the crawler.
    """

    def __init__(
        self,
        config: CrawlConfig,
        *,
        renderer: Optional[Renderer] = None,
        robots_fetch: Optional[RobotsFetcher] = None,
    ) -> None:
        self.config = config
        self.scope = Scope.from_input(config.domain)
        self.renderer = renderer
        self.robots_fetch = robots_fetch
        self.session: Optional[ClientSession] = None
        self.logger = logging.getLogger(LOGGER_NAME)

    async def __aenter__(self) -> SiteCrawler:
        if self.renderer is None or self.robots_fetch is None:
            self.session = ClientSession(headers={"User-Agent": self.config.user_agent})
            if self.renderer is None:
                self.renderer = HttpRenderer(self.session)
            if self.robots_fetch is None:
                self.robots_fetch = session_robots_fetcher(self.session, self.config.robots_timeout)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.session and not self.session.closed:
            await self.session.close()

    async def crawl(self, cancel: Optional[asyncio.Event] = None) -> CrawlResult:
        """Run one crawl.

        Returns the result with status ``completed`` or, when *cancel* fires,
        ``cancelled`` with every page recorded so far. Raises StartPageError
        (carrying the partial result) when the start page cannot be fetched.
        """
        if self.renderer is None or self.robots_fetch is None:
            raise RuntimeError("SiteCrawler must be used as an async context manager")
        cfg = self.config
        result = CrawlResult(domain=self.scope.base_domain, allowed_hosts=self.scope.allowed_hosts, config=cfg)
        policy = FetchPolicy(self.renderer, attempts=cfg.retry_times + 1)
        run = _Run(self, result, policy, cancel)

        self.logger.info("Crawl started: %s (strategy=%s, max_pages=%d)", self.scope.base_domain, cfg.strategy.value, cfg.max_pages)
        start = time.monotonic()
        try:
            await run.execute()
        except CrawlCancelled:
            self.logger.warning("Crawl interrupted; returning %d recorded pages", len(result.pages))
            result.status = RunStatus.CANCELLED

        if cfg.strategy is Strategy.PAGERANK:
            apply_scores(result, run.graph)
        result.finish()

        duration = time.monotonic() - start
        totals = result.totals
        self.logger.info(
            "Crawl finished (%s) in %.2f s: visited=%d errors=%d skipped_external=%d skipped_out_of_scope=%d",
            result.status.value,
            duration,
            totals.visited,
            totals.errors,
            totals.skipped_external,
            totals.skipped_out_of_scope,
        )
        return result


class _Run:
    """Per-run mutable state; discarded when the run ends."""

    def __init__(self, crawler: SiteCrawler, result: CrawlResult, policy: FetchPolicy, cancel: Optional[asyncio.Event]) -> None:
        self.cfg = crawler.config
        self.scope = crawler.scope
        self.logger = crawler.logger
        self.result = result
        self.policy = policy
        self.cancel = cancel
        self.robots = RobotsCache(self.scope, self.cfg.user_agent, crawler.robots_fetch)
        self.graph = LinkGraph()
        self.queue: Deque[QueueEntry] = deque()
        self.enqueued: Set[str] = set()
        self.processed: Set[str] = set()
        self.seed_pages: Dict[str, RenderedPage] = {}
        self.first_navigation = True

    async def execute(self) -> None:
        start_url = await self._fetch_start()
        self.queue.append(QueueEntry(start_url, 0))
        self.enqueued.add(start_url)

        while self.queue and self.result.totals.visited < self.cfg.max_pages:
            check_cancelled(self.cancel)
            await self._process(self.queue.popleft())

    async def _fetch_start(self) -> str:
        base = self.scope.base_domain
        start_url = f"https://{base}/"
        try:
            page = await self._fetch_policy(start_url)
        except FetchError as exc:
            if not should_fallback_to_http(exc):
                self._fail(start_url, exc)
            self.logger.warning("HTTPS start failed, trying HTTP: %s (%s)", start_url, exc)
            start_url = f"http://{base}/"
            try:
                page = await self._fetch_policy(start_url)
            except FetchError as http_exc:
                self._fail(start_url, http_exc)
        self.logger.info("Using start URL %s", start_url)
        self.seed_pages[start_url] = page
        return start_url

    def _fail(self, url: str, exc: FetchError) -> None:
        self.logger.error("Start page %s failed: %s", url, exc)
        self.result.finish(RunStatus.FAILED, str(exc))
        raise StartPageError(f"start page {url} failed: {exc}", self.result) from exc

    async def _fetch_policy(self, url: str) -> RenderedPage:
        return await self.policy.fetch(url, clean=self.cfg.clean, timeout=self.cfg.page_timeout, cancel=self.cancel)

    async def _process(self, entry: QueueEntry) -> None:
        cfg, totals = self.cfg, self.result.totals
        if entry.url in self.processed:
            return
        self.processed.add(entry.url)

        if cfg.strategy is Strategy.DEPTH and entry.depth > cfg.max_depth:
            return

        try:
            allowed = await run_cancellable(self.robots.allowed(entry.url), self.cancel)
        except InvalidURL as exc:
            self.logger.warning("Robots check failed for %s: %s", entry.url, exc)
            allowed = False
        if not allowed:
            self.logger.debug("Disallowed by robots.txt: %s", entry.url)
            self._record(entry, PageStatus.SKIPPED_ROBOTS, entry.url, error="disallowed by robots.txt")
            return

        fetched = self.seed_pages.pop(entry.url, None)
        if fetched is None:
            if not self.first_navigation:
                await sleep_or_cancel(jittered_delay(cfg.delay), self.cancel)
            self.first_navigation = False
            try:
                fetched = await self._fetch_policy(entry.url)
            except FetchError as exc:
                self.logger.warning("Failed %s: %s", entry.url, exc)
                totals.errors += 1
                totals.visited += 1
                self._record(entry, PageStatus.ERROR, entry.url, error=str(exc))
                return
        self.first_navigation = False

        try:
            landed = normalize_url(fetched.final_url, cfg.clean)
        except InvalidURL:
            landed = entry.url
        if not self.scope.is_allowed_url(landed):
            totals.skipped_out_of_scope += 1
            self._record(entry, PageStatus.SKIPPED_OUT_OF_SCOPE, landed, error="redirected out of allowed host scope")
            return

        links = self._scoped_links(landed, fetched.links)
        self.graph.add_node(landed)
        for link in links:
            self.graph.add_edge(landed, link)
        self._enqueue(links, entry.depth + 1)

        self.result.pages.append(
            Page(
                url=entry.url,
                final_url=landed,
                depth=entry.depth,
                status=PageStatus.OK,
                title=fetched.title,
                description=fetched.description,
                links=links,
                main_text=fetched.main_text,
                main_html=fetched.main_html,
                body_html=fetched.body_html,
                raw_html=fetched.raw_html,
            )
        )
        totals.visited += 1

    def _scoped_links(self, landed: str, hrefs: List[str]) -> List[str]:
        totals = self.result.totals
        kept: Set[str] = set()
        for href in hrefs:
            try:
                link = resolve_and_normalize(landed, href, self.cfg.clean)
            except InvalidURL:
                continue
            verdict = self.scope.classify_host(urlsplit(link).hostname or "")
            if verdict is ScopeClass.ALLOWED:
                kept.add(link)
            elif verdict is ScopeClass.OUT_OF_SCOPE:
                totals.skipped_out_of_scope += 1
            else:
                totals.skipped_external += 1
        return sorted(kept)

    def _enqueue(self, links: List[str], depth: int) -> None:
        if self.cfg.strategy is Strategy.DEPTH and depth > self.cfg.max_depth:
            return
        for link in links:
            if link in self.enqueued:
                continue
            self.enqueued.add(link)
            self.queue.append(QueueEntry(link, depth))

    def _record(self, entry: QueueEntry, status: PageStatus, final_url: str, *, error: str = "") -> None:
        self.result.pages.append(
            Page(url=entry.url, final_url=final_url, depth=entry.depth, status=status, error=error)
        )
