# File: site_crawl/engine.py
"""site_crawl.engine: слой оркестрации, запуск одного обхода с обработкой прерывания."""

from __future__ import annotations

import asyncio
import signal
from typing import Optional

from site_crawl.config import CrawlConfig
from site_crawl.crawler.crawler import SiteCrawler
from site_crawl.crawler.models import CrawlResult
from site_crawl.crawler.renderer import Renderer
from site_crawl.crawler.robots import RobotsFetcher
from site_crawl.logger import logger

__all__ = ["run_crawl", "start_crawl"]

_SIGNALS = (signal.SIGINT, signal.SIGTERM)


async def run_crawl(
    config: CrawlConfig,
    *,
    renderer: Optional[Renderer] = None,
    robots_fetch: Optional[RobotsFetcher] = None,
    cancel: Optional[asyncio.Event] = None,
) -> CrawlResult:
    """Асинхронно выполняет обход; при установке cancel возвращает частичный результат."""
    async with SiteCrawler(config, renderer=renderer, robots_fetch=robots_fetch) as crawler:
        return await crawler.crawl(cancel)


async def _run_with_signals(config: CrawlConfig) -> CrawlResult:
    cancel = asyncio.Event()
    loop = asyncio.get_running_loop()
    installed = []
    for sig in _SIGNALS:
        try:
            loop.add_signal_handler(sig, cancel.set)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            # Windows event loops or a non-main thread: Ctrl+C falls back to KeyboardInterrupt
            logger.debug("Signal handler for %s is not available", sig)
    try:
        return await run_crawl(config, cancel=cancel)
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


def start_crawl(config: CrawlConfig) -> CrawlResult:
    """Синхронная точка входа для CLI: SIGINT/SIGTERM прерывают обход корректно."""
    logger.info("Starting crawl…")
    return asyncio.run(_run_with_signals(config))
