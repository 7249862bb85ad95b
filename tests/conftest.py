# File: tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Dict, List, Optional, Union

import pytest
from aiohttp import web

from site_crawl.config import CrawlConfig
from site_crawl.crawler.errors import NavigationError
from site_crawl.crawler.models import RenderedPage

Outcome = Union[RenderedPage, BaseException]


def make_page(url: str, *links: str, final_url: Optional[str] = None, title: str = "") -> RenderedPage:
    """Build a rendered page with the given raw hrefs."""
    return RenderedPage(
        final_url=final_url or url,
        title=title or url,
        links=list(links),
        main_text=f"text of {url}",
        main_html=f"<p>text of {url}</p>",
        body_html=f"<main><p>text of {url}</p></main>",
        raw_html=f"<html><body><main><p>text of {url}</p></main></body></html>",
    )


class FakeRenderer:
    """
    Scripted renderer: each URL maps to a page, an exception, or a list of
    outcomes consumed one per call. Unknown URLs fail like a 404.
    """

    def __init__(self, site: Dict[str, Union[Outcome, List[Outcome]]], on_render=None) -> None:
        self.site = site
        self.on_render = on_render
        self.calls: List[str] = []

    async def render(self, url: str, *, clean: bool, timeout: float) -> RenderedPage:
        self.calls.append(url)
        if self.on_render is not None:
            self.on_render(url)
        outcome = self.site.get(url)
        if isinstance(outcome, list):
            outcome = outcome.pop(0)
        if outcome is None:
            raise NavigationError(f"http status 404 for {url}")
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    try:
        yield f"http://127.0.0.1:{port}"
    finally:
        await runner.cleanup()


def robots_fetcher(text: Optional[str] = None, status: int = 200, error: Optional[BaseException] = None):
    """Fake robots.txt fetcher recording requested URLs in ``fetch.calls``."""

    async def fetch(url: str):
        fetch.calls.append(url)
        if error is not None:
            raise error
        if text is None:
            return 404, ""
        return status, text

    fetch.calls = []
    return fetch


@pytest.fixture()
def base_config() -> CrawlConfig:
    """Fast, deterministic config: no politeness delay and no retries."""
    return CrawlConfig(
        domain="example.com",
        strategy="limit",
        max_pages=25,
        delay=0,
        retry_times=0,
        user_agent="TestAgent/1.0",
    )


@pytest.fixture()
def allow_all_robots():
    return robots_fetcher()


@pytest.fixture()
def small_site() -> Dict[str, RenderedPage]:
    """
    Home links to /a, /b, /private, an out-of-scope subdomain, an external
    host and a mailto; /a links back home and to /c; /b links to /a.
    """
    return {
        "https://example.com/": make_page(
            "https://example.com/",
            "/a",
            "/b?utm_source=news",
            "/a#top",
            "https://blog.example.com/post",
            "https://other.org/",
            "mailto:team@example.com",
            "/private",
        ),
        "https://example.com/a": make_page("https://example.com/a", "/", "c"),
        "https://example.com/b": make_page("https://example.com/b", "/a"),
        "https://example.com/c": make_page("https://example.com/c"),
        "https://example.com/private": make_page("https://example.com/private"),
    }
