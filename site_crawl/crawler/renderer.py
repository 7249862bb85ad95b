# site_crawl/crawler/renderer.py
"""
Renderer capability: one navigation attempt for one URL.

The crawler only depends on the :class:`Renderer` protocol. :class:`HttpRenderer`
is the default implementation: a plain aiohttp GET (redirects followed, no
JavaScript) whose HTML is handed to :func:`~site_crawl.parser.html_parser.extract_page`.
Transport failures are reported as :class:`NavigationError` with Chrome-style
``net::ERR_*`` messages so the fetch policy can classify them.
"""
from __future__ import annotations

import asyncio
from typing import Protocol, Sequence

from aiohttp import (
    ClientConnectorCertificateError,
    ClientConnectorDNSError,
    ClientConnectorError,
    ClientError,
    ClientSession,
    ClientSSLError,
    ClientTimeout,
    InvalidURL,
    ServerDisconnectedError,
)

from site_crawl.crawler.errors import NavigationError
from site_crawl.crawler.models import RenderedPage
from site_crawl.parser.html_parser import extract_page

__all__ = ("Renderer", "HttpRenderer")

_TEMPORARY_STATUS: Sequence[int] = tuple(range(500, 600)) + (429,)
_HTML_TYPES: Sequence[str] = ("text/html", "application/xhtml+xml")


class Renderer(Protocol):
    async def render(self, url: str, *, clean: bool, timeout: float) -> RenderedPage:
        """Navigate once; raise NavigationError or TimeoutError on failure."""
        ...


class HttpRenderer:
    """Renderer over an aiohttp session (the session is owned by the caller)."""

    def __init__(self, session: ClientSession) -> None:
        self.session = session

    async def render(self, url: str, *, clean: bool, timeout: float) -> RenderedPage:
        try:
            async with self.session.get(url, timeout=ClientTimeout(total=timeout), allow_redirects=True) as resp:
                status = resp.status
                if status in _TEMPORARY_STATUS:
                    raise NavigationError(f"temporary server error: http status {status} for {url}")
                if status >= 400:
                    raise NavigationError(f"http status {status} for {url}")
                mime = resp.headers.get("Content-Type", "").split(";", 1)[0].strip().lower()
                if mime and mime not in _HTML_TYPES:
                    raise NavigationError(f"unsupported content type {mime!r} for {url}")
                html = await resp.text(errors="replace")
                final_url = str(resp.url)
        except asyncio.TimeoutError as exc:
            raise NavigationError(f"navigate {url}: timeout after {timeout:g}s") from exc
        except ClientConnectorCertificateError as exc:
            raise NavigationError(f"navigate {url}: net::ERR_CERT_INVALID ({exc})") from exc
        except ClientSSLError as exc:
            raise NavigationError(f"navigate {url}: net::ERR_SSL_PROTOCOL_ERROR ({exc})") from exc
        except ClientConnectorDNSError as exc:
            raise NavigationError(f"navigate {url}: net::ERR_NAME_NOT_RESOLVED ({exc})") from exc
        except ClientConnectorError as exc:
            raise NavigationError(f"navigate {url}: net::ERR_CONNECTION_REFUSED ({exc})") from exc
        except ServerDisconnectedError as exc:
            raise NavigationError(f"navigate {url}: net::ERR_EMPTY_RESPONSE ({exc})") from exc
        except InvalidURL as exc:
            raise NavigationError(f"navigate {url}: unsupported protocol scheme ({exc})") from exc
        except ClientError as exc:
            raise NavigationError(f"navigate {url}: net::ERR_FAILED ({exc})") from exc

        content = extract_page(html, clean)
        return RenderedPage(
            final_url=final_url or url,
            title=content.title,
            description=content.description,
            links=content.links,
            body_html=content.body_html,
            main_html=content.main_html,
            main_text=content.main_text,
            raw_html=html,
        )
