# === FILE: site_crawl/parser/html_parser.py ===
"""HTML content extraction for site_crawl.

:func:`extract_page` turns raw markup into the fields a crawl page carries:

* title: document ``<title>`` text, whitespace collapsed, ``""`` if absent.
* description: ``<meta name="description">`` content.
* links: every non-empty ``href`` of ``<a>`` tags, as written (unresolved).
* body/main HTML and main text.

In *clean* mode scripts, styles and inline ``style`` attributes are dropped
and the main region is the first ``main``, ``article`` or ``[role=main]``
element (falling back to ``body``); its text is assembled from block elements
so paragraphs stay separated. Otherwise the whole body is used.
"""
from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from bs4 import BeautifulSoup
from bs4.element import Tag

__all__: Sequence[str] = ("ExtractedContent", "extract_page")

_WS_RE = re.compile(r"\s+")
_BLOCK_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6", "p", "li", "blockquote", "pre")
_STRIP_TAGS = ("script", "style", "noscript")


@dataclass(slots=True)
class ExtractedContent:
    """Fields pulled out of one HTML document."""

    title: str = ""
    description: str = ""
    links: list[str] = field(default_factory=list)
    body_html: str = ""
    main_html: str = ""
    main_text: str = ""


def _normalize(value: str | None) -> str:
    return _WS_RE.sub(" ", value or "").strip()


def _main_region(soup: BeautifulSoup, body: Tag) -> Tag:
    for candidate in (soup.find("main"), soup.find("article"), soup.find(attrs={"role": "main"})):
        if isinstance(candidate, Tag):
            return candidate
    return body


def extract_page(html: str, clean: bool) -> ExtractedContent:
    soup = BeautifulSoup(html, "html.parser")

    title_tag = soup.find("title")
    title = _normalize(title_tag.get_text()) if title_tag else ""

    description = ""
    meta = soup.find("meta", attrs={"name": "description"})
    if isinstance(meta, Tag):
        content = meta.get("content")
        description = _normalize(content if isinstance(content, str) else "")

    links: list[str] = []
    for tag in soup.find_all("a", href=True):
        href = tag.get("href")
        if isinstance(href, str) and _normalize(href):
            links.append(_normalize(href))

    if clean:
        for element in soup(_STRIP_TAGS):
            element.decompose()
        for element in soup.find_all(style=True):
            del element["style"]

    body = soup.find("body")
    if not isinstance(body, Tag):
        body = soup

    if clean:
        main = _main_region(soup, body)
        blocks = [_normalize(el.get_text(" ")) for el in main.find_all(_BLOCK_TAGS)]
        blocks = [b for b in blocks if b]
        main_text = "\n\n".join(blocks) if blocks else _normalize(main.get_text(" "))
    else:
        main = body
        main_text = _normalize(body.get_text(" "))

    return ExtractedContent(
        title=title,
        description=description,
        links=links,
        body_html=body.decode_contents(),
        main_html=main.decode_contents(),
        main_text=main_text,
    )
