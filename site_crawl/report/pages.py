# File: site_crawl/report/pages.py
"""site_crawl.report.pages: рендеринг одной страницы в Markdown, HTML или JSON."""

from __future__ import annotations

import json
from enum import Enum

from jinja2 import Environment, select_autoescape

from site_crawl.crawler.models import Page

__all__ = ["OutputFormat", "render_page"]


class OutputFormat(str, Enum):
    MARKDOWN = "md"
    HTML = "html"
    JSON = "json"

    @classmethod
    def parse(cls, raw: str) -> OutputFormat:
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            raise ValueError(f"invalid format {raw!r} (allowed: md, html, json)") from None


_MARKDOWN_TEMPLATE = """\
{% if page.title %}# {{ page.title }}

{% endif %}Source: {{ page.key }}

{% if page.description %}Description: {{ page.description }}

{% endif %}{% if clean %}{{ page.main_text }}
{% else %}```html
{{ page.body_html }}
```
{% endif %}"""

_HTML_TEMPLATE = """\
<!doctype html>
<html><head><meta charset="utf-8"><title>{{ page.title or "Untitled" }}</title></head><body>{{ page.main_html | safe }}</body></html>
"""

_text_env = Environment(autoescape=False, keep_trailing_newline=True)
_html_env = Environment(autoescape=select_autoescape(default_for_string=True), keep_trailing_newline=True)
_markdown = _text_env.from_string(_MARKDOWN_TEMPLATE)
_html = _html_env.from_string(_HTML_TEMPLATE)


def render_page(page: Page, fmt: OutputFormat, clean: bool) -> str:
    """Возвращает содержимое файла страницы в выбранном формате."""
    if fmt is OutputFormat.MARKDOWN:
        return _markdown.render(page=page, clean=clean)
    if fmt is OutputFormat.HTML:
        if clean:
            return _html.render(page=page)
        return page.raw_html or page.body_html
    if fmt is OutputFormat.JSON:
        payload = {
            "url": page.url,
            "final_url": page.final_url,
            "title": page.title,
            "description": page.description,
            "links": page.links,
            "links_count": len(page.links),
            "clean": clean,
            "content": page.main_text if clean else page.body_html,
            "content_html": page.main_html if clean else page.body_html,
        }
        return json.dumps(payload, ensure_ascii=False, indent=2) + "\n"
    raise ValueError(f"unsupported output format: {fmt}")
