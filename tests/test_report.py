"""Тесты записи результатов: имена файлов, страницы и report.json."""
import hashlib
import json

import pytest

from site_crawl.config import CrawlConfig
from site_crawl.crawler.models import CrawlResult, Page, PageStatus, RunStatus
from site_crawl.report import OutputFormat, write_output
from site_crawl.report.filenames import FilenameMapper, name_for_url
from site_crawl.report.pages import render_page


def _page(url, status=PageStatus.OK, **kwargs):
    fields = {"final_url": url, "depth": 0, "status": status}
    fields.update(kwargs)
    return Page(url=url, **fields)


@pytest.fixture()
def result():
    res = CrawlResult(
        domain="example.com",
        allowed_hosts=("example.com", "www.example.com"),
        config=CrawlConfig(domain="example.com", strategy="limit", clean=True),
    )
    res.pages = [
        _page(
            "https://example.com/",
            title="Home",
            description="Главная",
            links=["/docs"],
            main_text="Welcome",
            main_html="<p>Welcome</p>",
        ),
        _page("https://example.com/docs", depth=1, title="Docs", main_text="Docs body", main_html="<p>Docs body</p>"),
        _page("https://example.com/private", PageStatus.SKIPPED_ROBOTS, depth=1, error="disallowed by robots.txt"),
        _page("https://example.com/broken", PageStatus.ERROR, depth=1, error="http status 404"),
    ]
    res.totals.visited = 3
    res.totals.errors = 1
    res.totals.skipped_external = 2
    return res.finish(RunStatus.COMPLETED)


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://example.com/", "index"),
        ("https://example.com", "index"),
        ("https://example.com/docs/Getting%20Started", "docs_getting_started"),
        ("https://example.com/a--b/c.html", "a_b_c_html"),
        ("https://example.com/%D0%94%D0%BE%D0%BA", "док"),
    ],
)
def test_name_for_url(url, expected):
    assert name_for_url(url) == expected


def test_filename_collisions_get_hash_then_counter():
    mapper = FilenameMapper("md")

    assert mapper.filename_for("https://example.com/") == "index.md"
    assert mapper.filename_for("https://example.com/") == "index.md"

    digest = hashlib.sha1(b"https://www.example.com/").hexdigest()[:8]
    assert mapper.filename_for("https://www.example.com/") == f"index_{digest}.md"

    # a URL that would claim an already-taken hashed name falls through to a counter
    mapper._used[f"a_b_{hashlib.sha1(b'https://example.com/a_b').hexdigest()[:8]}.md"] = "other"
    assert mapper.filename_for("https://example.com/a-b") == "a_b.md"
    assert mapper.filename_for("https://example.com/a_b").endswith("_2.md")


def test_markdown_page():
    page = _page("https://example.com/docs", title="Docs", main_text="Body text", body_html="<p>Body text</p>")

    assert render_page(page, OutputFormat.MARKDOWN, clean=True) == (
        "# Docs\n\nSource: https://example.com/docs\n\nBody text\n"
    )
    raw = render_page(page, OutputFormat.MARKDOWN, clean=False)
    assert "```html\n<p>Body text</p>\n```" in raw


def test_html_page_escapes_title_only():
    page = _page("https://example.com/", title="<Tom & Jerry>", main_html="<p>ok</p>", raw_html="<html>raw</html>")

    html = render_page(page, OutputFormat.HTML, clean=True)
    assert "<title>&lt;Tom &amp; Jerry&gt;</title>" in html
    assert "<body><p>ok</p></body>" in html
    assert render_page(page, OutputFormat.HTML, clean=False) == "<html>raw</html>"


def test_format_parse():
    assert OutputFormat.parse(" MD ") is OutputFormat.MARKDOWN
    with pytest.raises(ValueError):
        OutputFormat.parse("pdf")


def test_write_output_markdown(tmp_path, result):
    report_path = write_output(result, tmp_path / "out", OutputFormat.MARKDOWN)

    out = tmp_path / "out"
    assert report_path == out / "report.json"
    assert sorted(p.name for p in out.iterdir()) == ["docs.md", "index.md", "report.json"]
    assert (out / "index.md").read_text(encoding="utf-8").startswith("# Home\n")

    data = json.loads(report_path.read_text(encoding="utf-8"))
    assert data["domain"] == "example.com"
    assert data["allowed_hosts"] == ["example.com", "www.example.com"]
    assert data["strategy"] == "limit"
    assert data["status"] == "completed"
    assert data["clean"] is True
    assert data["totals"] == {"visited": 3, "errors": 1, "skipped_external": 2, "skipped_out_of_scope": 0}
    assert "pagerank_implementation" not in data
    assert data["finished_at"] is not None

    pages = data["pages"]
    assert [p["status"] for p in pages] == ["ok", "ok", "skipped_robots", "error"]
    assert pages[0]["out_path"] == "index.md"
    assert pages[0]["description"] == "Главная"
    assert pages[0]["links_count"] == 1
    assert "out_path" not in pages[2]
    assert pages[2]["error"] == "disallowed by robots.txt"
    assert all("score" not in p for p in pages)


def test_write_output_json_with_scores(tmp_path, result):
    result.pages[0].score = 0.6
    result.pages[1].score = 0.4
    result.ranking = "pagerank"

    report_path = write_output(result, tmp_path, OutputFormat.JSON)

    page = json.loads((tmp_path / "docs.json").read_text(encoding="utf-8"))
    assert page["content"] == "Docs body"
    assert page["content_html"] == "<p>Docs body</p>"
    assert page["clean"] is True

    data = json.loads(report_path.read_text(encoding="utf-8"))
    assert [p.get("score") for p in data["pages"]] == [0.6, 0.4, None, None]
    assert data["pagerank_implementation"] == "pagerank"
