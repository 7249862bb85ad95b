"""site_crawl.report: запись результатов обхода на диск (страницы + report.json)."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Union

from site_crawl.crawler.models import CrawlResult, PageStatus
from site_crawl.report.filenames import FilenameMapper
from site_crawl.report.json_report import render_json
from site_crawl.report.pages import OutputFormat, render_page


def write_output(result: CrawlResult, out_dir: Union[str, Path], fmt: OutputFormat) -> Path:
    """Пишет по файлу на каждую страницу со статусом ok и сводный report.json.

    Возвращает путь к report.json.
    """
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)

    mapper = FilenameMapper(fmt.value)
    out_paths: Dict[int, str] = {}
    for page in result.pages:
        if page.status is not PageStatus.OK:
            continue
        filename = mapper.filename_for(page.key)
        (out / filename).write_text(render_page(page, fmt, result.clean), encoding="utf-8")
        out_paths[id(page)] = filename

    return render_json(result, out, out_paths)


__all__ = ["write_output", "OutputFormat", "FilenameMapper", "render_page", "render_json"]
