# site_crawl/report/json_report.py

"""
Генерация сводного report.json для проекта site_crawl.

Описывает домен, разрешённые хосты, стратегию, конфигурацию, итоги
и полный список исходов по страницам (включая score при ранжировании).
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from site_crawl.crawler.models import CrawlResult, Page

REPORT_NAME = "report.json"


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _page_entry(page: Page, out_path: str) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "url": page.url,
        "final_url": page.final_url,
        "depth": page.depth,
        "status": page.status.value,
        "title": page.title,
        "description": page.description,
        "out_path": out_path,
        "links_count": len(page.links),
        "error": page.error,
        "score": page.score,
    }
    # пустые поля не выводим, как и score без ранжирования
    optional = ("title", "description", "out_path", "error", "score")
    return {k: v for k, v in entry.items() if k not in optional or v not in ("", None)}


def build_report(result: CrawlResult, out_paths: Mapping[int, str]) -> Dict[str, Any]:
    """Собирает словарь отчёта; out_paths: id(page) → имя файла."""
    totals = result.totals
    report: Dict[str, Any] = {
        "domain": result.domain,
        "allowed_hosts": list(result.allowed_hosts),
        "started_at": _iso(result.started_at),
        "finished_at": _iso(result.finished_at),
        "strategy": result.strategy.value,
        "status": result.status.value,
        "max_pages": result.max_pages,
        "max_depth": result.max_depth,
        "clean": result.clean,
        "pages": [_page_entry(p, out_paths.get(id(p), "")) for p in result.pages],
        "totals": {
            "visited": totals.visited,
            "errors": totals.errors,
            "skipped_external": totals.skipped_external,
            "skipped_out_of_scope": totals.skipped_out_of_scope,
        },
    }
    if result.error:
        report["error"] = result.error
    if result.ranking:
        report["pagerank_implementation"] = result.ranking
    return report


def render_json(result: CrawlResult, output_dir: Path | str, out_paths: Mapping[int, str]) -> Path:
    """
    Сохраняет report.json в output_dir и возвращает путь к нему.

    Пример:
    ```python
    from site_crawl.report.json_report import render_json
    report_path = render_json(result, 'out', {})
    ```
    """
    output = Path(output_dir) / REPORT_NAME
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open("w", encoding="utf-8") as f:
        json.dump(build_report(result, out_paths), f, ensure_ascii=False, indent=2)

    return output
