# File: site_crawl/report/filenames.py
"""site_crawl.report.filenames: стабильные имена файлов для страниц отчёта."""

from __future__ import annotations

import hashlib
from typing import Dict
from urllib.parse import unquote, urlsplit

__all__ = ["FilenameMapper", "name_for_url"]


def _sanitize_segment(segment: str) -> str:
    out: list[str] = []
    last_underscore = False
    for ch in segment:
        if ch.isalnum():
            out.append(ch.lower())
            last_underscore = False
        elif not last_underscore:
            out.append("_")
            last_underscore = True
    return "".join(out).strip("_")


def name_for_url(url: str) -> str:
    """Имя без расширения: сегменты пути через ``_``; корень даёт ``index``."""
    try:
        path = urlsplit(url).path.strip()
    except ValueError:
        return "index"
    parts = [_sanitize_segment(unquote(p)) for p in path.strip("/").split("/") if p]
    parts = [p for p in parts if p]
    return "_".join(parts) or "index"


def _short_hash(value: str) -> str:
    return hashlib.sha1(value.encode("utf-8")).hexdigest()[:8]


class FilenameMapper:
    """Детерминированное отображение URL → имя файла в пределах одного запуска.

    Коллизии разрешаются суффиксом из SHA-1 URL, затем порядковым номером.
    """

    def __init__(self, extension: str) -> None:
        self.extension = extension
        self._used: Dict[str, str] = {}

    def _claim(self, candidate: str, url: str) -> bool:
        owner = self._used.get(candidate)
        if owner is None or owner == url:
            self._used[candidate] = url
            return True
        return False

    def filename_for(self, url: str) -> str:
        name = name_for_url(url)
        first = f"{name}.{self.extension}"
        if self._claim(first, url):
            return first

        digest = _short_hash(url)
        hashed = f"{name}_{digest}.{self.extension}"
        if self._claim(hashed, url):
            return hashed

        n = 2
        while True:
            candidate = f"{name}_{digest}_{n}.{self.extension}"
            if self._claim(candidate, url):
                return candidate
            n += 1
