# === FILE: site_crawl/config.py ===
"""
Модуль для загрузки и валидации конфигурации краулера site_crawl.
Используется Pydantic для описания схемы и проверки данных:
некорректные значения отвергаются до любого сетевого запроса.
"""
from __future__ import annotations

import errno
import json
from pathlib import Path
from typing import Any, Callable, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from site_crawl.crawler.errors import InvalidDomain
from site_crawl.crawler.models import Strategy
from site_crawl.crawler.scope import Scope

__all__ = ["CrawlConfig", "DEFAULT_USER_AGENT", "load_config"]

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36"
)


class CrawlConfig(BaseModel):
    """Конфигурация одного запуска обхода."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    domain: str = Field(..., min_length=1, description="Домен для обхода (например, example.com).")
    strategy: Strategy = Field(Strategy.PAGERANK, description="Стратегия: pagerank, limit или depth.")
    max_pages: int = Field(25, ge=1, description="Жесткий лимит по числу страниц.")
    max_depth: int = Field(2, ge=0, description="Максимальная глубина (только для strategy=depth).")
    clean: bool = Field(True, description="Убирать скрипты/стили и извлекать основной контент.")
    delay: float = Field(0.75, ge=0, description="Пауза вежливости между переходами (секунд).")
    page_timeout: float = Field(20.0, gt=0, description="Таймаут на одну страницу (секунд).")
    user_agent: str = Field(DEFAULT_USER_AGENT, min_length=1, description="Заголовок User-Agent.")
    retry_times: int = Field(1, ge=0, description="Число повторных попыток при временных ошибках.")
    robots_timeout: float = Field(10.0, gt=0, description="Таймаут загрузки robots.txt (секунд).")

    @field_validator("domain")
    @classmethod
    def _check_domain(cls, v: str) -> str:
        try:
            Scope.from_input(v)
        except InvalidDomain as exc:
            raise ValueError(str(exc)) from exc
        return v.strip()

    @field_validator("strategy", mode="before")
    @classmethod
    def _parse_strategy(cls, v: Any) -> Any:
        if isinstance(v, str):
            return Strategy.parse(v)
        return v


_LOADERS: dict[str, tuple[str, Callable[[str], Any], type[Exception]]] = {
    ".yaml": ("YAML", yaml.safe_load, yaml.YAMLError),
    ".yml": ("YAML", yaml.safe_load, yaml.YAMLError),
    ".json": ("JSON", json.loads, json.JSONDecodeError),
}


def _read_mapping(path: Path) -> dict[str, Any]:
    """Читает файл конфига по расширению; верхний уровень должен быть mapping."""
    suffix = path.suffix.lower()
    if suffix not in _LOADERS:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix or path.name}")
    kind, parse, parse_error = _LOADERS[suffix]
    try:
        data = parse(path.read_text(encoding="utf-8"))
    except parse_error as exc:
        raise ValueError(f"Некорректный {kind} в {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise TypeError(f"{kind}: ожидался mapping на верхнем уровне, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None] = None, **overrides: Any) -> CrawlConfig:
    """
    Читает YAML или JSON (если указан путь), накладывает overrides
    (значения None пропускаются) и возвращает проверенный CrawlConfig.
    При отсутствии файла бросает FileNotFoundError, при ошибках схемы ValidationError.
    """
    data: dict[str, Any] = {}
    if path is not None:
        source = Path(path).expanduser()
        if not source.is_file():
            raise FileNotFoundError(errno.ENOENT, "файл конфигурации не найден", str(source))
        data = _read_mapping(source)

    data.update({k: v for k, v in overrides.items() if v is not None})
    return CrawlConfig(**data)
