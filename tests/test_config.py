# File: tests/test_config.py
import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from site_crawl.config import DEFAULT_USER_AGENT, CrawlConfig, load_config
from site_crawl.crawler.models import Strategy


def write_file(tmp_path: Path, content: str, suffix: str) -> Path:
    path = tmp_path / f"config{suffix}"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "content,suffix,expect_exc",
    [
        ("domain: example.com\nstrategy: depth\nmax_depth: 3", ".yaml", None),
        (json.dumps({"domain": "example.com", "strategy": "DEPTH", "max_depth": 3}), ".json", None),
        ("{}", ".json", ValidationError),
        ("- just\n- a list", ".yml", TypeError),
        ("domain: [unclosed", ".yaml", ValueError),
        ("{broken json", ".json", ValueError),
        ("domain = 'example.com'", ".toml", ValueError),
    ],
)
def test_load_config_variants(tmp_path, content, suffix, expect_exc):
    cfg_path = write_file(tmp_path, content, suffix)
    if expect_exc:
        with pytest.raises(expect_exc):
            load_config(cfg_path)
    else:
        cfg = load_config(cfg_path)
        assert isinstance(cfg, CrawlConfig)
        assert cfg.domain == "example.com"
        assert cfg.strategy is Strategy.DEPTH
        assert cfg.max_depth == 3


def test_defaults():
    cfg = load_config(domain="  example.com ")

    assert cfg.domain == "example.com"
    assert cfg.strategy is Strategy.PAGERANK
    assert cfg.max_pages == 25
    assert cfg.max_depth == 2
    assert cfg.clean is True
    assert cfg.delay == 0.75
    assert cfg.page_timeout == 20.0
    assert cfg.retry_times == 1
    assert cfg.user_agent == DEFAULT_USER_AGENT


def test_overrides_win_and_none_is_skipped(tmp_path):
    cfg_path = write_file(tmp_path, "domain: example.com\nstrategy: limit\nmax_pages: 10", ".yaml")

    cfg = load_config(cfg_path, max_pages=3, strategy=None, clean=False)

    assert cfg.max_pages == 3
    assert cfg.strategy is Strategy.LIMIT
    assert cfg.clean is False


@pytest.mark.parametrize(
    "overrides",
    [
        {"strategy": "bfs"},
        {"max_pages": 0},
        {"max_depth": -1},
        {"delay": -0.5},
        {"page_timeout": 0},
        {"retry_times": -1},
        {"unknown_option": 1},
        {"domain": "https://"},
        {"domain": "   "},
    ],
)
def test_invalid_values_rejected(overrides):
    data = {"domain": "example.com", **overrides}
    with pytest.raises(ValidationError):
        CrawlConfig(**data)


def test_config_is_frozen():
    cfg = CrawlConfig(domain="example.com")
    with pytest.raises(ValidationError):
        cfg.max_pages = 5


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")
