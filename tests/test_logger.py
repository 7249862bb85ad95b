import logging

import pytest

from site_crawl.logger import LOGGER_NAME, configure, init_logging


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    init_logging()


def test_file_handler_receives_records(tmp_path):
    log_file = tmp_path / "logs" / "crawl.log"
    lg = configure(level="debug", log_file=log_file, log_format="%(levelname)s %(message)s")

    lg.debug("robots.txt for %s", "example.com")
    for handler in lg.handlers:
        handler.flush()

    assert lg.level == logging.DEBUG
    assert len(lg.handlers) == 2
    assert "DEBUG robots.txt for example.com" in log_file.read_text(encoding="utf-8")
    assert logging.getLogger("aiohttp.client").level == logging.DEBUG


def test_reconfigure_replaces_handlers():
    configure(level=logging.INFO)
    lg = configure(level="WARNING")

    assert lg is logging.getLogger(LOGGER_NAME)
    assert len(lg.handlers) == 1
    assert lg.propagate is False
    assert logging.getLogger("aiohttp.client").level == logging.WARNING


def test_unknown_level():
    with pytest.raises(ValueError):
        configure(level="LOUD")
