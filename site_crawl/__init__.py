# site_crawl/__init__.py
"""
site_crawl: bounded, polite single-domain crawler with PageRank ordering.
"""
__version__ = "0.1.0"

from .cli import cli  # noqa: E402
