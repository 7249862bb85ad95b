"""
Data models for the site_crawl crawler.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, List, NamedTuple, Optional, Tuple

if TYPE_CHECKING:
    from site_crawl.config import CrawlConfig


class Strategy(str, Enum):
    """Traversal/selection policy of a run."""

    PAGERANK = "pagerank"
    LIMIT = "limit"
    DEPTH = "depth"

    @classmethod
    def parse(cls, raw: str) -> Strategy:
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            raise ValueError(f"invalid strategy {raw!r} (allowed: pagerank, limit, depth)") from None


class PageStatus(str, Enum):
    OK = "ok"
    ERROR = "error"
    SKIPPED_ROBOTS = "skipped_robots"
    SKIPPED_OUT_OF_SCOPE = "skipped_out_of_scope"


class RunStatus(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class QueueEntry(NamedTuple):
    url: str
    depth: int


@dataclass(slots=True)
class RenderedPage:
    """What one successful navigation returns."""

    final_url: str
    title: str = ""
    description: str = ""
    links: List[str] = field(default_factory=list)
    body_html: str = ""
    main_html: str = ""
    main_text: str = ""
    raw_html: str = ""


@dataclass(slots=True)
class Page:
    """Outcome of one processed queue entry.

    ``score`` stays ``None`` until a ranking pass attaches one to an ``ok`` page.
    """

    url: str
    final_url: str
    depth: int
    status: PageStatus
    title: str = ""
    description: str = ""
    links: List[str] = field(default_factory=list)
    main_text: str = ""
    main_html: str = ""
    body_html: str = ""
    raw_html: str = ""
    error: str = ""
    score: Optional[float] = None

    @property
    def key(self) -> str:
        """Landed URL, or the queued one when nothing landed."""
        return self.final_url or self.url


@dataclass(slots=True)
class Totals:
    visited: int = 0
    errors: int = 0
    skipped_external: int = 0
    skipped_out_of_scope: int = 0


@dataclass(slots=True)
class CrawlResult:
    """Everything one run produced; read-only once the run has returned."""

    domain: str
    allowed_hosts: Tuple[str, ...]
    config: "CrawlConfig"
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    pages: List[Page] = field(default_factory=list)
    totals: Totals = field(default_factory=Totals)
    status: RunStatus = RunStatus.COMPLETED
    error: str = ""
    ranking: str = ""

    @property
    def strategy(self) -> Strategy:
        return self.config.strategy

    @property
    def max_pages(self) -> int:
        return self.config.max_pages

    @property
    def max_depth(self) -> int:
        return self.config.max_depth

    @property
    def clean(self) -> bool:
        return self.config.clean

    def finish(self, status: Optional[RunStatus] = None, error: str = "") -> CrawlResult:
        if status is not None:
            self.status = status
        if error:
            self.error = error
        self.finished_at = datetime.now(timezone.utc)
        return self


__all__ = [
    "Strategy",
    "PageStatus",
    "RunStatus",
    "QueueEntry",
    "RenderedPage",
    "Page",
    "Totals",
    "CrawlResult",
]
