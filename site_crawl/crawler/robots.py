"""
robots.txt parsing (RFC 9309) and the per-host compliance cache.
"""
from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Tuple
from urllib.parse import urlsplit

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_crawl.crawler.errors import InvalidURL, RobotsLoadError
from site_crawl.crawler.scope import Scope, normalize_host
from site_crawl.logger import LOGGER_NAME

__all__ = ("RobotsGroup", "RobotsTxtRules", "RobotsEntry", "RobotsCache", "session_robots_fetcher")

RobotsFetcher = Callable[[str], Awaitable[Tuple[int, str]]]


@dataclass(slots=True)
class RobotsGroup:
    """Directives that apply to one set of user-agent tokens."""

    agents: List[str] = field(default_factory=list)
    directives: List[Tuple[str, str]] = field(default_factory=list)
    crawl_delay: Optional[float] = None
    _regex_cache: Dict[str, re.Pattern[str]] = field(default_factory=dict, init=False, repr=False, compare=False)

    _WILDCARD_RE = re.compile(r"(\*|\$)")

    def allows(self, path: str) -> bool:
        """Longest matching rule wins; ``allow`` wins a tie."""
        best_len = -1
        allow: Optional[bool] = None
        for directive, pattern in self.directives:
            if not self._regex(pattern).match(path):
                continue
            length = len(self._WILDCARD_RE.sub("", pattern))
            if length > best_len or (length == best_len and directive == "allow"):
                best_len = length
                allow = directive == "allow"
        return True if allow is None else allow

    def _regex(self, pattern: str) -> re.Pattern[str]:
        compiled = self._regex_cache.get(pattern)
        if compiled is None:
            compiled = _compile_pattern(pattern)
            self._regex_cache[pattern] = compiled
        return compiled


def _compile_pattern(pattern: str) -> re.Pattern[str]:
    esc = re.escape(pattern).replace(r"\*", ".*")
    if pattern.endswith("$"):
        esc = esc[:-2] + "$"
    return re.compile(f"^{esc}")


class RobotsTxtRules:
    """
    Parsed robots.txt.
    An empty Disallow allows every path.
    """

    def __init__(self, text: str) -> None:
        self.groups: List[RobotsGroup] = []
        self._parse(text)

    def group_for(self, user_agent: str) -> Optional[RobotsGroup]:
        """Pick the group whose product token is the longest prefix of ``user_agent``, else ``*``."""
        ua = user_agent.lower()
        best: Optional[RobotsGroup] = None
        best_len = 0
        for group in self.groups:
            for agent in group.agents:
                if agent != "*" and ua.startswith(agent) and len(agent) > best_len:
                    best, best_len = group, len(agent)
        if best is not None:
            return best
        for group in self.groups:
            if "*" in group.agents:
                return group
        return None

    def can_fetch(self, user_agent: str, path: str) -> bool:
        group = self.group_for(user_agent)
        return True if group is None else group.allows(path)

    def _parse(self, text: str) -> None:
        current: Optional[RobotsGroup] = None
        for raw in text.splitlines():
            line = raw.split("#", 1)[0].strip()
            if not line:
                continue
            key, _, val = line.partition(":")
            key = key.lower().strip()
            val = val.strip()
            if key == "user-agent":
                if current is None or (current.agents and (current.directives or current.crawl_delay is not None)):
                    current = RobotsGroup()
                    self.groups.append(current)
                current.agents.append(val.lower())
                continue
            if key not in ("allow", "disallow", "crawl-delay"):
                continue
            if current is None:
                current = RobotsGroup(agents=["*"])
                self.groups.append(current)
            if key == "crawl-delay":
                try:
                    current.crawl_delay = float(val)
                except ValueError:
                    pass
            elif val:
                current.directives.append((key, val))


@dataclass(frozen=True, slots=True)
class RobotsEntry:
    """Loaded robots state of one host; ``group is None`` allows everything."""

    group: Optional[RobotsGroup] = None
    error: Optional[RobotsLoadError] = None


def session_robots_fetcher(session: ClientSession, timeout: float) -> RobotsFetcher:
    """Fetch robots.txt bodies through the run's aiohttp session."""

    async def fetch(url: str) -> Tuple[int, str]:
        async with session.get(url, timeout=ClientTimeout(total=timeout)) as resp:
            return resp.status, await resp.text(errors="replace")

    return fetch


class RobotsCache:
    """Read-through robots.txt cache with one in-flight load per host.

    Any failure to obtain robots.txt fails open: the host is crawled as if it
    had no rules, and the error stays on the entry for diagnostics.
    """

    def __init__(self, scope: Scope, user_agent: str, fetch: RobotsFetcher) -> None:
        self.scope = scope
        self.user_agent = user_agent
        self._fetch = fetch
        self._entries: Dict[str, RobotsEntry] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self.logger = logging.getLogger(LOGGER_NAME)

    async def allowed(self, url: str) -> bool:
        try:
            parts = urlsplit(url)
            host = parts.hostname or ""
        except ValueError as exc:
            raise InvalidURL(f"invalid url {url!r}: {exc}") from exc
        if not self.scope.is_allowed_host(host):
            return False

        entry = await self.entry(host)
        if entry.group is None:
            return True
        path = parts.path or "/"
        if parts.query:
            path += "?" + parts.query
        return entry.group.allows(path)

    async def entry(self, host: str) -> RobotsEntry:
        key = normalize_host(host)
        cached = self._entries.get(key)
        if cached is not None:
            return cached
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            cached = self._entries.get(key)
            if cached is None:
                cached = await self._load(key)
                self._entries[key] = cached
        return cached

    async def _load(self, host: str) -> RobotsEntry:
        last_error: Optional[RobotsLoadError] = None
        for scheme in ("https", "http"):
            robots_url = f"{scheme}://{host}/robots.txt"
            try:
                status, text = await self._fetch(robots_url)
            except (ClientError, asyncio.TimeoutError, OSError, UnicodeError) as exc:
                last_error = RobotsLoadError(f"{robots_url}: {str(exc) or type(exc).__name__}")
                continue
            if 200 <= status < 300:
                return RobotsEntry(group=RobotsTxtRules(text).group_for(self.user_agent))
            if 400 <= status < 500:
                self.logger.debug("robots.txt %s -> HTTP %s, no rules", robots_url, status)
                return RobotsEntry()
            last_error = RobotsLoadError(f"{robots_url}: unexpected status {status}")

        self.logger.warning("robots.txt fetch failed; allowing crawl for host %s: %s", host, last_error)
        return RobotsEntry(error=last_error)
