"""
Bounded-depth, deduplicated site crawler.

Traversal is breadth-first by depth level. Each level is fetched in batches
of fixed width; a batch runs concurrently and must finish before the next one
starts, with a pause between consecutive batches so the target server is not
overwhelmed. Depth d+1 never starts before depth d has drained.

A URL is marked visited as soon as it is enqueued, so it is fetched at most
once per run even when several parents discover it. A failed page is logged
and left out of the result; it never stops sibling or deeper fetches.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Protocol, Set

from .config import CrawlConfig, get_crawl_config
from .crawl_schemas import CrawledPage, CrawlTarget
from .link_extractor import canonicalize_url, internal_links
from .robots import RobotsPolicy

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    async def fetch(self, url: str, depth: int = 0) -> CrawledPage:
        ...


@dataclass
class CrawlContext:
    """State of one crawl invocation. Never shared between runs."""

    seed_url: str
    max_depth: int
    visited: Set[str] = field(default_factory=set)
    pages: List[CrawledPage] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)

    def mark_visited(self, url: str) -> bool:
        """Record a URL; returns False when it was already seen."""
        canonical = canonicalize_url(url)
        if canonical in self.visited:
            return False
        self.visited.add(canonical)
        return True


def chunk(items: List[CrawlTarget], size: int) -> List[List[CrawlTarget]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class CrawlEngine:
    """Drives traversal over a page fetcher."""

    def __init__(
        self,
        fetcher: Fetcher,
        config: Optional[CrawlConfig] = None,
        robots: Optional[RobotsPolicy] = None,
        on_page: Optional[Callable[[CrawledPage], None]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.fetcher = fetcher
        self.config = config or get_crawl_config()
        self.robots = robots
        self.on_page = on_page
        self._sleep = sleep
        self.last_context: Optional[CrawlContext] = None

    async def crawl(self, seed_url: str, max_depth: Optional[int] = None) -> List[CrawledPage]:
        """
        Crawl a site from its seed URL.

        Args:
            seed_url: Absolute URL to start from (always fetched).
            max_depth: Deepest level to fetch; defaults to the configured depth.

        Returns:
            Successfully fetched pages in discovery order. Partial on failures.
        """
        if max_depth is None:
            max_depth = self.config.max_depth
        context = CrawlContext(seed_url=seed_url, max_depth=max_depth)
        self.last_context = context

        logger.info("Starting to crawl website: %s (max depth %d)", seed_url, max_depth)
        context.mark_visited(seed_url)
        level = [CrawlTarget(url=seed_url, depth=0)]

        while level:
            depth = level[0].depth
            fetched = await self._crawl_level(context, level)
            if depth >= max_depth:
                break
            level = self._next_level(context, fetched, depth + 1)

        logger.info(
            "Crawling completed. Found %d pages (%d failed)",
            len(context.pages), len(context.failures),
        )
        return list(context.pages)

    async def _crawl_level(self, context: CrawlContext, level: List[CrawlTarget]) -> List[CrawledPage]:
        """Fetch one depth level batch by batch; returns the pages kept."""
        kept: List[CrawledPage] = []
        batches = chunk(level, max(1, self.config.batch_size))
        for index, batch in enumerate(batches):
            if index > 0:
                await self._sleep(self.config.batch_delay)
            results = await asyncio.gather(
                *(self._fetch(target) for target in batch),
                return_exceptions=True,
            )
            for target, result in zip(batch, results):
                if isinstance(result, BaseException):
                    if not isinstance(result, Exception):
                        raise result
                    self._record_failure(context, target.url, str(result) or type(result).__name__)
                    continue
                if result.failed:
                    self._record_failure(context, target.url, result.fetch_error)
                    continue
                context.pages.append(result)
                kept.append(result)
                if self.on_page is not None:
                    self.on_page(result)
        return kept

    async def _fetch(self, target: CrawlTarget) -> CrawledPage:
        return await self.fetcher.fetch(target.url, target.depth)

    def _record_failure(self, context: CrawlContext, url: str, message: str) -> None:
        logger.warning("Error crawling page %s: %s", url, message)
        context.failures.append(f"{url}: {message}")

    def _next_level(self, context: CrawlContext, pages: List[CrawledPage], depth: int) -> List[CrawlTarget]:
        """Unseen internal links of a level's pages, as targets one level deeper."""
        targets: List[CrawlTarget] = []
        for page in pages:
            for link in internal_links(page, context.seed_url):
                if self._at_page_limit(context):
                    return targets
                if self.robots is not None and not self.robots.allows(link):
                    logger.debug("Skipping %s (disallowed by robots.txt)", link)
                    continue
                if context.mark_visited(link):
                    targets.append(CrawlTarget(url=link, depth=depth))
        return targets

    def _at_page_limit(self, context: CrawlContext) -> bool:
        limit = self.config.max_pages
        return limit is not None and len(context.visited) >= limit
