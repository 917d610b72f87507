"""
Crawl-and-extract pipeline for a single firm website.

Implements the complete flow:
1. START - Launch the page fetcher, load robots.txt
2. CRAWL - Breadth-first crawl to the requested depth
3. ANALYZE - Aggregate pages into one corpus, send it to the extraction service
4. EXTRACT - Parse, clean and score the response
5. COMPLETE - Assemble the ExtractionRecord and run metadata

Every phase change is emitted once on the run's ProgressChannel. On failure an
error event is emitted with the pages crawled so far and the original
exception propagates. The page fetcher is closed on every path.
"""

import asyncio
import logging
import re
import time
from typing import Awaitable, Callable, List, Optional, Protocol
from urllib.parse import urlparse

from .config import CrawlConfig
from .content_merger import aggregate
from .crawl_schemas import (
    PHASE_TRANSITIONS,
    CrawledPage,
    ProgressEvent,
    ProgressPhase,
    RunMetadata,
    ScrapeRequest,
    ScrapeResult,
    utc_now,
)
from .crawler import CrawlEngine
from .extraction_client import ExtractionClient
from .page_fetcher import PageFetcher
from .progress import Listener, ProgressChannel
from .quality_scoring import get_data_extracted_fields
from .response_validator import validate
from .robots import RobotsPolicy, load_robots_policy
from .schemas import DataQuality, ExtractedProfile, ExtractionRecord, get_extraction_prompt

logger = logging.getLogger(__name__)

UNKNOWN_FIRM_NAME = "Unknown Firm"

PHASE_LABELS = {
    ProgressPhase.STARTING: "Initializing web scraper...",
    ProgressPhase.CRAWLING: "Crawling website pages...",
    ProgressPhase.ANALYZING: "Analyzing content...",
    ProgressPhase.EXTRACTING: "Extracting structured data...",
    ProgressPhase.COMPLETED: "Analysis completed successfully",
    ProgressPhase.ERROR: "Error occurred during scraping",
}

RobotsLoader = Callable[[str, str], Awaitable[RobotsPolicy]]


class BrowserFetcher(Protocol):
    async def start(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def fetch(self, url: str, depth: int = 0) -> CrawledPage:
        ...


def extract_name_from_url(url: str) -> str:
    """Derive a display name from a website host, e.g. smith-partners.co.uk -> Smith Partners."""
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return UNKNOWN_FIRM_NAME
    name = re.sub(r"^www\.", "", host)
    name = re.sub(r"\.(com|org|net|co\.uk|de|fr|es|it)$", "", name)
    name = re.sub(r"[-_]", " ", name).split(".")[0]
    name = " ".join(word[:1].upper() + word[1:] for word in name.split())
    return name or UNKNOWN_FIRM_NAME


def build_record(
    profile: ExtractedProfile,
    seed_url: str,
    data_quality: DataQuality,
    extraction_method: str,
) -> ExtractionRecord:
    """
    Assemble the canonical record from a cleaned profile.

    Args:
        profile: Cleaned partial profile from the validator.
        seed_url: The run's seed URL; used as website and source URL.
        data_quality: Tier assigned by the validator.
        extraction_method: Identifier of the extraction model.

    Returns:
        ExtractionRecord with list fields defaulted to empty.
    """
    fields = profile.model_dump(exclude_none=True, exclude={"website"})
    fields.setdefault("name", extract_name_from_url(seed_url))
    return ExtractionRecord(
        **fields,
        website=seed_url,
        scraped_at=utc_now().isoformat(),
        data_quality=data_quality,
        extraction_method=extraction_method,
        source_url=seed_url,
    )


class ProfileScraper:
    """Runs one crawl-and-extract pass over a firm website."""

    def __init__(
        self,
        request: ScrapeRequest,
        listener: Optional[Listener] = None,
        *,
        fetcher: Optional[BrowserFetcher] = None,
        extraction_client: Optional[ExtractionClient] = None,
        crawl_config: Optional[CrawlConfig] = None,
        robots_loader: RobotsLoader = load_robots_policy,
        channel: Optional[ProgressChannel] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            request: The inbound scrape request.
            listener: Called with every ProgressEvent of the run.
            fetcher: Page fetcher; a Playwright PageFetcher by default.
            extraction_client: Extraction service client.
            crawl_config: Crawl settings; derived from the request by default.
            robots_loader: Coroutine returning the seed site's RobotsPolicy.
            channel: Progress channel to emit on.
            sleep: Pause used between crawl batches.

        Raises:
            ConfigError: If no extraction service key is available.
        """
        self.request = request
        self.crawl_config = crawl_config or CrawlConfig.from_request(request)

        self._owns_client = extraction_client is None
        self.extraction_client = extraction_client or ExtractionClient(api_key=request.api_key)
        self.fetcher = fetcher or PageFetcher(self.crawl_config)

        self.channel = channel or ProgressChannel()
        if listener is not None:
            self.channel.subscribe(listener)

        self.robots_loader = robots_loader
        self._sleep = sleep
        self.pages: List[CrawledPage] = []
        self._pages_crawled = 0

    @property
    def events(self) -> List[ProgressEvent]:
        return list(self.channel.events)

    async def scrape(self) -> ScrapeResult:
        """
        Run the pipeline.

        Returns:
            ScrapeResult with the assembled record and run metadata.

        Raises:
            ServiceError: The extraction service failed.
            ParseError: The service response held no JSON object.
        """
        started = time.monotonic()
        seed_url = self.request.website_url

        try:
            self._emit(ProgressPhase.STARTING)
            await self.fetcher.start()
            robots = await self._load_robots(seed_url)

            self._emit(ProgressPhase.CRAWLING)
            crawl_engine = CrawlEngine(
                self.fetcher,
                self.crawl_config,
                robots=robots,
                on_page=self._count_page,
                sleep=self._sleep,
            )
            self.pages = await crawl_engine.crawl(seed_url, self.request.max_depth)
            failures = list(crawl_engine.last_context.failures)

            self._emit(ProgressPhase.ANALYZING)
            corpus = aggregate(self.pages)
            if not corpus:
                logger.warning("No pages could be loaded from %s, analyzing empty content", seed_url)
            template = get_extraction_prompt(
                include_projects=self.request.include_projects,
                include_team=self.request.include_team,
                include_awards=self.request.include_awards,
                include_publications=self.request.include_publications,
            )
            raw_text = await self.extraction_client.analyze(corpus, template)
            outcome = validate(raw_text)

            self._emit(ProgressPhase.EXTRACTING, partial_data=outcome.extracted_data)
            record = build_record(
                outcome.extracted_data,
                seed_url,
                outcome.data_quality,
                self.extraction_client.model,
            )
            metadata = RunMetadata(
                crawl_time_ms=int((time.monotonic() - started) * 1000),
                pages_analyzed=len(self.pages),
                data_extracted=get_data_extracted_fields(outcome.extracted_data),
                confidence=outcome.confidence,
                errors=failures,
            )
            result = ScrapeResult(record=record, metadata=metadata)

            self._emit(ProgressPhase.COMPLETED)
            logger.info(
                "Scraped %s: %d pages, confidence %d%%",
                seed_url, metadata.pages_analyzed, metadata.confidence,
            )
            return result

        except Exception as e:
            message = str(e) or type(e).__name__
            logger.error("Scraping failed for %s: %s", seed_url, message)
            if ProgressPhase.ERROR in PHASE_TRANSITIONS[self.channel.phase]:
                self._emit(ProgressPhase.ERROR, error=message)
            raise

        finally:
            await self._cleanup()

    async def _load_robots(self, seed_url: str) -> Optional[RobotsPolicy]:
        if not self.crawl_config.respect_robots_txt:
            return None
        return await self.robots_loader(seed_url, self.crawl_config.user_agent)

    def _count_page(self, page: CrawledPage) -> None:
        self._pages_crawled += 1

    def _emit(
        self,
        phase: ProgressPhase,
        partial_data: Optional[ExtractedProfile] = None,
        error: Optional[str] = None,
    ) -> None:
        self.channel.emit(ProgressEvent(
            phase=phase,
            pages_crawled=self._pages_crawled,
            current_phase_label=PHASE_LABELS[phase],
            partial_data=partial_data,
            error=error,
        ))

    async def _cleanup(self) -> None:
        try:
            await self.fetcher.close()
        except Exception as e:
            logger.warning("Error closing page fetcher: %s", e)
        if self._owns_client:
            try:
                await self.extraction_client.close()
            except Exception as e:
                logger.warning("Error closing extraction client: %s", e)


async def scrape_profile(
    request: ScrapeRequest,
    listener: Optional[Listener] = None,
    **kwargs,
) -> ScrapeResult:
    """Convenience wrapper: build a ProfileScraper and run it."""
    return await ProfileScraper(request, listener, **kwargs).scrape()
