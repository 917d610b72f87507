"""
Pydantic models for crawl runs: the inbound request, crawl work units,
fetched pages, progress events and the final run result.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .config import DEFAULT_MAX_DEPTH, DEFAULT_TIMEOUT_MS, DEFAULT_USER_AGENT
from .schemas import CamelModel, ExtractedProfile, ExtractionRecord


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ScrapeRequest(CamelModel):
    """Inbound trigger for one profile scrape."""

    website_url: str = Field(..., description="Seed URL of the firm's website")
    max_depth: int = Field(DEFAULT_MAX_DEPTH, ge=0, description="How deep to crawl the website")
    include_images: bool = True
    include_projects: bool = True
    include_team: bool = True
    include_awards: bool = True
    include_publications: bool = True
    timeout: int = Field(DEFAULT_TIMEOUT_MS, gt=0, description="Navigation timeout in ms")
    user_agent: str = DEFAULT_USER_AGENT
    follow_redirects: bool = True
    respect_robots_txt: bool = True
    api_key: Optional[str] = Field(None, description="Extraction service key, else read from env")

    @field_validator("website_url")
    @classmethod
    def _require_http_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Website URL is required")
        if "://" not in value:
            value = f"https://{value}"
        if not value.lower().startswith(("http://", "https://")):
            raise ValueError(f"Unsupported URL scheme: {value}")
        return value


class CrawlTarget(CamelModel):
    """A unit of crawl work."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    url: str
    depth: int = Field(..., ge=0)


class CrawledPage(CamelModel):
    """A single page captured during a crawl. Immutable once produced."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    url: str = Field(..., description="Requested URL of the page")
    title: str = Field("", description="Document title")
    text_content: str = Field("", description="Visible text of the main content region")
    raw_markup: str = Field("", description="Document markup without scripts and styles")
    images: List[str] = Field(default_factory=list, description="Absolute image URLs")
    links: List[str] = Field(default_factory=list, description="Absolute outbound link URLs")
    depth: int = Field(0, ge=0)
    fetched_at: datetime = Field(default_factory=utc_now)
    fetch_error: Optional[str] = Field(None, description="Set when the fetch failed")

    @property
    def failed(self) -> bool:
        return self.fetch_error is not None

    @classmethod
    def empty(cls, url: str, depth: int, error: Optional[str] = None) -> "CrawledPage":
        """A page with no content, used when fetching or extraction failed."""
        return cls(url=url, depth=depth, fetch_error=error)


class ProgressPhase(str, Enum):
    """States of a scrape run, in order."""

    STARTING = "starting"
    CRAWLING = "crawling"
    ANALYZING = "analyzing"
    EXTRACTING = "extracting"
    COMPLETED = "completed"
    ERROR = "error"


# Allowed successors of each phase; ERROR is terminal, as is COMPLETED
PHASE_TRANSITIONS = {
    None: {ProgressPhase.STARTING},
    ProgressPhase.STARTING: {ProgressPhase.CRAWLING, ProgressPhase.ERROR},
    ProgressPhase.CRAWLING: {ProgressPhase.ANALYZING, ProgressPhase.ERROR},
    ProgressPhase.ANALYZING: {ProgressPhase.EXTRACTING, ProgressPhase.ERROR},
    ProgressPhase.EXTRACTING: {ProgressPhase.COMPLETED, ProgressPhase.ERROR},
    ProgressPhase.COMPLETED: set(),
    ProgressPhase.ERROR: set(),
}


class ProgressEvent(CamelModel):
    """One observation of a run's progress, emitted per phase transition."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    phase: ProgressPhase
    pages_crawled: int = 0
    total_pages: Optional[int] = None
    current_phase_label: str
    partial_data: Optional[ExtractedProfile] = None
    error: Optional[str] = None


class RunMetadata(CamelModel):
    """Run statistics delivered with the final record."""

    crawl_time_ms: int
    pages_analyzed: int
    data_extracted: List[str] = Field(default_factory=list)
    confidence: int
    errors: List[str] = Field(default_factory=list)


class ScrapeResult(CamelModel):
    """The assembled record plus run metadata."""

    record: ExtractionRecord
    metadata: RunMetadata
