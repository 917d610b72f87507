"""
Configuration for the crawl-and-extract pipeline.

Key settings:
- Crawl depth 3, batches of 3 concurrent fetches, 1s pause between batches
- 30s navigation timeout, 2s settle delay after DOM ready
- Extraction via the Anthropic Messages API, no retries
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from rich.logging import RichHandler

from .errors import ConfigError

# Load .env file from project root
_env_path = Path(__file__).parent.parent / ".env"
load_dotenv(_env_path)


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_MAX_DEPTH = 3
DEFAULT_TIMEOUT_MS = 30000


@dataclass
class CrawlConfig:
    """Configuration for site crawling and page fetching."""

    # Traversal
    max_depth: int = DEFAULT_MAX_DEPTH
    max_pages: Optional[int] = None  # None = unlimited
    batch_size: int = 3  # concurrent fetches per batch
    batch_delay: float = 1.0  # seconds between batches of one depth level

    # Page fetching
    navigation_timeout: int = DEFAULT_TIMEOUT_MS  # ms, waits for DOM ready only
    settle_delay: float = 2.0  # seconds for client-rendered content
    user_agent: str = DEFAULT_USER_AGENT
    viewport_width: int = 1920
    viewport_height: int = 1080
    extra_headers: Dict[str, str] = field(default_factory=lambda: {
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
        "Upgrade-Insecure-Requests": "1",
    })
    include_images: bool = True
    follow_redirects: bool = True
    respect_robots_txt: bool = True

    # Browser launch
    headless: bool = True
    launch_args: list = field(default_factory=lambda: [
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
        "--disable-gpu",
        "--no-first-run",
        "--disable-default-apps",
    ])

    @classmethod
    def from_request(cls, request: Any) -> "CrawlConfig":
        """Build a crawl config from an inbound ScrapeRequest."""
        return cls(
            max_depth=request.max_depth,
            navigation_timeout=request.timeout,
            user_agent=request.user_agent,
            include_images=request.include_images,
            follow_redirects=request.follow_redirects,
            respect_robots_txt=request.respect_robots_txt,
        )


@dataclass
class ExtractionConfig:
    """Configuration for the extraction service call."""

    model: str = field(
        default_factory=lambda: os.environ.get("EXTRACTION_MODEL", "claude-3-haiku-20240307")
    )
    max_tokens: int = 4096
    temperature: float = 0.0
    request_timeout: float = 120.0  # seconds

    # Corpus budget; longer corpora are cut before sending
    max_corpus_chars: int = 400000


def get_anthropic_api_key(api_key: Optional[str] = None) -> str:
    """Resolve the Anthropic API key.

    Args:
        api_key: Explicit key, e.g. from the inbound request.

    Returns:
        The API key string.

    Raises:
        ConfigError: If no key is given and none is set in the environment.
    """
    api_key = api_key or os.environ.get("ANTHROPIC_API_KEY") or os.environ.get("CLAUDE_API_KEY")
    if not api_key:
        raise ConfigError(
            "ANTHROPIC_API_KEY environment variable is not set. "
            "Please set it with: export ANTHROPIC_API_KEY='sk-ant-your-key-here'"
        )
    return api_key


def get_crawl_config() -> CrawlConfig:
    """Get crawl configuration."""
    return CrawlConfig()


def get_extraction_config() -> ExtractionConfig:
    """Get extraction configuration."""
    return ExtractionConfig()


def configure_logging(level: int = logging.INFO) -> None:
    """Send the package's log records to a rich console handler."""
    logger = logging.getLogger("firm_profiler")
    logger.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(rich_tracebacks=True, show_path=False))
