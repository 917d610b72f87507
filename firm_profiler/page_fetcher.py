"""
Page fetcher backed by a headless Chromium (Playwright).

Each fetch opens its own browser context, navigates with a bounded timeout
waiting only for DOM ready, lets client-rendered content settle, and then
extracts title, visible text, markup, images and links from the settled DOM.
Failures never propagate: the caller receives an empty page with
``fetch_error`` set.
"""

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from .config import CrawlConfig, get_crawl_config
from .crawl_schemas import CrawledPage
from .errors import FetchError
from .link_extractor import canonicalize_url, extract_links

logger = logging.getLogger(__name__)

# Removed before anything is read from the document
NOISE_TAGS = ["script", "style", "noscript"]
# Removed before the visible text is read
CHROME_TAGS = ["nav", "footer", "header"]
# Main content regions, in order of preference; body is the fallback
MAIN_CONTENT_SELECTORS = ["main", "[role=main]", ".content", "#content"]


def clean_text(text: str) -> str:
    """Collapse runs of whitespace into single spaces."""
    return re.sub(r"\s+", " ", text or "").strip()


def extract_images(soup: BeautifulSoup, base_url: str) -> List[str]:
    """Absolute image URLs from src or data-src, skipping inline data URIs."""
    images: List[str] = []
    for img in soup.find_all("img"):
        src = (img.get("src") or img.get("data-src") or "").strip()
        if not src or src.startswith("data:"):
            continue
        absolute = urljoin(base_url, src)
        if absolute not in images:
            images.append(absolute)
    return images


def parse_page(html: str, base_url: str, include_images: bool = True) -> Dict[str, Any]:
    """
    Extract page fields from settled document markup.

    Args:
        html: The serialized DOM after client rendering.
        base_url: The URL the document was loaded from, for resolving links.
        include_images: Whether to collect image URLs.

    Returns:
        Dict with title, text_content, raw_markup, images and links.
    """
    links = extract_links(html, base_url)

    soup = BeautifulSoup(html or "", "html.parser")
    title = clean_text(soup.title.get_text()) if soup.title else ""

    for tag in soup(NOISE_TAGS):
        tag.decompose()
    raw_markup = str(soup)
    images = extract_images(soup, base_url) if include_images else []

    for tag in soup(CHROME_TAGS):
        tag.decompose()
    main = None
    for selector in MAIN_CONTENT_SELECTORS:
        main = soup.select_one(selector)
        if main is not None:
            break
    if main is None:
        main = soup.body or soup

    return {
        "title": title,
        "text_content": clean_text(main.get_text(separator=" ")),
        "raw_markup": raw_markup,
        "images": images,
        "links": links,
    }


class PageFetcher:
    """Fetches single pages through one shared headless browser."""

    def __init__(self, config: Optional[CrawlConfig] = None):
        self.config = config or get_crawl_config()
        self._playwright = None
        self._browser = None

    @property
    def is_open(self) -> bool:
        return self._browser is not None

    async def start(self) -> None:
        """Launch the browser. Safe to call more than once."""
        if self._browser is not None:
            return
        logger.info("Launching headless browser...")
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.config.headless,
                args=self.config.launch_args,
            )
        except Exception:
            await self.close()
            raise
        logger.info("Headless browser ready")

    async def close(self) -> None:
        """Close the browser and the driver. Idempotent."""
        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None
        if browser is not None:
            try:
                await browser.close()
            except PlaywrightError as e:
                logger.warning("Error closing browser: %s", e)
        if playwright is not None:
            try:
                await playwright.stop()
            except PlaywrightError as e:
                logger.warning("Error stopping Playwright: %s", e)
        if browser is not None:
            logger.info("Headless browser closed")

    async def __aenter__(self) -> "PageFetcher":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def fetch(self, url: str, depth: int = 0) -> CrawledPage:
        """
        Fetch one page.

        Returns a CrawledPage; on any failure the page is empty and carries
        the reason in ``fetch_error``.
        """
        logger.info("Crawling page: %s (depth: %d)", url, depth)
        try:
            html, final_url = await self._load(url)
        except FetchError as e:
            logger.warning("Failed to fetch %s", e)
            return CrawledPage.empty(url, depth, e.message)

        try:
            content = parse_page(html, final_url, include_images=self.config.include_images)
        except Exception as e:
            logger.warning("Error extracting data from %s: %s", url, e)
            return CrawledPage.empty(url, depth, f"extraction failed: {e}")

        return CrawledPage(url=url, depth=depth, **content)

    async def _load(self, url: str) -> Tuple[str, str]:
        """Navigate in a fresh context and return (markup, final URL)."""
        if self._browser is None:
            raise FetchError(url, "browser not started")

        context = None
        try:
            context = await self._browser.new_context(
                user_agent=self.config.user_agent,
                viewport={
                    "width": self.config.viewport_width,
                    "height": self.config.viewport_height,
                },
                extra_http_headers=self.config.extra_headers,
                ignore_https_errors=True,
            )
            page = await context.new_page()
            response = await page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self.config.navigation_timeout,
            )
            if response is not None and response.status >= 400:
                raise FetchError(url, f"HTTP {response.status}")
            if not self.config.follow_redirects and canonicalize_url(page.url) != canonicalize_url(url):
                raise FetchError(url, f"redirect not followed (ended at {page.url})")

            await asyncio.sleep(self.config.settle_delay)
            return await page.content(), page.url

        except PlaywrightTimeoutError:
            raise FetchError(url, f"navigation timed out after {self.config.navigation_timeout} ms")
        except PlaywrightError as e:
            raise FetchError(url, str(e).splitlines()[0] if str(e) else "navigation failed")
        finally:
            if context is not None:
                try:
                    await context.close()
                except PlaywrightError as e:
                    logger.debug("Error closing page context for %s: %s", url, e)
