"""
Content aggregator: combines crawled pages into one analysis corpus.

Ordering is deterministic:
1. The root page (depth 0, or the first page if none is at depth 0),
   labelled as the main page
2. Every remaining page in crawl-discovery order, labelled with title and URL

No page is omitted and nothing is truncated here; the extraction client
applies the character limit.
"""

from typing import List, Optional

from .crawl_schemas import CrawledPage


# Approximate tokens per word (conservative estimate)
TOKENS_PER_WORD = 1.3


def estimate_tokens(text: str) -> int:
    """Estimate token count from text."""
    word_count = len(text.split())
    return int(word_count * TOKENS_PER_WORD)


def find_main_page(pages: List[CrawledPage]) -> Optional[CrawledPage]:
    """The depth-0 page, else the first page, else None."""
    for page in pages:
        if page.depth == 0:
            return page
    return pages[0] if pages else None


def format_main_page(page: CrawledPage) -> str:
    return (
        f"=== MAIN PAGE ({page.url}) ===\n"
        f"Title: {page.title}\n\n"
        f"Content: {page.text_content}\n\n"
    )


def format_page(page: CrawledPage) -> str:
    title = page.title or "Untitled"
    return (
        f"=== PAGE: {title} ({page.url}) ===\n"
        f"Content: {page.text_content}\n\n"
    )


def aggregate(pages: List[CrawledPage]) -> str:
    """
    Concatenate crawled pages into a single corpus.

    Args:
        pages: Pages in crawl-discovery order.

    Returns:
        The corpus string; empty when there are no pages.
    """
    main_page = find_main_page(pages)
    if main_page is None:
        return ""

    parts = [format_main_page(main_page)]
    parts.extend(format_page(page) for page in pages if page is not main_page)
    return "".join(parts)
