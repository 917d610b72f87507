"""
Link extraction and filtering for same-site crawling.

Turns the anchors of a fetched page into the set of navigable internal links:
same host as the seed, http(s) only, and not matching the denylist of
non-content paths (admin, login, cart, listings) or document downloads.
"""

import re
from typing import Iterable, List
from urllib.parse import ParseResult, urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup

from .crawl_schemas import CrawledPage


# Schemes that never lead to a crawlable page
SKIP_SCHEMES = ("mailto:", "tel:", "javascript:", "data:", "sms:", "fax:")

# Path patterns for non-content pages
SKIP_PATH_PATTERNS = [
    r"/(wp-)?admin(/|$)", r"/wp-login", r"/login(/|$)", r"/logout(/|$)",
    r"/register(/|$)", r"/signup(/|$)", r"/account(/|$)",
    r"/cart(/|$)", r"/checkout(/|$)", r"/basket(/|$)",
    r"/search(/|$)", r"/feed(/|$)",
    r"/tag/", r"/tags/", r"/category/", r"/categories/", r"/author/",
]

# Non-HTML documents and media
SKIP_EXTENSIONS = (
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".zip", ".rar", ".7z", ".tar", ".gz",
    ".jpg", ".jpeg", ".png", ".gif", ".svg", ".webp", ".ico",
    ".mp3", ".mp4", ".mov", ".avi", ".webm",
    ".xml", ".json", ".css", ".js",
)

_SKIP_PATH_RE = re.compile("|".join(SKIP_PATH_PATTERNS), re.IGNORECASE)


def normalize_host(host: str) -> str:
    """Lowercase a host and drop a leading 'www.'."""
    host = (host or "").lower()
    return host[4:] if host.startswith("www.") else host


def same_host(url: str, seed_url: str) -> bool:
    """True when both URLs point at the same site (www-insensitive)."""
    return normalize_host(urlparse(url).hostname or "") == normalize_host(
        urlparse(seed_url).hostname or ""
    )


def canonicalize_url(url: str) -> str:
    """
    Canonical form used for deduplication: scheme + host + path.

    Fragment, query string and trailing slash are ignored; scheme and host
    are lowercased and a leading 'www.' is dropped.
    """
    parsed = urlparse(url)
    host = normalize_host(parsed.hostname or "")
    try:
        port = parsed.port
    except ValueError:
        # Malformed port; keep the raw netloc so the URL still dedupes with itself
        host = normalize_host(parsed.netloc)
        port = None
    if port:
        host = f"{host}:{port}"
    path = parsed.path.rstrip("/")
    return f"{parsed.scheme.lower()}://{host}{path}"


def has_valid_port(parsed: ParseResult) -> bool:
    """False when the authority carries a port that is not a number in range."""
    try:
        parsed.port
    except ValueError:
        return False
    return True


def is_skipped_path(path: str) -> bool:
    """True for denylisted non-content paths and document extensions."""
    lowered = path.lower()
    if _SKIP_PATH_RE.search(lowered):
        return True
    return lowered.endswith(SKIP_EXTENSIONS)


def is_navigable(url: str, seed_url: str) -> bool:
    """Decide whether a link may be enqueued for a crawl seeded at seed_url."""
    if url.lower().startswith(SKIP_SCHEMES):
        return False
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        return False
    if not has_valid_port(parsed):
        return False
    if not same_host(url, seed_url):
        return False
    return not is_skipped_path(parsed.path)


def extract_links(html: str, base_url: str) -> List[str]:
    """
    Collect every anchor href of a document as an absolute URL.

    Fragments are dropped and duplicates removed; document order is kept.
    No filtering happens here.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    links: List[str] = []
    seen = set()
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href or href.startswith("#"):
            continue
        if href.lower().startswith(SKIP_SCHEMES):
            absolute = href
        else:
            try:
                absolute, _ = urldefrag(urljoin(base_url, href))
            except ValueError:
                # e.g. an unterminated IPv6 host
                continue
        if absolute not in seen:
            seen.add(absolute)
            links.append(absolute)
    return links


def filter_internal_links(links: Iterable[str], seed_url: str) -> List[str]:
    """Keep navigable same-host links, unique by canonical form, in order."""
    kept: List[str] = []
    seen = set()
    for link in links:
        if not is_navigable(link, seed_url):
            continue
        canonical = canonicalize_url(link)
        if canonical in seen:
            continue
        seen.add(canonical)
        kept.append(link)
    return kept


def internal_links(page: CrawledPage, seed_url: str) -> List[str]:
    """The navigable internal links of a fetched page."""
    return filter_internal_links(page.links, seed_url)
