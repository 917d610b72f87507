"""Tests for the link_extractor module."""

import pytest

from firm_profiler.crawl_schemas import CrawledPage
from firm_profiler.link_extractor import (
    canonicalize_url,
    extract_links,
    filter_internal_links,
    internal_links,
    is_navigable,
    same_host,
)

SEED = "https://www.firm.example/"


class TestCanonicalizeUrl:
    """Test canonical URL form."""

    def test_ignores_fragment_query_and_trailing_slash(self):
        assert canonicalize_url("https://firm.example/about/") == "https://firm.example/about"
        assert canonicalize_url("https://firm.example/about#team") == "https://firm.example/about"
        assert canonicalize_url("https://firm.example/about?ref=nav") == "https://firm.example/about"

    def test_host_is_case_and_www_insensitive(self):
        assert canonicalize_url("https://WWW.Firm.Example/about") == "https://firm.example/about"

    def test_root_forms_match(self):
        assert canonicalize_url("https://firm.example/") == canonicalize_url("https://firm.example")

    def test_keeps_port(self):
        assert canonicalize_url("http://localhost:8000/a/") == "http://localhost:8000/a"

    def test_malformed_port_does_not_raise(self):
        assert canonicalize_url("https://firm.example:abc/x/") == "https://firm.example:abc/x"


class TestExtractLinks:
    """Test anchor collection."""

    def test_resolves_relative_links(self):
        html = '<a href="/about">About</a><a href="projects/villa">Villa</a>'
        links = extract_links(html, "https://firm.example/work/")

        assert links == [
            "https://firm.example/about",
            "https://firm.example/work/projects/villa",
        ]

    def test_drops_fragments_and_duplicates(self):
        html = (
            '<a href="#top">Top</a>'
            '<a href="/about#team">Team</a>'
            '<a href="/about">About</a>'
        )
        assert extract_links(html, "https://firm.example/") == ["https://firm.example/about"]

    def test_keeps_non_http_schemes_unresolved(self):
        html = '<a href="mailto:studio@firm.example">Mail</a>'
        assert extract_links(html, "https://firm.example/") == ["mailto:studio@firm.example"]

    def test_empty_document(self):
        assert extract_links("", "https://firm.example/") == []

    def test_unparseable_href_skipped(self):
        html = '<a href="http://[broken/path">Broken</a><a href="/about">About</a>'
        assert extract_links(html, "https://firm.example/") == ["https://firm.example/about"]


class TestFilterInternalLinks:
    """Test internal link filtering."""

    def test_same_host_ignores_www(self):
        assert same_host("https://firm.example/about", SEED)
        assert not same_host("https://other.example/about", SEED)

    @pytest.mark.parametrize("url", [
        "https://other.example/about",
        "mailto:studio@firm.example",
        "tel:+442000000000",
        "javascript:void(0)",
        "ftp://firm.example/file",
        "https://firm.example/wp-admin/",
        "https://firm.example/login",
        "https://firm.example/cart",
        "https://firm.example/checkout/step-1",
        "https://firm.example/search?q=villa",
        "https://firm.example/tag/timber/",
        "https://firm.example/category/news/",
        "https://firm.example/author/jane/",
        "https://firm.example/brochure.pdf",
        "https://firm.example/images/hero.JPG",
        "https://firm.example:abc/x",
        "https://firm.example:99999/x",
    ])
    def test_excluded(self, url):
        assert not is_navigable(url, SEED)

    @pytest.mark.parametrize("url", [
        "https://firm.example/about",
        "https://www.firm.example/projects/villa-a",
        "http://firm.example/contact",
        "https://firm.example/catalogue",
    ])
    def test_included(self, url):
        assert is_navigable(url, SEED)

    def test_dedupes_by_canonical_form_in_order(self):
        links = [
            "https://firm.example/about",
            "https://firm.example/projects",
            "https://firm.example/about/",
            "https://www.firm.example/about",
        ]
        assert filter_internal_links(links, SEED) == [
            "https://firm.example/about",
            "https://firm.example/projects",
        ]

    def test_internal_links_of_page(self):
        page = CrawledPage(
            url=SEED,
            links=["https://firm.example/about", "https://elsewhere.example/"],
        )
        assert internal_links(page, SEED) == ["https://firm.example/about"]
