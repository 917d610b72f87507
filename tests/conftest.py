"""Shared fixtures and fakes for the pipeline tests."""

import json
from typing import Dict, List, Optional

import httpx
import pytest

from firm_profiler.crawl_schemas import CrawledPage
from firm_profiler.errors import ServiceError

SEED = "https://firm.example/"


class FakeFetcher:
    """Scripted stand-in for PageFetcher.

    ``site`` maps URL -> (title, text, links). Unknown URLs come back as
    failed pages; URLs in ``explode`` raise instead.
    """

    def __init__(self, site: Dict[str, tuple], explode: Optional[List[str]] = None):
        self.site = site
        self.explode = set(explode or [])
        self.fetched: List[str] = []
        self.started = False
        self.closed = False

    async def start(self) -> None:
        self.started = True

    async def close(self) -> None:
        self.closed = True

    async def fetch(self, url: str, depth: int = 0) -> CrawledPage:
        self.fetched.append(url)
        if url in self.explode:
            raise RuntimeError("connection reset")
        if url not in self.site:
            return CrawledPage.empty(url, depth, "HTTP 404")
        title, text, links = self.site[url]
        return CrawledPage(url=url, title=title, text_content=text, links=links, depth=depth)


class FakeExtractionClient:
    """Returns a canned response, or raises the configured error."""

    model = "test-model"

    def __init__(self, response: str = "", error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.calls = []
        self.closed = False

    async def analyze(self, corpus: str, instruction_template: str) -> str:
        self.calls.append((corpus, instruction_template))
        if self.error is not None:
            raise self.error
        return self.response

    async def close(self) -> None:
        self.closed = True


class SleepRecorder:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def site_with_five_links() -> Dict[str, tuple]:
    children = ["about", "projects", "team", "contact", "news"]
    site = {
        SEED: (
            "Smith Architects",
            "Smith Architects designs civic buildings.",
            [f"https://firm.example/{name}" for name in children],
        )
    }
    for name in children:
        site[f"https://firm.example/{name}"] = (name.title(), f"{name} page text", [SEED])
    return site


def message_response(text: str) -> dict:
    """A Messages API response body with one text block."""
    return {
        "id": "msg_test",
        "type": "message",
        "role": "assistant",
        "model": "claude-3-haiku-20240307",
        "content": [{"type": "text", "text": text}] if text is not None else [],
        "stop_reason": "end_turn",
        "stop_sequence": None,
        "usage": {"input_tokens": 10, "output_tokens": 20},
    }


def mock_http_client(status: int, body: dict, requests: Optional[list] = None) -> httpx.AsyncClient:
    """httpx client whose every request gets the same canned response."""

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(json.loads(request.content))
        return httpx.Response(status, json=body)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def mock_text_http_client(status: int, text: str, content_type: str) -> httpx.AsyncClient:
    """httpx client answering every request with a raw body."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, text=text, headers={"content-type": content_type})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def full_profile_data():
    """Extraction response covering every checklist field."""
    return {
        "name": "Smith Architects",
        "website": "https://firm.example",
        "description": "Civic and residential architecture practice.",
        "address": "1 High Street, London",
        "phone": "+44 20 0000 0000",
        "email": "studio@firm.example",
        "foundedYear": 1998,
        "specialties": ["Civic buildings", "Timber construction"],
        "projects": [
            {"name": "Villa A", "year": 2019, "status": "completed", "materials": ["CLT"]},
            {"name": "Library B", "type": "institutional", "status": "in-progress"},
        ],
        "projectTypes": ["residential", "institutional"],
        "certifications": ["RIBA Chartered Practice"],
        "awards": [{"name": "RIBA Award", "year": 2021, "organization": "RIBA"}],
        "publications": [{"title": "Building with Timber", "type": "book", "year": 2020}],
    }


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
    return "sk-ant-test"


@pytest.fixture
def no_api_key(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("CLAUDE_API_KEY", raising=False)


@pytest.fixture
def service_error():
    return ServiceError("Extraction service error", status=500, body='{"error": "boom"}')
