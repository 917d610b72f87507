"""Tests for the robots module."""

import asyncio

import httpx

from firm_profiler.robots import RobotsPolicy, load_robots_policy, robots_url_for

ROBOTS_TXT = """
User-agent: *
Disallow: /private/

User-agent: BadBot
Disallow: /
"""


def load(handler, seed="https://firm.example/about", user_agent="FirmProfiler"):
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await load_robots_policy(seed, user_agent, client=client)

    return asyncio.run(run())


class TestRobotsPolicy:
    """Test policy decisions."""

    def test_rules_applied_per_user_agent(self):
        policy = RobotsPolicy.from_text(ROBOTS_TXT, "FirmProfiler")

        assert policy.allows("https://firm.example/about")
        assert not policy.allows("https://firm.example/private/plans")

        bad = RobotsPolicy.from_text(ROBOTS_TXT, "BadBot")
        assert not bad.allows("https://firm.example/about")

    def test_allow_all(self):
        assert RobotsPolicy.allow_all().allows("https://firm.example/private/plans")

    def test_disallow_all(self):
        assert not RobotsPolicy.disallow_all("FirmProfiler").allows("https://firm.example/")

    def test_robots_url(self):
        assert robots_url_for("https://firm.example/projects/a?x=1") == "https://firm.example/robots.txt"


class TestLoadRobotsPolicy:
    """Test fetching robots.txt."""

    def test_fetches_site_robots(self):
        requested = []

        def handler(request):
            requested.append(str(request.url))
            return httpx.Response(200, text=ROBOTS_TXT)

        policy = load(handler)

        assert requested == ["https://firm.example/robots.txt"]
        assert not policy.allows("https://firm.example/private/plans")

    def test_missing_file_allows_all(self):
        policy = load(lambda request: httpx.Response(404))
        assert policy.allows("https://firm.example/private/plans")

    def test_forbidden_disallows_all(self):
        policy = load(lambda request: httpx.Response(403))
        assert not policy.allows("https://firm.example/about")

    def test_network_error_allows_all(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        policy = load(handler)
        assert policy.allows("https://firm.example/private/plans")
