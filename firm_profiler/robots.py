"""
robots.txt policy for a crawl run.

The file is fetched once per run with httpx and fed to the standard
RobotFileParser. A missing or unreadable robots.txt allows everything;
401/403 disallows everything, following the usual crawler convention.
"""

import logging
from typing import Optional
from urllib.parse import urlparse
from urllib.robotparser import RobotFileParser

import httpx

logger = logging.getLogger(__name__)


class RobotsPolicy:
    """Answers whether a URL may be fetched by the configured user agent."""

    def __init__(self, parser: Optional[RobotFileParser], user_agent: str):
        self._parser = parser
        self.user_agent = user_agent

    @classmethod
    def allow_all(cls, user_agent: str = "*") -> "RobotsPolicy":
        return cls(None, user_agent)

    @classmethod
    def from_text(cls, text: str, user_agent: str) -> "RobotsPolicy":
        parser = RobotFileParser()
        parser.parse(text.splitlines())
        return cls(parser, user_agent)

    @classmethod
    def disallow_all(cls, user_agent: str) -> "RobotsPolicy":
        parser = RobotFileParser()
        parser.disallow_all = True
        return cls(parser, user_agent)

    def allows(self, url: str) -> bool:
        if self._parser is None:
            return True
        return self._parser.can_fetch(self.user_agent, url)


def robots_url_for(seed_url: str) -> str:
    parsed = urlparse(seed_url)
    return f"{parsed.scheme}://{parsed.netloc}/robots.txt"


async def load_robots_policy(
    seed_url: str,
    user_agent: str,
    timeout: float = 10.0,
    client: Optional[httpx.AsyncClient] = None,
) -> RobotsPolicy:
    """
    Fetch and parse the seed site's robots.txt.

    Args:
        seed_url: Any URL on the site.
        user_agent: User agent matched against the rules.
        timeout: Request timeout in seconds.
        client: Optional client to reuse (tests pass one with a mock transport).

    Returns:
        The RobotsPolicy for this run.
    """
    robots_url = robots_url_for(seed_url)
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": user_agent},
        )
    try:
        response = await client.get(robots_url)
    except httpx.HTTPError as e:
        logger.warning("Could not load %s (%s), allowing all paths", robots_url, e)
        return RobotsPolicy.allow_all(user_agent)
    finally:
        if owns_client:
            await client.aclose()

    if response.status_code in (401, 403):
        logger.info("robots.txt at %s is restricted (%d), disallowing all paths",
                    robots_url, response.status_code)
        return RobotsPolicy.disallow_all(user_agent)
    if response.status_code >= 400:
        return RobotsPolicy.allow_all(user_agent)

    logger.info("Loaded robots.txt from %s", robots_url)
    return RobotsPolicy.from_text(response.text, user_agent)
