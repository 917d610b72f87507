"""
Error taxonomy for the crawl-and-extract pipeline.

- FetchError: a single page could not be fetched. Absorbed by the crawler.
- ServiceError: the extraction service call failed. Fatal for the run.
- ParseError: the extraction response held no usable JSON object. Fatal.
- ConfigError: required configuration is missing. Raised before crawling.
"""

from typing import Optional


class ProfilerError(Exception):
    """Base class for all pipeline errors."""


class FetchError(ProfilerError):
    """Network, timeout or navigation failure for one page."""

    def __init__(self, url: str, message: str):
        super().__init__(f"{url}: {message}")
        self.url = url
        self.message = message


class ServiceError(ProfilerError):
    """The extraction service returned an error or an unusable payload.

    Carries the upstream status (None for transport failures) and the raw
    response body for diagnostics.
    """

    def __init__(self, message: str, status: Optional[int] = None, body: Optional[str] = None):
        detail = message if status is None else f"{message} (status {status})"
        if body:
            detail = f"{detail} - {body[:500]}"
        super().__init__(detail)
        self.status = status
        self.body = body


class ParseError(ProfilerError):
    """No JSON object could be located in the extraction response."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class ConfigError(ProfilerError):
    """Required configuration (such as a service credential) is missing."""
