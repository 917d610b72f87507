"""
Firm Profiler.

This package crawls an architecture firm's website, sends the collected
content to an extraction service and returns a scored, structured profile.

Modules:
- config: Configuration, environment setup and logging
- errors: Error types raised by the pipeline
- crawl_schemas: Request, page, progress and result models
- schemas: Profile record models and the extraction prompt
- link_extractor: Link discovery and internal-link filtering
- page_fetcher: Headless browser page fetching
- robots: robots.txt policy loading
- crawler: Breadth-first, batched site crawl
- content_merger: Corpus assembly from crawled pages
- extraction_client: Extraction service client
- response_validator: Response parsing and cleaning
- quality_scoring: Confidence and quality scoring
- crawl_extraction: The end-to-end pipeline (ProfileScraper)
- progress: Progress events, streaming and console reporting
- store: Result persistence
"""

__version__ = "0.1.0"
