"""
Client for the external reasoning service that turns the corpus into JSON.

One Messages API call per run, through the anthropic SDK with its own retries
disabled; retry policy belongs to whoever calls the pipeline.
"""

import json
import logging
from typing import Any, Optional

import anthropic
import httpx

from .config import ExtractionConfig, get_anthropic_api_key, get_extraction_config
from .content_merger import estimate_tokens
from .errors import ServiceError
from .schemas import CORPUS_PLACEHOLDER

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n\n[truncated]"


def truncate_corpus(corpus: str, max_chars: int) -> str:
    """Cut a corpus to the character budget, marking the cut."""
    if len(corpus) <= max_chars:
        return corpus
    logger.warning(
        "Corpus of %d chars exceeds budget of %d chars, truncating", len(corpus), max_chars
    )
    return corpus[:max_chars] + TRUNCATION_MARKER


def build_prompt(corpus: str, instruction_template: str, max_chars: int) -> str:
    """Insert the (possibly truncated) corpus into the instruction template."""
    corpus = truncate_corpus(corpus, max_chars)
    if CORPUS_PLACEHOLDER in instruction_template:
        return instruction_template.replace(CORPUS_PLACEHOLDER, corpus)
    return f"{instruction_template}\n\nWEBSITE CONTENT:\n{corpus}"


def _response_body(error: anthropic.APIStatusError) -> str:
    try:
        return error.response.text
    except (httpx.ResponseNotRead, UnicodeDecodeError):
        return str(error.body)


def _response_text(response: Any) -> str:
    """Concatenated text blocks of a Messages response."""
    return "".join(
        block.text for block in (response.content or []) if getattr(block, "type", None) == "text"
    )


def _malformed_body(error: Exception, response: Any) -> str:
    """Best available raw payload for a response that is not a usable Message."""
    if isinstance(response, str):
        return response
    if isinstance(error, json.JSONDecodeError):
        return error.doc
    body = getattr(error, "body", None)
    if body is not None:
        return body if isinstance(body, str) else str(body)
    return str(response) if response is not None else str(error)


class ExtractionClient:
    """Sends the corpus plus instructions to the extraction service."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        config: Optional[ExtractionConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            api_key: Service key; falls back to ANTHROPIC_API_KEY / CLAUDE_API_KEY.
            config: Extraction settings.
            http_client: Optional transport override.

        Raises:
            ConfigError: If no API key is available.
        """
        self.config = config or get_extraction_config()
        self._client = anthropic.AsyncAnthropic(
            api_key=get_anthropic_api_key(api_key),
            max_retries=0,
            timeout=self.config.request_timeout,
            http_client=http_client,
        )

    @property
    def model(self) -> str:
        return self.config.model

    async def analyze(self, corpus: str, instruction_template: str) -> str:
        """
        Ask the service to extract structured data from the corpus.

        Args:
            corpus: Aggregated website content.
            instruction_template: Prompt with the corpus placeholder.

        Returns:
            The raw response text, expected to contain one JSON object.

        Raises:
            ServiceError: Non-success status, transport failure, or an empty or
                malformed payload.
        """
        prompt = build_prompt(corpus, instruction_template, self.config.max_corpus_chars)
        logger.info(
            "Analyzing content with %s (~%d tokens)...", self.config.model, estimate_tokens(prompt)
        )

        response = None
        try:
            response = await self._client.messages.create(
                model=self.config.model,
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
                messages=[{"role": "user", "content": prompt}],
            )
            text = _response_text(response)
        except anthropic.APIStatusError as e:
            raise ServiceError(
                "Extraction service error", status=e.status_code, body=_response_body(e)
            ) from e
        except anthropic.APIConnectionError as e:
            raise ServiceError(f"Extraction service unreachable: {e}") from e
        except (anthropic.APIError, json.JSONDecodeError, AttributeError, TypeError) as e:
            raise ServiceError(
                "Invalid response format from extraction service",
                status=200,
                body=_malformed_body(e, response),
            ) from e

        if not text.strip():
            raise ServiceError(
                "Invalid response format from extraction service",
                status=200,
                body=response.model_dump_json(),
            )

        logger.info("Extraction service responded with %d chars", len(text))
        return text

    async def close(self) -> None:
        await self._client.close()
