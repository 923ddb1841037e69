from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING
import time
import logging

from md_translator.errors import ConfigurationError, TransformError

if TYPE_CHECKING:
    import anthropic

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"


@dataclass
class LLMConfig:
    """Configuration for Claude API client."""
    api_key: str
    model: str = DEFAULT_MODEL
    max_tokens: int = 8192
    temperature: float = 0.5
    timeout_s: float = 120.0
    max_retries: int = 3  # Transport retries for rate limit errors only
    min_request_interval: float = 0.3  # Min seconds between requests per worker


def _is_rate_limit(error: Exception) -> bool:
    error_str = str(error).lower()
    return (
        "rate" in error_str or
        "429" in error_str or
        "too many requests" in error_str or
        "overloaded" in error_str
    )


class ClaudeClient:
    """Thin wrapper around Anthropic's Claude API returning plain text."""

    def __init__(self, config: LLMConfig):
        if not config.api_key:
            raise ConfigurationError(
                "Anthropic API key is required (set ANTHROPIC_API_KEY or pass --anthropic-api-key)",
                code="missing_api_key",
            )
        self.config = config
        self._client: Optional["anthropic.Anthropic"] = None

    @property
    def client(self) -> "anthropic.Anthropic":
        """Lazy initialization of Anthropic client."""
        if self._client is None:
            try:
                import anthropic
                self._client = anthropic.Anthropic(
                    api_key=self.config.api_key,
                    timeout=self.config.timeout_s,
                    max_retries=0,
                )
            except ImportError:
                raise ConfigurationError(
                    "anthropic library not installed. "
                    "Run: pip install anthropic"
                )
        return self._client

    def complete(self, system: str, user: str, temperature: Optional[float] = None) -> str:
        """
        Send one system + user message pair and return the concatenated text.

        Rate-limit errors are retried here with exponential backoff; any
        other failure (including timeouts) raises TransformError so the
        caller's attempt budget accounts for it.

        The response is returned verbatim: leading and trailing newlines
        are part of the line structure and must not be stripped.
        """
        temperature = self.config.temperature if temperature is None else temperature
        last_error: Optional[Exception] = None

        for attempt in range(self.config.max_retries + 1):
            try:
                # Add minimum interval between requests to smooth out rate
                time.sleep(self.config.min_request_interval)

                message = self.client.messages.create(
                    model=self.config.model,
                    max_tokens=self.config.max_tokens,
                    temperature=temperature,
                    system=system,
                    messages=[{"role": "user", "content": user}],
                )

                result = ""
                for block in message.content:
                    if hasattr(block, "text"):
                        result += block.text
                return result

            except ConfigurationError:
                raise
            except Exception as e:
                last_error = e

                if _is_rate_limit(e) and attempt < self.config.max_retries:
                    # Exponential backoff: 2s, 4s, 8s
                    backoff = 2 ** (attempt + 1)
                    logger.warning(f"Rate limit hit, retry {attempt+1}/{self.config.max_retries} in {backoff}s")
                    time.sleep(backoff)
                    continue
                break

        logger.warning(f"Claude request failed: {type(last_error).__name__}: {last_error}")
        raise TransformError(
            f"LLM request failed: {type(last_error).__name__}: {last_error}",
            code="llm_request_failed",
        ) from last_error
