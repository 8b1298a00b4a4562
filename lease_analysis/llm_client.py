"""
Chat-completion client for the OpenRouter (OpenAI-compatible) API.

One prompt in, one text completion out. Rate-limited and malformed responses
are retried with exponential backoff (2s, 4s, ...); any other HTTP error fails
immediately. The OpenAI SDK's own retry loop is disabled so the attempt budget
is owned here.
"""

from __future__ import annotations

import json
import time
from typing import Any, Callable, Dict, Optional, Tuple

import httpx
from openai import APIConnectionError, APIStatusError, OpenAI, RateLimitError

from errors import (
    ConfigurationError,
    ExhaustedRetriesError,
    RateLimitedError,
    UpstreamFormatError,
    UpstreamStatusError,
)
from telemetry.logging_utils import get_logger
from telemetry.metrics import extract_usage_tokens, start_timer
from telemetry.retry import retry_with_backoff

logger = get_logger(__name__)

DEFAULT_MODEL = "meta-llama/llama-3.3-70b-instruct:free"
DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_MAX_TOKENS = 2000
DEFAULT_TEMPERATURE = 0.7
DEFAULT_TIMEOUT = 60.0
BACKOFF_BASE_SECONDS = 2.0
BODY_PREVIEW_CHARS = 200

RETRYABLE_ERRORS = (RateLimitedError, UpstreamFormatError, APIConnectionError)


def _extract_content(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str):
        return ""
    return content.strip()


def parse_completion_body(body: str) -> Tuple[Dict[str, Any], str]:
    """Decode a raw chat-completion body into (payload, content)."""
    if not body or not body.strip():
        raise UpstreamFormatError("Empty response from API")
    try:
        data = json.loads(body)
    except ValueError as exc:
        raise UpstreamFormatError(f"Invalid JSON response. Response preview: {body[:100]}") from exc
    content = _extract_content(data)
    if not content:
        raise UpstreamFormatError("No content in API response")
    return data, content


class LLMClient:
    """Sends single-message prompts to a chat-completion endpoint."""

    def __init__(
        self,
        api_key: Optional[str],
        *,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout: float = DEFAULT_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.max_attempts = max_attempts
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._sleep = sleep
        self._http_client = http_client
        self._client: Optional[OpenAI] = None

    def _get_client(self) -> OpenAI:
        if not self.api_key:
            raise ConfigurationError("Missing OPENROUTER_API_KEY environment variable")
        if self._client is None:
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
                http_client=self._http_client,
            )
        return self._client

    def _attempt(self, client: OpenAI, prompt: str, model: str) -> Tuple[Dict[str, Any], str]:
        try:
            raw = client.chat.completions.with_raw_response.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except RateLimitError as exc:
            raise RateLimitedError("Rate limited (429)") from exc
        except APIStatusError as exc:
            raise UpstreamStatusError(exc.status_code, (exc.response.text or "")[:BODY_PREVIEW_CHARS]) from exc
        return parse_completion_body(raw.http_response.text)

    def _log_retry(self, attempt: int, exc: BaseException, delay: float) -> None:
        logger.warning(
            "llm_call_retry",
            extra={
                "attempt": attempt,
                "max_attempts": self.max_attempts,
                "delay_seconds": delay,
                "error": str(exc)[:200],
            },
        )

    def call(self, prompt: str, model: Optional[str] = None) -> str:
        """Return the stripped completion text for ``prompt``.

        Raises ConfigurationError when no API key is configured,
        UpstreamStatusError on a non-429 HTTP error, and ExhaustedRetriesError
        once every attempt was rate limited or malformed.
        """
        if not prompt or not prompt.strip():
            raise ValueError("Prompt must not be empty.")
        client = self._get_client()
        model_name = model or self.model
        timer = start_timer("llm", model_name)
        logger.info("llm_call_start", extra={"model": model_name, "prompt_chars": len(prompt)})
        try:
            data, content = retry_with_backoff(
                lambda: self._attempt(client, prompt, model_name),
                retries=self.max_attempts,
                base_delay=BACKOFF_BASE_SECONDS,
                factor=2.0,
                jitter=0.0,
                retry_exceptions=RETRYABLE_ERRORS,
                sleep=self._sleep,
                on_retry=self._log_retry,
            )
        except RETRYABLE_ERRORS as exc:
            timer.done(status="exhausted")
            logger.error(
                "llm_call_exhausted",
                extra={"model": model_name, "attempts": self.max_attempts, "error": str(exc)[:200]},
            )
            raise ExhaustedRetriesError(self.max_attempts, exc) from exc
        except UpstreamStatusError as exc:
            timer.done(status="error")
            logger.error("llm_call_failed", extra={"model": model_name, "status_code": exc.status_code})
            raise

        tokens_in, tokens_out = extract_usage_tokens(data)
        latency_ms = timer.done(tokens_in=tokens_in, tokens_out=tokens_out)
        logger.info(
            "llm_call_complete",
            extra={"model": model_name, "latency_ms": round(latency_ms, 1), "completion_chars": len(content)},
        )
        return content

    def search_query(self, prompt: str) -> str:
        return self.call(prompt)

    def analyze_content(self, prompt: str) -> str:
        return self.call(prompt)
