from __future__ import annotations

from typing import Iterable, Iterator, List, Protocol

from openai import APIError

from errors import ConfigurationError, RentSightError
from lease_analysis.prompts import chunk_analysis_prompt
from telemetry.logging_utils import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_TOKENS = 4000
# No tokenizer: one token is taken to be roughly four characters.
CHARS_PER_TOKEN = 4


class CompletionClient(Protocol):
    def analyze_content(self, prompt: str) -> str:
        ...


def split_into_chunks(text: str, max_tokens: int = DEFAULT_MAX_TOKENS) -> Iterator[str]:
    """Yield consecutive, non-overlapping windows of ``max_tokens * 4`` characters."""
    if max_tokens <= 0:
        raise ValueError("max_tokens must be positive")
    max_chars = max_tokens * CHARS_PER_TOKEN
    for start in range(0, len(text), max_chars):
        yield text[start : start + max_chars]


def failed_chunk_placeholder(chunk_index: int) -> str:
    return f"Analysis failed for chunk {chunk_index + 1}"


class ChunkAnalyzer:
    """Runs the per-chunk analysis prompt, tolerating individual failures."""

    def __init__(self, llm: CompletionClient) -> None:
        self.llm = llm

    def analyze_chunk(self, chunk: str, chunk_index: int) -> str:
        try:
            return self.llm.analyze_content(chunk_analysis_prompt(chunk, chunk_index))
        except ConfigurationError:
            raise
        except (RentSightError, APIError) as exc:
            logger.warning(
                "chunk_analysis_failed",
                extra={"chunk_number": chunk_index + 1, "error": str(exc)[:200]},
            )
            return failed_chunk_placeholder(chunk_index)

    def analyze_all(self, chunks: Iterable[str]) -> List[str]:
        """Analyze every chunk in order; always one entry per chunk."""
        analyses: List[str] = []
        for index, chunk in enumerate(chunks):
            logger.info("chunk_analysis_start", extra={"chunk_number": index + 1, "chunk_chars": len(chunk)})
            analyses.append(self.analyze_chunk(chunk, index))
        return analyses
