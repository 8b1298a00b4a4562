from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Sequence

from errors import ConfigurationError, RentSightError, SummaryGenerationError
from lease_analysis.chunking import CompletionClient
from lease_analysis.prompts import CHUNK_SEPARATOR, issues_prompt, summary_prompt
from telemetry.logging_utils import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class LeaseAnalysis:
    summary: str
    issues: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


class GlobalSummarizer:
    """Merges chunk analyses into an overall summary and an issues list."""

    def __init__(self, llm: CompletionClient) -> None:
        self.llm = llm

    def summarize(self, chunk_analyses: Sequence[str]) -> LeaseAnalysis:
        """Two sequential calls, summary then issues; either failure fails the whole merge."""
        combined = CHUNK_SEPARATOR.join(chunk_analyses)
        try:
            logger.info("global_summary_start", extra={"chunk_count": len(chunk_analyses)})
            summary = self.llm.analyze_content(summary_prompt(combined))
            logger.info("issues_identification_start", extra={"chunk_count": len(chunk_analyses)})
            issues = self.llm.analyze_content(issues_prompt(combined))
        except ConfigurationError:
            raise
        except RentSightError as exc:
            logger.error("global_analysis_failed", extra={"error": str(exc)[:200]})
            raise SummaryGenerationError(f"Global analysis failed: {exc}") from exc
        return LeaseAnalysis(summary=summary, issues=issues)
