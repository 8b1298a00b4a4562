"""
Terminal front end for the lease analysis pipeline.

Reads a PDF from disk, runs it through the same service the HTTP endpoint
uses and prints the summary and the potential issues.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, TextIO

from errors import EmptyDocumentError, RentSightError
from lease_analysis.llm_client import LLMClient
from lease_analysis.pdf_pipeline import PDFAnalysisService
from lease_analysis.summarizer import LeaseAnalysis
from server.config import Settings
from telemetry.logging_utils import get_logger

logger = get_logger(__name__)


def build_pdf_service(settings: Settings) -> PDFAnalysisService:
    llm = LLMClient(
        settings.openrouter_api_key,
        model=settings.openrouter_model,
        base_url=settings.openrouter_base_url,
        timeout=settings.openrouter_timeout,
    )
    return PDFAnalysisService(llm, max_tokens=settings.pdf_chunk_max_tokens)


def render_analysis(analysis: LeaseAnalysis, out: TextIO) -> None:
    out.write("=== Summary ===\n")
    out.write(analysis.summary.rstrip() + "\n\n")
    out.write("=== Potential Issues ===\n")
    out.write(analysis.issues.rstrip() + "\n")


def run_analyze_cli(
    pdf_path: str,
    *,
    service: Optional[PDFAnalysisService] = None,
    out: TextIO = sys.stdout,
    err: TextIO = sys.stderr,
) -> int:
    """Analyze one PDF and print the result. Returns a process exit code."""
    path = Path(pdf_path)
    if not path.is_file():
        err.write(f"File not found: {path}\n")
        return 2
    service = service or build_pdf_service(Settings.from_env())
    try:
        analysis = service.process_uploaded_pdf(path.read_bytes())
    except EmptyDocumentError as exc:
        err.write(f"{exc}\n")
        return 1
    except RentSightError as exc:
        logger.error("cli_analysis_failed", extra={"error_type": type(exc).__name__, "error": str(exc)[:200]})
        err.write(f"PDF analysis failed: {exc}\n")
        return 1
    render_analysis(analysis, out)
    return 0
