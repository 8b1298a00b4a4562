"""
Lease PDF analysis pipeline.

An upload moves through a fixed sequence of stages:

    RECEIVED -> TEMP_WRITTEN -> TEXT_EXTRACTED -> CHUNKS_ANALYZED
             -> SUMMARIZED -> TEMP_CLEANED -> DONE

The upload is written to a uniquely named temporary file which is removed on
every exit path, including extraction and summarization failures.
"""

from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Optional, Union

from pypdf import PdfReader

from errors import EmptyDocumentError, ExtractionError
from lease_analysis.chunking import DEFAULT_MAX_TOKENS, ChunkAnalyzer, CompletionClient, split_into_chunks
from lease_analysis.summarizer import GlobalSummarizer, LeaseAnalysis
from telemetry.logging_utils import get_logger

logger = get_logger(__name__)

TEMP_PREFIX = "rentsight_upload_"
PAGE_SEPARATOR = "\n\n"


class AnalysisStage(str, Enum):
    RECEIVED = "received"
    TEMP_WRITTEN = "temp_written"
    TEXT_EXTRACTED = "text_extracted"
    CHUNKS_ANALYZED = "chunks_analyzed"
    SUMMARIZED = "summarized"
    TEMP_CLEANED = "temp_cleaned"
    DONE = "done"


def extract_pdf_text(path: Union[str, Path]) -> str:
    """Return the text of every page, pages separated by a blank line."""
    try:
        reader = PdfReader(str(path))
        pages = [page.extract_text() or "" for page in reader.pages]
    except Exception as exc:
        # damaged content streams raise plain TypeError/AttributeError, not PyPdfError
        logger.warning("pdf_read_failed", extra={"error_type": type(exc).__name__, "error": str(exc)[:200]})
        raise ExtractionError(f"Could not read PDF document: {exc}") from exc
    return PAGE_SEPARATOR.join(pages)


class PDFAnalysisService:
    def __init__(
        self,
        llm: CompletionClient,
        *,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temp_dir: Optional[Union[str, Path]] = None,
    ) -> None:
        if max_tokens <= 0:
            raise ValueError("max_tokens must be positive")
        self.max_tokens = max_tokens
        self.temp_dir = str(temp_dir) if temp_dir is not None else None
        self.chunk_analyzer = ChunkAnalyzer(llm)
        self.summarizer = GlobalSummarizer(llm)

    def _advance(self, stage: AnalysisStage, **details: Any) -> None:
        logger.info("pdf_analysis_stage", extra={"stage": stage.value, **details})

    @contextmanager
    def _temporary_pdf(self, data: bytes) -> Iterator[Path]:
        fd, name = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=".pdf", dir=self.temp_dir)
        path = Path(name)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            yield path
        finally:
            path.unlink(missing_ok=True)
            self._advance(AnalysisStage.TEMP_CLEANED)

    def extract_pdf_text(self, path: Union[str, Path]) -> str:
        return extract_pdf_text(path)

    def analyze_text(self, text: str) -> LeaseAnalysis:
        """Chunk, analyze and summarize already-extracted document text.

        Empty text is rejected before any language-model call is made.
        """
        if not text or not text.strip():
            raise EmptyDocumentError("No extractable text found in the document.")
        analyses = self.chunk_analyzer.analyze_all(split_into_chunks(text, self.max_tokens))
        self._advance(AnalysisStage.CHUNKS_ANALYZED, chunk_count=len(analyses))
        analysis = self.summarizer.summarize(analyses)
        self._advance(AnalysisStage.SUMMARIZED)
        return analysis

    def process_uploaded_pdf(self, data: bytes) -> LeaseAnalysis:
        self._advance(AnalysisStage.RECEIVED, size_bytes=len(data))
        with self._temporary_pdf(data) as path:
            self._advance(AnalysisStage.TEMP_WRITTEN)
            text = self.extract_pdf_text(path)
            self._advance(AnalysisStage.TEXT_EXTRACTED, text_chars=len(text))
            analysis = self.analyze_text(text)
        self._advance(AnalysisStage.DONE)
        return analysis
