"""
Lease analysis package.

Extracts text from an uploaded rental agreement, analyzes it chunk by chunk
through a language model, and merges the results into a summary and an
issues list.
"""

from .chunking import ChunkAnalyzer, split_into_chunks
from .llm_client import LLMClient
from .pdf_pipeline import PDFAnalysisService, extract_pdf_text
from .summarizer import GlobalSummarizer, LeaseAnalysis

__all__ = [
    "ChunkAnalyzer",
    "GlobalSummarizer",
    "LLMClient",
    "LeaseAnalysis",
    "PDFAnalysisService",
    "extract_pdf_text",
    "split_into_chunks",
]
