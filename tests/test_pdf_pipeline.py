import io

import pytest
from pypdf import PageObject, PdfWriter

from errors import EmptyDocumentError, ExtractionError, SummaryGenerationError, UpstreamStatusError
from lease_analysis.pdf_pipeline import PDFAnalysisService, extract_pdf_text


@pytest.fixture()
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


def _blank_pdf_bytes(pages=1):
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=612, height=792)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def test_twelve_thousand_characters_is_one_chunk_plus_two_summaries(fake_llm):
    service = PDFAnalysisService(fake_llm, max_tokens=4000)

    analysis = service.analyze_text("x" * 12000)

    assert len(fake_llm.prompts) == 3
    assert analysis.summary.startswith("analysis #2")
    assert analysis.issues.startswith("analysis #3")


def test_call_count_is_chunks_plus_two(fake_llm):
    service = PDFAnalysisService(fake_llm, max_tokens=10)

    service.analyze_text("y" * 95)  # 40 chars per chunk -> 3 chunks

    assert len(fake_llm.prompts) == 5


def test_blank_text_is_rejected_without_model_calls(fake_llm):
    service = PDFAnalysisService(fake_llm)

    with pytest.raises(EmptyDocumentError):
        service.analyze_text("  \n\n ")
    assert fake_llm.prompts == []


def test_corrupt_upload_raises_and_cleans_up(fake_llm, upload_dir):
    service = PDFAnalysisService(fake_llm, temp_dir=upload_dir)

    with pytest.raises(ExtractionError):
        service.process_uploaded_pdf(b"this is definitely not a pdf")

    assert fake_llm.prompts == []
    assert list(upload_dir.iterdir()) == []


def test_pdf_without_text_is_an_empty_document(fake_llm, upload_dir):
    service = PDFAnalysisService(fake_llm, temp_dir=upload_dir)

    with pytest.raises(EmptyDocumentError):
        service.process_uploaded_pdf(_blank_pdf_bytes(pages=2))

    assert fake_llm.prompts == []
    assert list(upload_dir.iterdir()) == []


def test_extract_pdf_text_joins_pages(tmp_path):
    path = tmp_path / "blank.pdf"
    path.write_bytes(_blank_pdf_bytes(pages=3))

    assert extract_pdf_text(path) == "\n\n\n\n"


def test_upload_is_readable_during_extraction_and_removed_after(fake_llm, upload_dir, monkeypatch):
    service = PDFAnalysisService(fake_llm, temp_dir=upload_dir)
    seen = {}

    def fake_extract(path):
        seen["bytes"] = path.read_bytes()
        seen["name"] = path.name
        return "Tenant pays rent on the first of each month."

    monkeypatch.setattr(service, "extract_pdf_text", fake_extract)

    analysis = service.process_uploaded_pdf(b"%PDF-1.4 stub")

    assert seen["bytes"] == b"%PDF-1.4 stub"
    assert seen["name"].startswith("rentsight_upload_") and seen["name"].endswith(".pdf")
    assert list(upload_dir.iterdir()) == []
    assert len(fake_llm.prompts) == 3
    assert analysis.to_dict().keys() == {"summary", "issues"}


def test_summary_failure_still_removes_temp_file(make_fake_llm, upload_dir, monkeypatch):
    llm = make_fake_llm(fail_on={1}, error=UpstreamStatusError(500, "boom"))
    service = PDFAnalysisService(llm, temp_dir=upload_dir)
    monkeypatch.setattr(service, "extract_pdf_text", lambda path: "Some lease text.")

    with pytest.raises(SummaryGenerationError):
        service.process_uploaded_pdf(b"%PDF-1.4 stub")

    assert list(upload_dir.iterdir()) == []


def test_same_text_gives_same_analysis(make_fake_llm):
    text = "Security deposit equals one month of rent. " * 500
    first = PDFAnalysisService(make_fake_llm(), max_tokens=1000).analyze_text(text)
    second = PDFAnalysisService(make_fake_llm(), max_tokens=1000).analyze_text(text)

    assert first == second


def _damaged_content_stream(self, *args, **kwargs):
    raise TypeError("argument of type 'NumberObject' is not iterable")


def test_damaged_content_stream_is_an_extraction_error(fake_llm, upload_dir, monkeypatch):
    monkeypatch.setattr(PageObject, "extract_text", _damaged_content_stream)
    service = PDFAnalysisService(fake_llm, temp_dir=upload_dir)

    with pytest.raises(ExtractionError) as excinfo:
        service.process_uploaded_pdf(_blank_pdf_bytes())

    assert isinstance(excinfo.value.__cause__, TypeError)
    assert fake_llm.prompts == []
    assert list(upload_dir.iterdir()) == []
