import io

from pypdf import PageObject, PdfWriter

from errors import ExtractionError
from lease_analysis.pdf_pipeline import PDFAnalysisService
from cli.analyze import run_analyze_cli
from main import _parse_args


def test_analyze_prints_summary_and_issues(tmp_path, fake_llm, monkeypatch):
    pdf = tmp_path / "lease.pdf"
    pdf.write_bytes(b"%PDF-1.4 stub")
    service = PDFAnalysisService(fake_llm)
    monkeypatch.setattr(service, "extract_pdf_text", lambda path: "Landlord pays utilities.")
    out, err = io.StringIO(), io.StringIO()

    code = run_analyze_cli(str(pdf), service=service, out=out, err=err)

    assert code == 0
    text = out.getvalue()
    assert "=== Summary ===" in text and "=== Potential Issues ===" in text
    assert err.getvalue() == ""


def test_analyze_missing_file(tmp_path, fake_llm):
    err = io.StringIO()
    code = run_analyze_cli(str(tmp_path / "missing.pdf"), service=PDFAnalysisService(fake_llm), err=err)
    assert code == 2
    assert "File not found" in err.getvalue()


def test_analyze_reports_failures(tmp_path, fake_llm, monkeypatch):
    pdf = tmp_path / "lease.pdf"
    pdf.write_bytes(b"junk")
    service = PDFAnalysisService(fake_llm)

    def broken(path):
        raise ExtractionError("Could not read PDF document")

    monkeypatch.setattr(service, "extract_pdf_text", broken)
    err = io.StringIO()

    assert run_analyze_cli(str(pdf), service=service, out=io.StringIO(), err=err) == 1
    assert "Could not read PDF document" in err.getvalue()


def test_parse_args():
    assert _parse_args(["analyze", "lease.pdf"]).pdf == "lease.pdf"
    serve = _parse_args(["serve", "--port", "9000"])
    assert serve.command == "serve" and serve.port == 9000


def test_analyze_damaged_pdf_exits_with_error(tmp_path, fake_llm, monkeypatch):
    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)
    pdf = tmp_path / "lease.pdf"
    with pdf.open("wb") as handle:
        writer.write(handle)

    def damaged(self, *args, **kwargs):
        raise TypeError("'NameObject' object cannot be interpreted as an integer")

    monkeypatch.setattr(PageObject, "extract_text", damaged)
    err = io.StringIO()

    assert run_analyze_cli(str(pdf), service=PDFAnalysisService(fake_llm), out=io.StringIO(), err=err) == 1
    assert "PDF analysis failed" in err.getvalue()
    assert fake_llm.prompts == []
