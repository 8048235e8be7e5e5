"""
HTML / PDF 导出测试
"""

from pathlib import Path

import fitz
import pytest

from build_log.core.models import BuildFile
from build_log.errors import ExportError, describe_error
from build_log.exporters import HtmlExporter, PdfExporter


# ============================================================
# HTML
# ============================================================

def test_html_document(complete_project):
    html = HtmlExporter().generate(complete_project)

    assert html.startswith("<!DOCTYPE html>")
    assert "<title>Build Log - AAL-AA-07009-01</title>" in html
    assert "<h1>Android OS Image Build Log - AAL-AA-07009-01</h1>" in html
    assert "<table>" in html
    assert "<code>packages/apps/Launcher3</code>" in html
    assert "border-collapse: collapse" in html


def test_html_title_is_escaped(complete_project):
    complete_project.build_number = "<b>1</b>"
    assert "<title>Build Log - &lt;b&gt;1&lt;/b&gt;</title>" in HtmlExporter().generate(complete_project)


def test_html_export_writes_file(tmp_path: Path, complete_project):
    target = tmp_path / "BUILD_LOG.html"

    path = HtmlExporter().export(complete_project, target)

    assert path == target
    assert "Bluetooth drops after sleep" in target.read_text(encoding="utf-8")


def test_html_export_failure(tmp_path: Path, complete_project):
    with pytest.raises(ExportError) as exc_info:
        HtmlExporter().export(complete_project, tmp_path / "missing" / "out.html")

    assert str(exc_info.value).startswith("HTML generation error")
    assert isinstance(exc_info.value.__cause__, OSError)


# ============================================================
# PDF
# ============================================================

def test_pdf_render(complete_project):
    data = PdfExporter().render(complete_project)

    assert data.startswith(b"%PDF")
    with fitz.open(stream=data, filetype="pdf") as document:
        text = "".join(page.get_text() for page in document)

    assert "Android OS Image Build Log" in text
    assert "Build: AAL-AA-07009-01" in text
    assert "Page 1 of" in text
    assert "Last updated: 2026-01-30 06:27:40" in text
    assert "Bluetooth drops after sleep" in text


def test_pdf_escapes_markup(complete_project):
    complete_project.known_issues[0].issue = "Crash when <b> & </b>"

    data = PdfExporter().render(complete_project)

    with fitz.open(stream=data, filetype="pdf") as document:
        text = "".join(page.get_text() for page in document)
    assert "Crash when <b> & </b>" in text


def test_pdf_generate_writes_file(tmp_path: Path, complete_project):
    target = tmp_path / "BUILD_LOG.pdf"

    path = PdfExporter().generate(complete_project, target)

    assert path == target
    assert target.read_bytes().startswith(b"%PDF")


def test_pdf_generate_failure(tmp_path: Path, complete_project):
    with pytest.raises(ExportError) as exc_info:
        PdfExporter().generate(complete_project, tmp_path / "missing" / "out.pdf")

    assert str(exc_info.value).startswith("PDF generation error")
    assert exc_info.value.__cause__ is not None


def test_pdf_page_numbers_on_long_documents(complete_project):
    complete_project.files = [
        BuildFile(f"artifact_{i:03d}.zip", "1 MB", "-") for i in range(120)
    ]
    exporter = PdfExporter()

    data = exporter.render(complete_project)
    with fitz.open(stream=data, filetype="pdf") as document:
        page_count = document.page_count
        last_page_text = document[page_count - 1].get_text()

    assert page_count > 1
    assert f"Page {page_count} of {page_count}" in last_page_text

    images = exporter.generate_preview_images(complete_project, dpi=40)
    assert len(images) == page_count


def test_pdf_preview_images(complete_project):
    images = PdfExporter().generate_preview_images(complete_project, dpi=60)

    assert len(images) >= 1
    assert all(image.startswith(b"\x89PNG\r\n\x1a\n") for image in images)


def test_describe_error_includes_cause():
    try:
        try:
            raise OSError("permission denied")
        except OSError as e:
            raise ExportError("PDF generation error") from e
    except ExportError as error:
        assert describe_error(error) == "PDF generation error (caused by: permission denied)"
