"""
Exporters Layer - 导出层

包含 HTML 导出器和 PDF 导出器（含页面预览图）。
"""

from build_log.exporters.base import Exporter
from build_log.exporters.html_exporter import HtmlExporter
from build_log.exporters.pdf_exporter import PdfExporter

__all__ = [
    "Exporter",
    "HtmlExporter",
    "PdfExporter",
]
