"""
PDF 导出器 - 固定版式的构建日志 PDF

使用 reportlab 排版（A4，页眉、分节、页脚 "Page N of M"），
使用 PyMuPDF 把生成的 PDF 栅格化为 PNG 预览图。
"""

import io
import logging
from pathlib import Path
from typing import Any
from xml.sax.saxutils import escape

import fitz  # PyMuPDF
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.pdfgen import canvas
from reportlab.platypus import (
    HRFlowable,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from build_log.core.generator import CHANGELOG_TEXT_SECTIONS, DATE_FORMAT, DATETIME_FORMAT
from build_log.core.models import BuildProject
from build_log.errors import ExportError
from build_log.fileio import write_atomic

logger = logging.getLogger(__name__)


# 颜色
HEADING_COLOR = colors.HexColor("#01548c")
MAIN_HEADING_COLOR = colors.HexColor("#888888")
TEXT_COLOR = colors.HexColor("#1A1A1A")
SUBTLE_COLOR = colors.HexColor("#666666")
BORDER_COLOR = colors.HexColor("#E0E0E0")
HEADER_BACKGROUND = colors.HexColor("#F8F9FA")
SUCCESS_COLOR = colors.HexColor("#107C10")
ERROR_COLOR = colors.HexColor("#D13438")
WARNING_COLOR = colors.HexColor("#FF8C00")

PAGE_MARGIN = 50
HEADER_HEIGHT = 45
FOOTER_HEIGHT = 30
CONTENT_WIDTH = A4[0] - 2 * PAGE_MARGIN

SEVERITY_COLORS = {
    "Critical": ERROR_COLOR,
    "High": ERROR_COLOR,
    "Medium": WARNING_COLOR,
}

RESULT_COLORS = {
    "Pass": SUCCESS_COLOR,
    "Fail": ERROR_COLOR,
    "Pending": WARNING_COLOR,
}

DEFAULT_DPI = 150


def _hex(color: colors.Color) -> str:
    """颜色转为 #rrggbb，用于段落内的 <font> 标签"""
    return "#" + color.hexval()[2:]


def _text(value: str | None) -> str:
    """转义文本，空值显示为 "-" """
    return escape(value) if value else "-"


def build_styles() -> dict[str, ParagraphStyle]:
    """创建 PDF 使用的段落样式"""
    base = getSampleStyleSheet()["BodyText"]
    return {
        "Body": ParagraphStyle("Body", parent=base, fontName="Helvetica",
                               fontSize=10, leading=13, textColor=TEXT_COLOR),
        "Small": ParagraphStyle("Small", parent=base, fontName="Helvetica",
                                fontSize=9, leading=11, textColor=TEXT_COLOR),
        "Tiny": ParagraphStyle("Tiny", parent=base, fontName="Helvetica",
                               fontSize=8, leading=10, textColor=TEXT_COLOR),
        "Label": ParagraphStyle("Label", parent=base, fontName="Helvetica-Bold",
                                fontSize=9, leading=11, textColor=SUBTLE_COLOR),
        "Section": ParagraphStyle("Section", parent=base, fontName="Helvetica-Bold",
                                  fontSize=11, leading=14, textColor=HEADING_COLOR),
        "Subsection": ParagraphStyle("Subsection", parent=base, fontName="Helvetica-Bold",
                                     fontSize=10, leading=13, spaceBefore=6),
        "Bullet": ParagraphStyle("Bullet", parent=base, fontName="Helvetica",
                                 fontSize=9, leading=11, leftIndent=10),
    }


class _NumberedCanvas(canvas.Canvas):
    """在所有页面排完后写入 "Page N of M" """

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._saved_page_states: list[dict] = []

    def showPage(self) -> None:
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self) -> None:
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self.setFont("Helvetica", 8)
            self.setFillColor(SUBTLE_COLOR)
            self.drawRightString(
                A4[0] - PAGE_MARGIN, PAGE_MARGIN - 5,
                f"Page {self._pageNumber} of {total}",
            )
            super().showPage()
        super().save()


class PdfExporter:
    """PDF 导出器"""

    def __init__(self):
        self.styles = build_styles()

    # ------------------------------------------------------------
    # 公共接口
    # ------------------------------------------------------------

    def render(self, project: BuildProject) -> bytes:
        """
        生成 PDF 字节

        Raises:
            ExportError: 排版失败
        """
        try:
            return self._build(project)
        except Exception as e:
            raise ExportError(f"PDF generation error: {e}") from e

    def generate(self, project: BuildProject, file_path: Path | str) -> Path:
        """
        生成 PDF 文件

        Raises:
            ExportError: 排版或写入失败
        """
        project.touch()
        try:
            path = write_atomic(file_path, self._build(project))
        except Exception as e:
            raise ExportError(f"PDF generation error: {e}") from e

        logger.info(f"Exported PDF to {path}")
        return path

    export = generate

    def generate_preview_images(self, project: BuildProject, dpi: int = DEFAULT_DPI) -> list[bytes]:
        """
        生成每一页的 PNG 预览图

        Args:
            project: 构建记录
            dpi: 分辨率（默认 150，兼顾清晰度和速度）

        Returns:
            每页一张 PNG 的字节列表

        Raises:
            ExportError: 排版或栅格化失败
        """
        try:
            pdf_bytes = self._build(project)
            images: list[bytes] = []
            with fitz.open(stream=pdf_bytes, filetype="pdf") as document:
                for page in document:
                    images.append(page.get_pixmap(dpi=dpi).tobytes("png"))
            return images
        except Exception as e:
            raise ExportError(f"PDF preview generation error: {e}") from e

    # ------------------------------------------------------------
    # 排版
    # ------------------------------------------------------------

    def _build(self, project: BuildProject) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=PAGE_MARGIN,
            rightMargin=PAGE_MARGIN,
            topMargin=PAGE_MARGIN + HEADER_HEIGHT,
            bottomMargin=PAGE_MARGIN + FOOTER_HEIGHT,
            title=f"Build Log - {project.build_number}",
        )

        def on_page(c: canvas.Canvas, _doc: SimpleDocTemplate) -> None:
            self._draw_header_footer(c, project)

        doc.build(
            self._story(project),
            onFirstPage=on_page,
            onLaterPages=on_page,
            canvasmaker=_NumberedCanvas,
        )
        return buffer.getvalue()

    def _draw_header_footer(self, c: canvas.Canvas, project: BuildProject) -> None:
        width, height = A4
        top = height - PAGE_MARGIN
        c.saveState()

        c.setFont("Helvetica-Bold", 14)
        c.setFillColor(MAIN_HEADING_COLOR)
        c.drawCentredString(width / 2, top - 10, "Android OS Image Build Log")
        c.setFont("Helvetica", 11)
        c.setFillColor(SUBTLE_COLOR)
        c.drawCentredString(width / 2, top - 26, f"Build: {project.build_number}")
        c.setStrokeColor(HEADING_COLOR)
        c.setLineWidth(2)
        c.line(PAGE_MARGIN, top - 36, width - PAGE_MARGIN, top - 36)

        c.setStrokeColor(BORDER_COLOR)
        c.setLineWidth(1)
        c.line(PAGE_MARGIN, PAGE_MARGIN + 10, width - PAGE_MARGIN, PAGE_MARGIN + 10)
        c.setFont("Helvetica", 8)
        c.drawString(
            PAGE_MARGIN, PAGE_MARGIN - 5,
            f"Last updated: {project.last_updated:{DATETIME_FORMAT}}",
        )
        c.restoreState()

    def _section(self, title: str) -> list[Any]:
        return [
            Spacer(1, 12),
            Paragraph(escape(title), self.styles["Section"]),
            HRFlowable(width="100%", thickness=1, color=BORDER_COLOR, spaceBefore=3, spaceAfter=8),
        ]

    def _grid(self, header: list[str], rows: list[list[Any]], widths: list[float]) -> Table:
        """带表头的网格表格，widths 为相对宽度"""
        total = sum(widths)
        col_widths = [CONTENT_WIDTH * w / total for w in widths]
        data: list[list[Any]] = [[Paragraph(f"<b>{escape(h)}</b>", self.styles["Small"]) for h in header]]
        data.extend(rows)

        table = Table(data, colWidths=col_widths, repeatRows=1)
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), HEADER_BACKGROUND),
            ("LINEBELOW", (0, 0), (-1, -1), 1, BORDER_COLOR),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("TOPPADDING", (0, 0), (-1, -1), 4),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
        ]))
        return table

    def _cell(self, value: str | None, style: str = "Small", color: Any = None, bold: bool = False) -> Paragraph:
        text = _text(value)
        if bold:
            text = f"<b>{text}</b>"
        if color is not None:
            text = f'<font color="{_hex(color)}">{text}</font>'
        return Paragraph(text, self.styles[style])

    def _story(self, project: BuildProject) -> list[Any]:
        story: list[Any] = []
        story += self._build_info(project)
        if project.files:
            story += self._files(project)
        story += self._changelog(project)
        if project.known_issues:
            story += self._known_issues(project)
        if project.test_results:
            story += self._test_results(project)
        story += self._dependencies(project)
        story += self._recommended_for(project)
        if project.customer_release_notes.strip():
            story += self._section("Customer Release Notes")
            for line in project.customer_release_notes.split("\n"):
                story.append(Paragraph(escape(line) or "&nbsp;", self.styles["Body"]))
        story += self._build_engineer(project)
        return story

    def _key_value_table(self, pairs: list[tuple[str, str]], columns: int) -> Table:
        """标签/值交替排列的无边框表格"""
        rows: list[list[Any]] = []
        for i in range(0, len(pairs), columns):
            row: list[Any] = []
            for label, value in pairs[i:i + columns]:
                row += [Paragraph(escape(label), self.styles["Label"]), self._cell(value, "Body")]
            rows.append(row)

        weights = [1, 2] * columns
        total = sum(weights)
        table = Table(rows, colWidths=[CONTENT_WIDTH * w / total for w in weights])
        table.setStyle(TableStyle([
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("TOPPADDING", (0, 0), (-1, -1), 4),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
        ]))
        return table

    def _build_info(self, project: BuildProject) -> list[Any]:
        pairs = [
            ("Build Number", project.build_number),
            ("Build Date", f"{project.build_date:{DATE_FORMAT}}"),
            ("Device", project.device),
            ("Build Type", project.build_type),
            ("Android Version", project.android_version),
            ("Security Patch", project.security_patch),
            ("Kernel Version", project.kernel_version),
            ("Previous Build", project.previous_build),
        ]
        return [*self._section("Build Information"), self._key_value_table(pairs, columns=2)]

    def _files(self, project: BuildProject) -> list[Any]:
        rows = [
            [self._cell(f.file_name), self._cell(f.file_size), self._cell(f.sha256, "Tiny")]
            for f in project.files
        ]
        return [*self._section("Files"), self._grid(["File Name", "Size", "SHA256"], rows, [3, 1, 3])]

    def _changelog(self, project: BuildProject) -> list[Any]:
        story = self._section("Changelog")

        if project.app_updates:
            story.append(Paragraph("App Updates", self.styles["Subsection"]))
            rows = [
                [self._cell(a.app_name), self._cell(a.path, "Tiny"),
                 self._cell(a.version), self._cell(a.changes)]
                for a in project.app_updates
            ]
            story.append(self._grid(["App", "Path", "Version", "Changes"], rows, [1, 2, 1, 2]))

        for title, attr in CHANGELOG_TEXT_SECTIONS:
            text = getattr(project, attr)
            if not text.strip():
                continue
            story.append(Paragraph(escape(title), self.styles["Subsection"]))
            for line in text.split("\n"):
                if line.strip():
                    story.append(Paragraph(f"• {escape(line.strip())}", self.styles["Bullet"]))

        return story

    def _known_issues(self, project: BuildProject) -> list[Any]:
        rows = [
            [self._cell(i.issue), self._cell(i.severity, color=SEVERITY_COLORS.get(i.severity)),
             self._cell(i.status), self._cell(i.workaround)]
            for i in project.known_issues
        ]
        return [
            *self._section("Known Issues"),
            self._grid(["Issue", "Severity", "Status", "Workaround"], rows, [3, 1, 1, 2]),
        ]

    def _test_results(self, project: BuildProject) -> list[Any]:
        rows = [
            [self._cell(t.test_name),
             self._cell(t.result.upper(), color=RESULT_COLORS.get(t.result), bold=True),
             self._cell(t.notes)]
            for t in project.test_results
        ]
        return [*self._section("Testing Status"), self._grid(["Test", "Result", "Notes"], rows, [2, 1, 3])]

    def _dependencies(self, project: BuildProject) -> list[Any]:
        pairs = [
            ("Bootloader Version", project.bootloader_version),
            ("Compatible OTA Builds", project.compatible_ota_builds),
        ]
        return [*self._section("Dependencies"), self._key_value_table(pairs, columns=2)]

    def _recommended_for(self, project: BuildProject) -> list[Any]:
        story = self._section("Recommended For")
        for label, checked in (
            ("Internal Testing", project.internal_testing),
            ("Customer Release", project.customer_release),
        ):
            mark, color = ("[x]", SUCCESS_COLOR) if checked else ("[ ]", ERROR_COLOR)
            story.append(Paragraph(
                f'<font color="{_hex(color)}">{mark}</font> {label}',
                self.styles["Body"],
            ))
        if project.specific_customer.strip():
            story.append(Paragraph(
                f'<font color="{_hex(SUBTLE_COLOR)}">Specific Customer: '
                f'{escape(project.specific_customer)}</font>',
                self.styles["Body"],
            ))
        return story

    def _build_engineer(self, project: BuildProject) -> list[Any]:
        pairs = [("Built by", project.built_by), ("Reviewed by", project.reviewed_by)]
        if project.approved_for_release_date is not None:
            pairs.append(("Approved Date", f"{project.approved_for_release_date:{DATE_FORMAT}}"))
        return [*self._section("Build Engineer"), self._key_value_table(pairs, columns=1)]
