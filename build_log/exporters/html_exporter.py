"""
HTML 导出器 - Markdown 转 HTML 并套用固定样式

使用 markdown-it-py（CommonMark + 表格）渲染 generator 生成的 Markdown。
"""

import logging
from html import escape
from pathlib import Path

from markdown_it import MarkdownIt

from build_log.core.generator import generate_markdown
from build_log.core.models import BuildProject
from build_log.errors import ExportError
from build_log.fileio import write_atomic

logger = logging.getLogger(__name__)


STYLESHEET = """
        * {
            margin: 0;
            padding: 0;
            box-sizing: border-box;
        }

        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
            font-size: 14px;
            line-height: 1.6;
            color: #1a1a1a;
            background-color: #f5f5f5;
        }

        .container {
            max-width: 900px;
            margin: 40px auto;
            padding: 0 20px;
        }

        .document {
            background: white;
            padding: 60px 80px;
            border-radius: 8px;
            box-shadow: 0 4px 20px rgba(0, 0, 0, 0.1);
        }

        h1 {
            font-size: 28px;
            font-weight: 600;
            color: #007AFF;
            margin-bottom: 32px;
            padding-bottom: 16px;
            border-bottom: 3px solid #007AFF;
        }

        h2 {
            font-size: 20px;
            font-weight: 600;
            color: #333;
            margin-top: 32px;
            margin-bottom: 16px;
            padding-bottom: 8px;
            border-bottom: 1px solid #e0e0e0;
        }

        h3 {
            font-size: 16px;
            font-weight: 600;
            color: #444;
            margin-top: 24px;
            margin-bottom: 12px;
        }

        h4 {
            font-size: 14px;
            font-weight: 600;
            color: #555;
            margin-top: 16px;
            margin-bottom: 8px;
        }

        p {
            margin-bottom: 12px;
        }

        ul, ol {
            margin-bottom: 16px;
            padding-left: 24px;
        }

        li {
            margin-bottom: 6px;
        }

        table {
            width: 100%;
            border-collapse: collapse;
            margin-bottom: 24px;
            font-size: 13px;
        }

        th, td {
            padding: 12px 16px;
            text-align: left;
            border: 1px solid #e0e0e0;
        }

        th {
            background-color: #f8f9fa;
            font-weight: 600;
            color: #333;
        }

        tr:nth-child(even) {
            background-color: #fafafa;
        }

        code {
            font-family: 'SF Mono', Monaco, 'Cascadia Code', Consolas, monospace;
            font-size: 12px;
            background-color: #f4f4f4;
            padding: 2px 6px;
            border-radius: 4px;
            color: #d63384;
        }

        hr {
            border: none;
            border-top: 1px solid #e0e0e0;
            margin: 32px 0;
        }

        em {
            font-style: italic;
            color: #666;
        }

        @media print {
            body {
                background: white;
            }

            .container {
                margin: 0;
                padding: 0;
            }

            .document {
                box-shadow: none;
                padding: 20px;
            }
        }

        @page {
            margin: 2cm;
        }"""


PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Build Log - {title}</title>
    <style>{stylesheet}
    </style>
</head>
<body>
    <div class="container">
        <div class="document">
{body}
        </div>
    </div>
</body>
</html>
"""


class HtmlExporter:
    """HTML 导出器"""

    def __init__(self):
        self._md = MarkdownIt("commonmark").enable("table")

    def render_markdown(self, markdown: str) -> str:
        """把 Markdown 渲染为 HTML 片段"""
        return self._md.render(markdown)

    def generate(self, project: BuildProject) -> str:
        """
        生成完整的 HTML 页面

        Args:
            project: 构建记录

        Returns:
            HTML 文本
        """
        body = self.render_markdown(generate_markdown(project))
        return PAGE_TEMPLATE.format(
            title=escape(project.build_number),
            stylesheet=STYLESHEET,
            body=body,
        )

    def export(self, project: BuildProject, file_path: Path | str) -> Path:
        """
        导出 HTML 文件

        Raises:
            ExportError: 生成或写入失败
        """
        project.touch()
        try:
            html = self.generate(project)
            path = write_atomic(file_path, html)
        except Exception as e:
            raise ExportError(f"HTML generation error: {e}") from e

        logger.info(f"Exported HTML to {path}")
        return path
