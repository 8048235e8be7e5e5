"""
导出器基类 - 定义导出器接口
"""

from pathlib import Path
from typing import Protocol

from build_log.core.models import BuildProject


class Exporter(Protocol):
    """导出器协议"""

    def export(self, project: BuildProject, file_path: Path | str) -> Path:
        """导出构建记录到文件"""
        ...
