"""
报告器基类 - 定义报告器接口
"""

from typing import Protocol

from build_log.core.models import BuildProject
from build_log.core.validator import ValidationResult


class Reporter(Protocol):
    """报告器协议"""

    def report(self, result: ValidationResult, target: str) -> None:
        """输出验证报告"""
        ...

    def report_builds(self, builds: list[BuildProject]) -> None:
        """输出构建列表"""
        ...

    def report_build(self, project: BuildProject) -> None:
        """输出单个构建"""
        ...
