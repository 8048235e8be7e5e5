"""
Reporters Layer - 报告层

包含 Rich 终端报告器和 JSON 报告器。
"""

from build_log.reporters.base import Reporter
from build_log.reporters.rich_reporter import RichReporter
from build_log.reporters.json_reporter import JsonReporter

__all__ = [
    "Reporter",
    "RichReporter",
    "JsonReporter",
]
