"""
JSON 报告器 - 输出 JSON 格式报告
"""

import dataclasses
import json
import sys
from datetime import date, datetime
from typing import Any, TextIO

from build_log.core.models import BuildProject
from build_log.core.validator import ValidationResult


def _json_default(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def project_to_dict(project: BuildProject) -> dict[str, Any]:
    """把构建记录转为可序列化的字典"""
    data = dataclasses.asdict(project)
    data.pop("is_auto_completed", None)
    return data


class JsonReporter:
    """JSON 报告器"""

    def __init__(self, output: TextIO | None = None):
        self.output = output or sys.stdout

    def _write(self, data: Any) -> None:
        json_str = json.dumps(data, indent=2, ensure_ascii=False, default=_json_default)
        print(json_str, file=self.output)

    def report(self, result: ValidationResult, target: str) -> None:
        """生成 JSON 格式验证报告"""
        self._write({
            "target": target,
            "issues": [
                {
                    "severity": issue.severity,
                    "code": issue.code,
                    "message": issue.message,
                    "field": issue.field_name,
                    "suggestion": issue.suggestion,
                }
                for issue in result.issues
            ],
            "stats": result.stats,
            "summary": {
                "total_issues": len(result.issues),
                "errors": result.stats.get("errors", 0),
                "warnings": result.stats.get("warnings", 0),
                "passed": result.is_valid,
            },
        })

    def report_builds(self, builds: list[BuildProject]) -> None:
        """输出构建列表摘要"""
        self._write([
            {
                "build_number": build.build_number,
                "build_date": build.build_date,
                "device": build.device,
                "build_type": build.build_type,
                "android_version": build.android_version,
                "files": len(build.files),
                "project_file_path": build.project_file_path,
            }
            for build in builds
        ])

    def report_build(self, project: BuildProject) -> None:
        """输出单个构建的全部字段"""
        self._write(project_to_dict(project))
