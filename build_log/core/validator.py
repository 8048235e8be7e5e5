"""
核心验证器模块 - 检查构建记录是否可以保存/导出

验证结果完全由当前字段值推导，不单独存储。执行以下检查：
1. 构建信息：构建号、设备、Android 版本、构建类型不能是占位符
2. 推荐用途：至少选择一个发布渠道
3. 构建工程师：构建人、审核人、批准日期
4. 测试门禁：默认的三个测试项不能停留在 Pending
5. 文件哈希：尚未计算 SHA256 的文件只产生警告，不影响保存

由文件名自动补全的记录（is_auto_completed）不要求构建号和设备。
"""

from dataclasses import dataclass, field
from typing import Literal, Optional

from build_log.core.models import BuildProject, SEEDED_TESTS

# 视为"尚未填写"的占位值（不区分大小写）
PLACEHOLDER_VALUES = {"", "tbd", "-"}


@dataclass
class Issue:
    """
    检查问题

    Attributes:
        severity: 严重程度 (error, warning)
        code: 问题代码 (MISSING_FIELD, PENDING_TEST, MISSING_CHECKSUM)
        message: 问题描述
        field_name: 相关字段的显示名
        suggestion: 修复建议
    """
    severity: Literal["error", "warning"]
    code: str
    message: str
    field_name: str
    suggestion: Optional[str] = None


@dataclass
class ValidationResult:
    """
    验证结果

    Attributes:
        issues: 发现的问题列表
        stats: 统计信息
    """
    issues: list[Issue] = field(default_factory=list)
    stats: dict[str, int] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not any(issue.severity == "error" for issue in self.issues)

    @property
    def missing_fields(self) -> list[str]:
        return [issue.field_name for issue in self.issues if issue.severity == "error"]


def is_placeholder(value: Optional[str]) -> bool:
    """判断字段值是否为空或占位符（TBD、-）"""
    return value is None or value.strip().lower() in PLACEHOLDER_VALUES


class Validator:
    """构建记录验证器"""

    def validate_build_info(self, project: BuildProject) -> list[Issue]:
        """检查构建信息的必填字段"""
        required = [
            ("Build Number", project.build_number, not project.is_auto_completed),
            ("Device", project.device, not project.is_auto_completed),
            ("Build Type", project.build_type, True),
            ("Android Version", project.android_version, True),
        ]
        return [
            _missing(name)
            for name, value, enforced in required
            if enforced and is_placeholder(value)
        ]

    def validate_release(self, project: BuildProject) -> list[Issue]:
        """检查推荐用途和构建工程师信息"""
        issues: list[Issue] = []

        if not (project.internal_testing or project.customer_release):
            issues.append(_missing(
                "Recommended For (select at least one)",
                suggestion="Select Internal Testing or Customer Release",
            ))
        if is_placeholder(project.built_by):
            issues.append(_missing("Built by"))
        if is_placeholder(project.reviewed_by):
            issues.append(_missing("Reviewed by"))
        if project.approved_for_release_date is None:
            issues.append(_missing("Approved Date"))

        return issues

    def validate_tests(self, project: BuildProject) -> list[Issue]:
        """检查默认测试项是否都已有结果"""
        issues: list[Issue] = []
        for test in project.test_results:
            if test.test_name in SEEDED_TESTS and test.result == "Pending":
                issues.append(Issue(
                    severity="error",
                    code="PENDING_TEST",
                    message=f"Test is still pending: {test.test_name}",
                    field_name=f"{test.test_name} result",
                    suggestion="Record Pass, Fail or Skipped",
                ))
        return issues

    def validate_files(self, project: BuildProject) -> list[Issue]:
        """检查文件是否已经计算了哈希"""
        return [
            Issue(
                severity="warning",
                code="MISSING_CHECKSUM",
                message=f"SHA256 not computed: {build_file.file_name}",
                field_name=build_file.file_name,
                suggestion="Run checksums for this build",
            )
            for build_file in project.files
            if is_placeholder(build_file.sha256)
        ]

    def validate_all(self, project: BuildProject) -> ValidationResult:
        """
        执行全部检查

        Args:
            project: 构建记录

        Returns:
            ValidationResult
        """
        result = ValidationResult()
        result.issues.extend(self.validate_build_info(project))
        result.issues.extend(self.validate_release(project))
        result.issues.extend(self.validate_tests(project))
        result.issues.extend(self.validate_files(project))

        result.stats["errors"] = sum(1 for i in result.issues if i.severity == "error")
        result.stats["warnings"] = sum(1 for i in result.issues if i.severity == "warning")
        result.stats["pending_tests"] = sum(1 for i in result.issues if i.code == "PENDING_TEST")
        return result


def _missing(name: str, suggestion: Optional[str] = None) -> Issue:
    return Issue(
        severity="error",
        code="MISSING_FIELD",
        message=f"Required field is missing: {name}",
        field_name=name,
        suggestion=suggestion or f"Fill in '{name}'",
    )


def validate_project(project: BuildProject) -> ValidationResult:
    """使用默认验证器检查构建记录"""
    return Validator().validate_all(project)


def missing_fields(project: BuildProject) -> list[str]:
    """返回缺失的必填字段显示名列表"""
    return validate_project(project).missing_fields


def is_valid(project: BuildProject) -> bool:
    """构建记录是否可以保存/导出"""
    return validate_project(project).is_valid
