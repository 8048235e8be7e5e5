"""
数据模型定义

构建日志（Build Log）使用的所有数据类。

列表中的条目（文件、应用更新、已知问题、测试结果）没有独立 ID，
只通过在列表中的位置区分；相等性按内容比较。
"""

from dataclasses import dataclass, field
from datetime import date, datetime


# 构建类型选项
BUILD_TYPE_OPTIONS = ["user", "userdebug", "eng"]

# 已知问题选项
SEVERITY_OPTIONS = ["Low", "Medium", "High", "Critical"]
STATUS_OPTIONS = ["Open", "In Progress", "Fixed", "Won't Fix"]

# 测试结果选项
RESULT_OPTIONS = ["Pass", "Fail", "Pending", "Skipped"]

# 新建构建时默认生成的测试项（同时作为发布门禁）
SEEDED_TESTS = ["Boot Test", "Basic Functionality", "OTA Update Test"]

# 尚未计算哈希时的占位符
HASH_PLACEHOLDER = "-"


def _now() -> datetime:
    """当前时间，精确到秒（与 Markdown 页脚格式一致）"""
    return datetime.now().replace(microsecond=0)


@dataclass
class BuildFile:
    """
    构建产物文件

    Attributes:
        file_name: 文件名
        file_size: 可读的文件大小（如 1.5 KB）
        sha256: 十六进制小写 SHA256，未计算时为 "-"
        full_path: 绝对路径（不写入 Markdown，加载时重新解析）
    """
    file_name: str = ""
    file_size: str = ""
    sha256: str = HASH_PLACEHOLDER
    full_path: str = field(default="", compare=False)


@dataclass
class AppUpdate:
    """
    应用更新记录

    Attributes:
        app_name: 应用名称
        path: 安装路径
        version: 版本号
        changes: 变更摘要
        description: 补充说明
        details: 详细变更列表（每项一行）
    """
    app_name: str = ""
    path: str = ""
    version: str = ""
    changes: str = ""
    description: str = ""
    details: list[str] = field(default_factory=list)


@dataclass
class KnownIssue:
    """已知问题"""
    issue: str = ""
    severity: str = "Medium"
    status: str = "Open"
    workaround: str = ""


@dataclass
class TestResult:
    """测试结果"""
    __test__ = False  # 防止 pytest 把它当作测试类收集

    test_name: str = ""
    result: str = "Pending"
    notes: str = ""


def default_test_results() -> list[TestResult]:
    """生成默认的三个待测项"""
    return [TestResult(test_name=name, result="Pending") for name in SEEDED_TESTS]


@dataclass
class BuildProject:
    """
    单个构建的完整元数据

    Attributes:
        build_number: 构建号（面向用户的主键，用于去重和默认导出文件名）
        build_date: 构建日期
        device: 设备名
        build_type: 构建类型 (user / userdebug / eng)
        android_version: Android 版本
        security_patch: 安全补丁日期
        kernel_version: 内核版本
        previous_build: 上一个构建
        files: 构建产物文件
        app_updates: 应用更新
        system_modifications: 系统修改（换行分隔）
        kernel_driver_changes: 内核/驱动变更（换行分隔）
        configuration_changes: 配置变更（换行分隔）
        removed_components: 移除的组件（换行分隔）
        known_issues: 已知问题
        test_results: 测试结果
        bootloader_version: Bootloader 版本
        compatible_ota_builds: 兼容的 OTA 构建
        internal_testing: 推荐用于内部测试
        customer_release: 推荐用于客户发布
        specific_customer: 指定客户
        customer_release_notes: 客户发布说明
        built_by: 构建人
        reviewed_by: 审核人
        approved_for_release_date: 批准发布日期
        last_updated: 最后更新时间
        project_file_path: 来源 Markdown 文件路径（不参与比较）
        is_auto_completed: 构建号/设备是否由文件名推断（不参与比较）
    """
    # Build Information
    build_number: str = ""
    build_date: date = field(default_factory=date.today)
    device: str = ""
    build_type: str = "user"
    android_version: str = ""
    security_patch: str = ""
    kernel_version: str = ""
    previous_build: str = ""

    # Files
    files: list[BuildFile] = field(default_factory=list)

    # Changelog
    app_updates: list[AppUpdate] = field(default_factory=list)
    system_modifications: str = ""
    kernel_driver_changes: str = ""
    configuration_changes: str = ""
    removed_components: str = ""

    # Known Issues / Testing Status
    known_issues: list[KnownIssue] = field(default_factory=list)
    test_results: list[TestResult] = field(default_factory=default_test_results)

    # Dependencies
    bootloader_version: str = ""
    compatible_ota_builds: str = ""

    # Recommended For
    internal_testing: bool = True
    customer_release: bool = False
    specific_customer: str = ""

    customer_release_notes: str = ""

    # Build Engineer
    built_by: str = ""
    reviewed_by: str = ""
    approved_for_release_date: date | None = None

    # Metadata
    last_updated: datetime = field(default_factory=_now)
    project_file_path: str = field(default="", compare=False)
    is_auto_completed: bool = field(default=False, compare=False)

    @property
    def display_name(self) -> str:
        if not self.build_number:
            return "New Build"
        return f"{self.build_number} - {self.build_date:%Y-%m-%d}"

    @property
    def short_name(self) -> str:
        if not self.build_number:
            return "New"
        if len(self.build_number) > 10:
            return self.build_number[:10] + "..."
        return self.build_number

    def touch(self) -> None:
        """把最后更新时间设为当前时间"""
        self.last_updated = _now()
